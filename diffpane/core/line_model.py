"""Aligned line model shared by every reconstruction path.

Key concepts:
- A ``LineRecord`` is one rendered row on one side of the side-by-side view.
- An ``AlignedPair`` holds the "before" and "after" sides.  Both sides always
  have the same length: row ``i`` on the left is displayed next to row ``i``
  on the right.
- Rows are only ever appended through ``AlignedPairBuilder``, which writes
  both sides in a single call.  The length invariant therefore holds by
  construction; ``AlignedPair`` re-checks it and raises ``AlignmentError``
  if anything slipped through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from diffpane.core.exceptions import AlignmentError


# =============================================================================
#  Line kinds
# =============================================================================


class LineKind(str, Enum):
    """Classification of a single row on one side of an aligned pair."""

    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"
    EMPTY = "empty"
    CONTEXT_HEADER = "context-header"
    FUNCTION_HEADER = "function-header"
    FUNCTION_SEPARATOR = "function-separator"
    COLLAPSED = "collapsed"

    @property
    def is_change(self) -> bool:
        return self in (LineKind.ADDED, LineKind.REMOVED)

    @property
    def is_marker(self) -> bool:
        """Marker rows carry no file content and always appear on both sides."""
        return self in (
            LineKind.CONTEXT_HEADER,
            LineKind.FUNCTION_HEADER,
            LineKind.FUNCTION_SEPARATOR,
            LineKind.COLLAPSED,
        )


# =============================================================================
#  Data classes
# =============================================================================


@dataclass(frozen=True)
class CollapsedRange:
    """A run of file lines that exist but are not shown (1-based, inclusive)."""

    old_start: int
    old_end: int
    new_start: int
    new_end: int

    @property
    def line_count(self) -> int:
        return max(self.old_end - self.old_start + 1, self.new_end - self.new_start + 1, 0)


@dataclass(frozen=True)
class LineRecord:
    """One row on one side of the view."""

    content: str
    line_number: int | None  # None for placeholders and markers, never 0
    kind: LineKind
    collapsed: CollapsedRange | None = None  # only set on COLLAPSED markers


EMPTY_RECORD = LineRecord(content="", line_number=None, kind=LineKind.EMPTY)


@dataclass
class AlignedPair:
    """Equal-length original/modified row sequences."""

    original_lines: list[LineRecord] = field(default_factory=list)
    modified_lines: list[LineRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.original_lines) != len(self.modified_lines):
            raise AlignmentError(
                f"Aligned sides differ in length: {len(self.original_lines)} "
                f"original vs {len(self.modified_lines)} modified"
            )

    def __len__(self) -> int:
        return len(self.original_lines)

    def rows(self) -> list[tuple[LineRecord, LineRecord]]:
        """Return ``(original, modified)`` tuples, one per display row."""
        return list(zip(self.original_lines, self.modified_lines))

    def slice(self, start: int, stop: int) -> AlignedPair:
        """Return rows ``[start, stop)`` of both sides."""
        return AlignedPair(self.original_lines[start:stop], self.modified_lines[start:stop])

    @property
    def added_count(self) -> int:
        return sum(1 for line in self.modified_lines if line.kind is LineKind.ADDED)

    @property
    def removed_count(self) -> int:
        return sum(1 for line in self.original_lines if line.kind is LineKind.REMOVED)


# =============================================================================
#  Builder
# =============================================================================


class AlignedPairBuilder:
    """Appends rows to both sides at once.

    Every public method writes exactly one record to each side, so the two
    sides can never drift apart in length.
    """

    def __init__(self) -> None:
        self._original: list[LineRecord] = []
        self._modified: list[LineRecord] = []

    def __len__(self) -> int:
        return len(self._original)

    def context(self, content: str, old_lineno: int | None, new_lineno: int | None) -> None:
        self._original.append(LineRecord(content, old_lineno, LineKind.CONTEXT))
        self._modified.append(LineRecord(content, new_lineno, LineKind.CONTEXT))

    def removed(self, content: str, old_lineno: int | None) -> None:
        self._original.append(LineRecord(content, old_lineno, LineKind.REMOVED))
        self._modified.append(EMPTY_RECORD)

    def added(self, content: str, new_lineno: int | None) -> None:
        self._original.append(EMPTY_RECORD)
        self._modified.append(LineRecord(content, new_lineno, LineKind.ADDED))

    def marker(self, kind: LineKind, content: str = "") -> None:
        """Append a marker row (header / separator) on both sides."""
        if not kind.is_marker or kind is LineKind.COLLAPSED:
            raise AlignmentError(f"{kind.value!r} is not a header/separator kind")
        record = LineRecord(content, None, kind)
        self._original.append(record)
        self._modified.append(record)

    def collapsed(self, gap: CollapsedRange) -> None:
        record = LineRecord("", None, LineKind.COLLAPSED, collapsed=gap)
        self._original.append(record)
        self._modified.append(record)

    def row(self, original: LineRecord, modified: LineRecord) -> None:
        """Copy an existing row, e.g. when slicing another pair."""
        self._original.append(original)
        self._modified.append(modified)

    def extend(self, pair: AlignedPair) -> None:
        self._original.extend(pair.original_lines)
        self._modified.extend(pair.modified_lines)

    def build(self) -> AlignedPair:
        return AlignedPair(list(self._original), list(self._modified))
