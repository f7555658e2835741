"""Best-effort function/class boundary detection.

This is pattern matching over source text, not a parser.  It finds the
declaration enclosing a changed line so the view can show the whole
function instead of a few lines of context.

Known failure modes:
- signatures spanning several lines are not recognized;
- braces inside string literals or comments unbalance the count;
- decorators and annotations above a declaration are not included;
- braces on the declaration line itself are not counted, so a body that
  opens and closes on one line (``function f() { return 1; }``) runs on
  until the next declaration or the line budget.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from diffpane.core.context_window import collapse_context
from diffpane.core.line_model import AlignedPair, AlignedPairBuilder, LineKind, LineRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES: int = 50

_IDENT = r"[A-Za-z_$][A-Za-z0-9_$]*"

# (type, pattern, name group), tried in order, first match wins.
_DECLARATION_PATTERNS: tuple[tuple[str, re.Pattern[str], int], ...] = (
    (
        "function",
        re.compile(rf"^(export\s+)?(default\s+)?(async\s+)?function\*?\s+({_IDENT})\s*\([^)]*\)\s*[:{{]"),
        4,
    ),
    (
        "arrow-function",
        re.compile(rf"^(export\s+)?(const|let|var)\s+({_IDENT})\s*=\s*(async\s+)?(\([^)]*\)|{_IDENT})\s*=>\s*\{{"),
        3,
    ),
    (
        "class",
        re.compile(rf"^(export\s+)?(default\s+)?(abstract\s+)?class\s+({_IDENT})\s*(<[^>]*>)?\s*(extends\s+[^{{]*)?(implements\s+[^{{]*)?\{{"),
        4,
    ),
    (
        "interface",
        re.compile(rf"^(export\s+)?interface\s+({_IDENT})\s*(<[^>]*>)?\s*(extends\s+[^{{]*)?\{{"),
        2,
    ),
    (
        "enum",
        re.compile(rf"^(export\s+)?(const\s+)?enum\s+({_IDENT})\s*\{{"),
        3,
    ),
    (
        "method",
        re.compile(rf"^((public|private|protected|static|override|readonly)\s+)*(async\s+)?({_IDENT})\s*\([^)]*\)\s*[:{{]"),
        4,
    ),
    (
        "function",
        re.compile(rf"^(async\s+)?def\s+({_IDENT})\s*\(.*\)\s*(->\s*[^:]+)?:\s*(#.*)?$"),
        2,
    ),
    (
        "class",
        re.compile(rf"^class\s+({_IDENT})\s*(\([^)]*\))?\s*:\s*(#.*)?$"),
        1,
    ),
)

# Identifiers the method pattern would otherwise accept: ``if (x) {``.
_CONTROL_KEYWORDS: frozenset[str] = frozenset(
    {"if", "for", "while", "switch", "catch", "with", "return", "else", "do", "try", "function"}
)


# =============================================================================
#  Data classes
# =============================================================================


@dataclass(frozen=True)
class Declaration:
    """A line that looks like the start of a function, class, etc."""

    type: str
    name: str
    indent: int

    @property
    def label(self) -> str:
        return f"{self.name} ({self.type})"


@dataclass(frozen=True)
class FunctionBoundary:
    """Inclusive ``[start, end]`` line indices of a declaration's body."""

    start: int
    end: int
    declaration: Declaration


# =============================================================================
#  Detection
# =============================================================================


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def detect_declaration(line: str) -> Declaration | None:
    """Return the declaration started on ``line``, if it looks like one."""
    trimmed = line.strip()
    if not trimmed:
        return None
    for decl_type, pattern, name_group in _DECLARATION_PATTERNS:
        match = pattern.match(trimmed)
        if match is None:
            continue
        name = match.group(name_group)
        if decl_type == "method" and name in _CONTROL_KEYWORDS:
            return None
        return Declaration(type=decl_type, name=name, indent=_indent_of(line))
    return None


def _is_colon_block(line: str) -> bool:
    """Python-style declarations open a block with ``:`` instead of ``{``."""
    code = line.split("#", 1)[0].rstrip()
    return code.endswith(":") and "{" not in code


def find_function_boundaries(
    lines: list[str],
    index: int,
    *,
    max_lines: int = DEFAULT_MAX_LINES,
) -> FunctionBoundary | None:
    """Find the declaration enclosing ``lines[index]`` and where it ends.

    Scans backward for a declaration, then forward from the line after it,
    counting ``{``/``}`` from a balance of 1 until it drops to 0.  The scan
    also stops just before another declaration at the same or shallower
    indentation, and for colon blocks at the first non-blank line that is
    not indented deeper than the declaration.  If no end is found the body
    is assumed to span ``max_lines`` lines.

    Returns:
        The boundary, or None if no declaration precedes ``index``.
    """
    if not lines or index < 0 or index >= len(lines):
        return None

    start = -1
    declaration: Declaration | None = None
    for i in range(index, -1, -1):
        declaration = detect_declaration(lines[i])
        if declaration is not None:
            start = i
            break
    if declaration is None:
        return None

    colon_block = _is_colon_block(lines[start])
    balance = 1
    end = -1
    for i in range(start + 1, len(lines)):
        line = lines[i]

        if colon_block:
            if line.strip() and _indent_of(line) <= declaration.indent:
                end = i - 1
                break
            continue

        for char in line:
            if char == "{":
                balance += 1
            elif char == "}":
                balance -= 1
                if balance == 0:
                    end = i
                    break
        if end != -1:
            break

        other = detect_declaration(line)
        if other is not None and other.indent <= declaration.indent:
            end = i - 1
            break

    if end == -1:
        end = min(start + max_lines, len(lines) - 1)

    # Trailing blank lines belong to whatever follows.
    while end > start and not lines[end].strip():
        end -= 1

    return FunctionBoundary(start=start, end=end, declaration=declaration)


# =============================================================================
#  Function-context view
# =============================================================================


def _side_index(lines: list[LineRecord]) -> tuple[list[str], list[int], dict[int, int]]:
    """Observed file lines of one side plus row <-> position maps."""
    texts: list[str] = []
    rows: list[int] = []
    position_of_row: dict[int, int] = {}
    for row, record in enumerate(lines):
        if record.line_number is None or record.kind.is_marker:
            continue
        position_of_row[row] = len(texts)
        texts.append(record.content)
        rows.append(row)
    return texts, rows, position_of_row


def expand_to_functions(
    pair: AlignedPair,
    *,
    max_lines: int = DEFAULT_MAX_LINES,
    context_lines: int = 3,
) -> AlignedPair:
    """Narrow a pair down to the functions that contain its changes.

    Every changed row is looked up on its own side (removed rows on the
    original, added rows on the modified side).  The enclosing declaration's
    boundary is mapped back to row indices; overlapping ranges are merged.
    Each range is emitted as a FUNCTION_HEADER row, the rows themselves and
    a FUNCTION_SEPARATOR row.  A change outside any declaration keeps
    ``context_lines`` rows around it instead.  A pair without changes folds
    into a single COLLAPSED row so an unchanged file still renders.

    Both sides are always cut at the same row indices, so the result stays
    aligned.
    """
    sides = {
        LineKind.REMOVED: _side_index(pair.original_lines),
        LineKind.ADDED: _side_index(pair.modified_lines),
    }

    ranges: list[tuple[int, int, str | None]] = []
    for row, (original, modified) in enumerate(pair.rows()):
        kind = LineKind.REMOVED if original.kind is LineKind.REMOVED else modified.kind
        if kind not in sides:
            continue
        texts, rows, position_of_row = sides[kind]
        position = position_of_row.get(row)
        boundary = None
        if position is not None:
            boundary = find_function_boundaries(texts, position, max_lines=max_lines)
        # A declaration that closed above the change does not enclose it.
        if boundary is None or boundary.end < position:
            ranges.append((max(0, row - context_lines), min(len(pair) - 1, row + context_lines), None))
        else:
            ranges.append((rows[boundary.start], rows[boundary.end], boundary.declaration.label))

    if not ranges:
        # Unchanged file: one COLLAPSED row covering it, not an empty view.
        return collapse_context(pair, context_lines=0)

    ranges.sort(key=lambda r: (r[0], r[1]))
    merged: list[tuple[int, int, str | None]] = [ranges[0]]
    for start, end, label in ranges[1:]:
        last_start, last_end, last_label = merged[-1]
        if start <= last_end + 1:
            merged[-1] = (last_start, max(last_end, end), last_label or label)
        else:
            merged.append((start, end, label))

    builder = AlignedPairBuilder()
    for start, end, label in merged:
        if label:
            builder.marker(LineKind.FUNCTION_HEADER, label)
        builder.extend(pair.slice(start, end + 1))
        builder.marker(LineKind.FUNCTION_SEPARATOR)

    logger.debug("Expanded %d changed rows into %d function ranges", len(ranges), len(merged))
    return builder.build()
