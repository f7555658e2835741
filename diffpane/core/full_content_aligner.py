"""Full-content alignment: line diff of two complete file snapshots.

Preferred over diff-only reconstruction whenever both texts are available:
every line of both files is present, so there are no collapsed gaps.

The line diff is ``difflib.SequenceMatcher`` on a bounded window.  Common
prefix and suffix lines are peeled off first in linear time, which covers
the usual case of a few edits in a large file.  If the remaining middle is
still larger than ``max_window_lines``, lines that occur exactly once on
each side are used as anchors (patience-style, longest increasing
subsequence) and only the gaps between anchors are diffed; gaps that are
still too large are emitted as a plain remove-then-add block.
"""

from __future__ import annotations

import bisect
import logging
from collections import Counter
from collections.abc import Iterator
from difflib import SequenceMatcher

from diffpane.core.diff_parser import split_diff_lines
from diffpane.core.exceptions import AlignmentUnavailableError
from diffpane.core.line_model import AlignedPair, AlignedPairBuilder

logger = logging.getLogger(__name__)

DEFAULT_MAX_WINDOW_LINES: int = 4000
DEFAULT_MAX_FULL_CONTENT_LINES: int = 200_000

# (tag, a_start, a_end, b_start, b_end), same shape as SequenceMatcher opcodes.
Opcode = tuple[str, int, int, int, int]


# =============================================================================
#  Opcode computation
# =============================================================================


def _common_prefix(a: list[str], b: list[str]) -> int:
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return i


def _common_suffix(a: list[str], b: list[str], prefix: int) -> int:
    limit = min(len(a), len(b)) - prefix
    i = 0
    while i < limit and a[len(a) - 1 - i] == b[len(b) - 1 - i]:
        i += 1
    return i


def _unique_anchors(a: list[str], b: list[str]) -> list[tuple[int, int]]:
    """Index pairs of lines unique on both sides, kept in order on both."""
    a_counts = Counter(a)
    b_counts = Counter(b)
    b_index = {line: j for j, line in enumerate(b) if b_counts[line] == 1}
    candidates = [
        (i, b_index[line])
        for i, line in enumerate(a)
        if a_counts[line] == 1 and line in b_index
    ]

    # Longest increasing subsequence on the b-index.
    tails: list[int] = []
    tail_at: list[int] = []
    parents: list[int] = [-1] * len(candidates)
    for k, (_, j) in enumerate(candidates):
        pos = bisect.bisect_left(tails, j)
        if pos == len(tails):
            tails.append(j)
            tail_at.append(k)
        else:
            tails[pos] = j
            tail_at[pos] = k
        parents[k] = tail_at[pos - 1] if pos > 0 else -1

    anchors: list[tuple[int, int]] = []
    k = tail_at[-1] if tail_at else -1
    while k != -1:
        anchors.append(candidates[k])
        k = parents[k]
    anchors.reverse()
    return anchors


def _window_opcodes(
    a: list[str], b: list[str], a_off: int, b_off: int, max_window: int
) -> Iterator[Opcode]:
    """Opcodes for a region, diffing it only if it fits in the window."""
    if not a and not b:
        return
    if not a:
        yield ("insert", a_off, a_off, b_off, b_off + len(b))
        return
    if not b:
        yield ("delete", a_off, a_off + len(a), b_off, b_off)
        return
    if len(a) + len(b) > max_window:
        yield ("replace", a_off, a_off + len(a), b_off, b_off + len(b))
        return
    matcher = SequenceMatcher(None, a, b, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        yield (tag, a_off + i1, a_off + i2, b_off + j1, b_off + j2)


def _anchored_opcodes(
    a: list[str], b: list[str], a_off: int, b_off: int, max_window: int
) -> Iterator[Opcode]:
    anchors = _unique_anchors(a, b)
    logger.debug(
        "Bounded alignment: %d x %d lines, %d unique anchors",
        len(a),
        len(b),
        len(anchors),
    )
    i_prev = j_prev = 0
    for i, j in anchors:
        yield from _window_opcodes(a[i_prev:i], b[j_prev:j], a_off + i_prev, b_off + j_prev, max_window)
        yield ("equal", a_off + i, a_off + i + 1, b_off + j, b_off + j + 1)
        i_prev, j_prev = i + 1, j + 1
    yield from _window_opcodes(a[i_prev:], b[j_prev:], a_off + i_prev, b_off + j_prev, max_window)


def line_opcodes(a: list[str], b: list[str], max_window: int = DEFAULT_MAX_WINDOW_LINES) -> list[Opcode]:
    """Compute line-level edit opcodes turning ``a`` into ``b``."""
    prefix = _common_prefix(a, b)
    suffix = _common_suffix(a, b, prefix)
    a_mid = a[prefix:len(a) - suffix]
    b_mid = b[prefix:len(b) - suffix]

    opcodes: list[Opcode] = []
    if prefix:
        opcodes.append(("equal", 0, prefix, 0, prefix))
    if len(a_mid) + len(b_mid) <= max_window:
        opcodes.extend(_window_opcodes(a_mid, b_mid, prefix, prefix, max_window))
    else:
        opcodes.extend(_anchored_opcodes(a_mid, b_mid, prefix, prefix, max_window))
    if suffix:
        opcodes.append(("equal", len(a) - suffix, len(a), len(b) - suffix, len(b)))
    return opcodes


# =============================================================================
#  Alignment
# =============================================================================


def align_full_content(
    before: str,
    after: str,
    *,
    max_window_lines: int = DEFAULT_MAX_WINDOW_LINES,
    max_full_content_lines: int = DEFAULT_MAX_FULL_CONTENT_LINES,
) -> AlignedPair:
    """Align two complete file texts row by row.

    Args:
        before: Full text of the old revision ("" for a file that did not exist).
        after: Full text of the new revision ("" for a deleted file).
        max_window_lines: Largest region handed to the quadratic matcher.
        max_full_content_lines: Inputs with more lines than this are refused.

    Returns:
        An ``AlignedPair`` containing every line of both files.

    Raises:
        AlignmentUnavailableError: If either text exceeds the size cap.
    """
    before_lines = split_diff_lines(before)

    # Identical snapshots: no diff needed.
    if before == after:
        builder = AlignedPairBuilder()
        for number, line in enumerate(before_lines, start=1):
            builder.context(line, number, number)
        return builder.build()

    after_lines = split_diff_lines(after)
    if max(len(before_lines), len(after_lines)) > max_full_content_lines:
        raise AlignmentUnavailableError(
            f"File too large for full-content alignment: "
            f"{len(before_lines)}/{len(after_lines)} lines (cap {max_full_content_lines})"
        )

    builder = AlignedPairBuilder()
    for tag, i1, i2, j1, j2 in line_opcodes(before_lines, after_lines, max_window_lines):
        if tag == "equal":
            for offset in range(i2 - i1):
                builder.context(before_lines[i1 + offset], i1 + offset + 1, j1 + offset + 1)
            continue
        # "replace" is a removal run followed by an addition run.
        if tag in ("delete", "replace"):
            for i in range(i1, i2):
                builder.removed(before_lines[i], i + 1)
        if tag in ("insert", "replace"):
            for j in range(j1, j2):
                builder.added(after_lines[j], j + 1)

    pair = builder.build()
    logger.debug(
        "Aligned full content: %d rows (%d added, %d removed)",
        len(pair),
        pair.added_count,
        pair.removed_count,
    )
    return pair
