"""Diff-only reconstruction of an aligned pair.

Used when the full "before"/"after" texts are not available.  Only the lines
a diff actually shows can be rendered; everything between hunks is
represented by a single COLLAPSED row carrying the hidden line-number range.
No text is ever made up for lines that were never observed.

Alignment rule: an added or removed line never shares a row with real
content on the opposite side; the opposite side gets an EMPTY placeholder.
"""

from __future__ import annotations

import logging

from diffpane.core.diff_parser import Hunk, split_diff_lines
from diffpane.core.line_model import (
    AlignedPair,
    AlignedPairBuilder,
    CollapsedRange,
    LineKind,
)

logger = logging.getLogger(__name__)

# Lines the naive scanner treats as file/hunk headers rather than content.
_NAIVE_HEADER_PREFIXES: tuple[str, ...] = ("diff ", "index ", "+++", "---", "@@", "\\")


def _first_line(start: int, count: int) -> int:
    # A side with count 0 reports the line *after which* the change sits
    # (``@@ -0,0 +1,3 @@`` for a new file).
    return start if count else start + 1


def _hidden_range(old_next: int, old_line: int, new_next: int, new_line: int) -> CollapsedRange | None:
    """Lines skipped between the previous hunk and the current position."""
    if old_line <= old_next and new_line <= new_next:
        return None
    return CollapsedRange(
        old_start=old_next,
        old_end=max(old_line - 1, old_next - 1),
        new_start=new_next,
        new_end=max(new_line - 1, new_next - 1),
    )


def reconstruct_from_hunks(hunks: list[Hunk]) -> AlignedPair:
    """Build an aligned pair from parsed hunks.

    For each hunk the old/new counters start at the header's start lines:
    context lines advance both, removed lines advance only the old counter,
    added lines only the new one.  A hunk's section header becomes a
    CONTEXT_HEADER row.  Unseen lines before the first hunk and between
    hunks become one COLLAPSED row each.
    """
    builder = AlignedPairBuilder()
    # Next line number not yet accounted for on each side.
    old_next = 1
    new_next = 1

    for hunk in hunks:
        old_line = _first_line(hunk.old_start, hunk.old_count)
        new_line = _first_line(hunk.new_start, hunk.new_count)

        gap = _hidden_range(old_next, old_line, new_next, new_line)
        if gap is not None:
            builder.collapsed(gap)

        if hunk.header:
            builder.marker(LineKind.CONTEXT_HEADER, hunk.header)

        for raw in hunk.lines:
            if raw == "" or raw.startswith(" "):
                builder.context(raw[1:], old_line, new_line)
                old_line += 1
                new_line += 1
            elif raw.startswith("-"):
                builder.removed(raw[1:], old_line)
                old_line += 1
            elif raw.startswith("+"):
                builder.added(raw[1:], new_line)
                new_line += 1

        old_next = max(old_next, old_line)
        new_next = max(new_next, new_line)

    pair = builder.build()
    logger.debug(
        "Reconstructed %d rows from %d hunks (%d added, %d removed)",
        len(pair),
        len(hunks),
        pair.added_count,
        pair.removed_count,
    )
    return pair


def reconstruct_naive(diff_text: str) -> AlignedPair:
    """Line-by-line reconstruction for diffs without usable hunk headers.

    Every line is classified on its own: ``+`` is added, ``-`` is removed,
    anything else is context.  Line numbers are plain running counters
    starting at 1 on each side.
    """
    builder = AlignedPairBuilder()
    old_line = 1
    new_line = 1

    for line in split_diff_lines(diff_text):
        if line.startswith(_NAIVE_HEADER_PREFIXES):
            continue
        if line.startswith("+"):
            builder.added(line[1:], new_line)
            new_line += 1
        elif line.startswith("-"):
            builder.removed(line[1:], old_line)
            old_line += 1
        else:
            content = line[1:] if line.startswith(" ") else line
            builder.context(content, old_line, new_line)
            old_line += 1
            new_line += 1

    return builder.build()
