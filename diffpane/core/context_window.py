"""Collapse long unchanged stretches of an aligned pair.

A full-content pair of a large file is mostly context.  ``collapse_context``
keeps ``context_lines`` rows around every change and folds each longer
unchanged run into a single COLLAPSED row, like a unified diff does, but
with the real line numbers of the hidden rows.
"""

from __future__ import annotations

import logging

from diffpane.core.line_model import (
    AlignedPair,
    AlignedPairBuilder,
    CollapsedRange,
    LineKind,
    LineRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES: int = 3


def _is_unchanged(original: LineRecord, modified: LineRecord) -> bool:
    return original.kind is LineKind.CONTEXT and modified.kind is LineKind.CONTEXT


def _collapsed_range(rows: list[tuple[LineRecord, LineRecord]]) -> CollapsedRange:
    old_numbers = [o.line_number for o, _ in rows if o.line_number is not None]
    new_numbers = [m.line_number for _, m in rows if m.line_number is not None]
    return CollapsedRange(
        old_start=old_numbers[0] if old_numbers else 0,
        old_end=old_numbers[-1] if old_numbers else -1,
        new_start=new_numbers[0] if new_numbers else 0,
        new_end=new_numbers[-1] if new_numbers else -1,
    )


def collapse_context(pair: AlignedPair, *, context_lines: int = DEFAULT_CONTEXT_LINES) -> AlignedPair:
    """Keep ``context_lines`` unchanged rows around each change, fold the rest.

    Rows that are not plain context on both sides (changes, placeholders,
    headers, existing collapsed markers) are always kept.  A pair without
    any change collapses into a single COLLAPSED row.
    """
    rows = pair.rows()
    total = len(rows)
    if total == 0 or context_lines < 0:
        return pair

    # Distance (in rows) to the nearest kept-for-sure row, forward then back.
    far = total + context_lines + 1
    distance = [far] * total
    last = -far
    for i, (original, modified) in enumerate(rows):
        if not _is_unchanged(original, modified):
            last = i
        distance[i] = i - last
    last = total + far
    for i in range(total - 1, -1, -1):
        original, modified = rows[i]
        if not _is_unchanged(original, modified):
            last = i
        distance[i] = min(distance[i], last - i)

    builder = AlignedPairBuilder()
    hidden: list[tuple[LineRecord, LineRecord]] = []
    folded = 0
    for i, (original, modified) in enumerate(rows):
        if distance[i] > context_lines:
            hidden.append((original, modified))
            continue
        if hidden:
            builder.collapsed(_collapsed_range(hidden))
            folded += len(hidden)
            hidden = []
        builder.row(original, modified)
    if hidden:
        builder.collapsed(_collapsed_range(hidden))
        folded += len(hidden)

    result = builder.build()
    logger.debug("Collapsed %d of %d rows (context %d)", folded, total, context_lines)
    return result
