"""Minimap aggregation: a compact overview of where a file changed.

Each ``ChangeMark`` is a dot on the overview strip next to the diff view.
Positions are percentages of the side's row count, so a mark lines up with
the row it points at regardless of how tall the strip is rendered.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from diffpane.core.line_model import AlignedPair, LineKind, LineRecord

logger = logging.getLogger(__name__)

PREVIEW_LENGTH: int = 20

# Marks whose positions round to the same bucket collapse into one dot.
BUCKET_SIZE: float = 0.5


@dataclass(frozen=True)
class ChangeMark:
    """One dot on the overview strip."""

    kind: LineKind                # ADDED or REMOVED
    line_number: int | None
    position: float               # 0-100, percentage of the side's row count
    preview_text: str


def _first_by_line_number(lines: list[LineRecord]) -> dict[int, LineRecord]:
    by_number: dict[int, LineRecord] = {}
    for line in lines:
        if line.line_number is not None and line.line_number not in by_number:
            by_number[line.line_number] = line
    return by_number


def _side_marks(
    lines: list[LineRecord],
    kind: LineKind,
    opposite: dict[int, LineRecord],
) -> list[ChangeMark]:
    """Marks for the real changes of one kind on one side."""
    marks: list[ChangeMark] = []
    total = len(lines)
    for index, line in enumerate(lines):
        if line.kind is not kind:
            continue
        trimmed = line.content.strip()
        if not trimmed:
            continue

        # Same line number on the other side with the same text once
        # whitespace is ignored: a reformatting artifact, not a change.
        counterpart = opposite.get(line.line_number) if line.line_number is not None else None
        if counterpart is not None and counterpart.content.strip() == trimmed:
            logger.debug("Skipping whitespace-only %s line %s", kind.value, line.line_number)
            continue

        marks.append(
            ChangeMark(
                kind=kind,
                line_number=line.line_number,
                position=((index + 1) / total) * 100,
                preview_text=line.content[:PREVIEW_LENGTH],
            )
        )
    return marks


def _bucket(position: float) -> float:
    # Half-up rounding so 0.25 lands in the 0.5 bucket, not the 0.0 one.
    return math.floor(position / BUCKET_SIZE + 0.5) * BUCKET_SIZE


def build_minimap(pair: AlignedPair) -> list[ChangeMark]:
    """Derive the overview marks for an aligned pair.

    Added lines come from the modified side, removed lines from the original
    side.  Marks that fall into the same 0.5% bucket are merged into one;
    an added mark wins over a removed one.

    Returns:
        Marks sorted by ascending position, at most one per bucket.
    """
    if not pair.original_lines and not pair.modified_lines:
        return []

    original_by_number = _first_by_line_number(pair.original_lines)
    modified_by_number = _first_by_line_number(pair.modified_lines)

    candidates = _side_marks(pair.modified_lines, LineKind.ADDED, original_by_number)
    candidates += _side_marks(pair.original_lines, LineKind.REMOVED, modified_by_number)

    groups: dict[float, ChangeMark] = {}
    for mark in candidates:
        bucket = _bucket(mark.position)
        chosen = groups.get(bucket)
        if chosen is None or (chosen.kind is not LineKind.ADDED and mark.kind is LineKind.ADDED):
            groups[bucket] = mark

    marks = [groups[bucket] for bucket in sorted(groups)]
    logger.debug(
        "Built minimap: %d marks from %d candidates (%d added, %d removed)",
        len(marks),
        len(candidates),
        sum(1 for m in marks if m.kind is LineKind.ADDED),
        sum(1 for m in marks if m.kind is LineKind.REMOVED),
    )
    return marks
