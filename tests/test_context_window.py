"""Tests for folding unchanged rows of a full-content pair."""

from __future__ import annotations

import pytest

from diffpane.core.context_window import collapse_context
from diffpane.core.full_content_aligner import align_full_content
from diffpane.core.line_model import AlignedPair, CollapsedRange, LineKind

BEFORE = "\n".join(f"line {i}" for i in range(1, 21)) + "\n"
AFTER = BEFORE.replace("line 10\n", "line ten\n")


@pytest.fixture()
def pair() -> AlignedPair:
    return align_full_content(BEFORE, AFTER)


class TestCollapseContext:
    def test_aligned_input_shape(self, pair) -> None:
        assert len(pair) == 21

    def test_folds_both_ends(self, pair) -> None:
        folded = collapse_context(pair, context_lines=3)
        assert len(folded) == 10
        assert folded.original_lines[0].collapsed == CollapsedRange(1, 6, 1, 6)
        assert folded.original_lines[-1].collapsed == CollapsedRange(14, 20, 14, 20)

    def test_keeps_context_around_change(self, pair) -> None:
        folded = collapse_context(pair, context_lines=3)
        visible = [l.line_number for l in folded.original_lines[1:4]]
        assert visible == [7, 8, 9]

    def test_changes_never_folded(self, pair) -> None:
        folded = collapse_context(pair, context_lines=0)
        assert folded.removed_count == 1
        assert folded.added_count == 1
        assert len(folded) == 4

    def test_large_window_keeps_everything(self, pair) -> None:
        folded = collapse_context(pair, context_lines=100)
        assert folded.rows() == pair.rows()

    def test_no_changes_single_row(self) -> None:
        unchanged = align_full_content(BEFORE, BEFORE)
        folded = collapse_context(unchanged)
        assert len(folded) == 1
        assert folded.modified_lines[0].kind is LineKind.COLLAPSED
        assert folded.modified_lines[0].collapsed.line_count == 20

    def test_empty(self) -> None:
        assert len(collapse_context(AlignedPair())) == 0

    def test_sides_equal_length(self, pair) -> None:
        folded = collapse_context(pair, context_lines=2)
        assert len(folded.original_lines) == len(folded.modified_lines)
