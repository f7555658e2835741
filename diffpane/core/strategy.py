"""Reconstruction strategy selection.

Picks the best available way to turn a diff into an aligned pair:

1. Full-content alignment, when both file snapshots are available.
2. Hunk reconstruction from the diff text alone.
3. Naive line-by-line scanning, when the diff has no usable hunk header.

Every path returns a structurally valid ``AlignedPair``.  Fallbacks are
recorded on the result (``degradations``) and logged, never raised.
Nothing here is cached: the decision depends only on the arguments.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from diffpane.core.content_fetcher import ContentFetcher, RepositoryCoordinates
from diffpane.core.diff_parser import RevisionPair, extract_revision_pair, parse_hunks
from diffpane.core.exceptions import AlignmentError, ContentFetchError
from diffpane.core.full_content_aligner import (
    DEFAULT_MAX_FULL_CONTENT_LINES,
    DEFAULT_MAX_WINDOW_LINES,
    align_full_content,
)
from diffpane.core.hunk_reconstructor import reconstruct_from_hunks, reconstruct_naive
from diffpane.core.line_model import AlignedPair

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT: float = 10.0


class ReconstructionStrategy(str, Enum):
    FULL_CONTENT = "full-content"
    HUNKS = "hunks"
    NAIVE = "naive"
    EMPTY = "empty"


@dataclass
class ReconstructionResult:
    """An aligned pair plus how it was obtained."""

    pair: AlignedPair
    strategy: ReconstructionStrategy
    degradations: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.degradations)


def _from_diff_text(diff_text: str | None, degradations: list[str]) -> ReconstructionResult:
    """Diff-only reconstruction: hunks if any parse, naive scan otherwise."""
    if not diff_text or not diff_text.strip():
        return ReconstructionResult(AlignedPair(), ReconstructionStrategy.EMPTY, degradations)

    hunks = parse_hunks(diff_text)
    if hunks:
        return ReconstructionResult(reconstruct_from_hunks(hunks), ReconstructionStrategy.HUNKS, degradations)

    degradations.append("no parsable hunk headers; used line-by-line scan")
    logger.warning("Diff has no parsable hunks, falling back to naive scan")
    return ReconstructionResult(reconstruct_naive(diff_text), ReconstructionStrategy.NAIVE, degradations)


def reconstruct(
    diff_text: str | None,
    before: str | None = None,
    after: str | None = None,
    *,
    full_content: bool = True,
    max_window_lines: int = DEFAULT_MAX_WINDOW_LINES,
    max_full_content_lines: int = DEFAULT_MAX_FULL_CONTENT_LINES,
    degradations: list[str] | None = None,
) -> ReconstructionResult:
    """Build an aligned pair from whatever inputs are available.

    Args:
        diff_text: Unified diff for one file (may be empty).
        before: Full old text, or None if unavailable.
        after: Full new text, or None if unavailable.
        full_content: Set False to force diff-only reconstruction.
        max_window_lines: Passed to the full-content aligner.
        max_full_content_lines: Passed to the full-content aligner.
        degradations: Fallbacks already taken by the caller, carried over.

    Returns:
        A ``ReconstructionResult``; never raises for bad input.
    """
    degradations = list(degradations or [])

    if full_content and before is not None and after is not None:
        try:
            pair = align_full_content(
                before,
                after,
                max_window_lines=max_window_lines,
                max_full_content_lines=max_full_content_lines,
            )
        except AlignmentError as exc:
            degradations.append(f"full-content alignment unavailable: {exc}")
            logger.warning("Full-content alignment unavailable, using diff text: %s", exc)
        else:
            return ReconstructionResult(pair, ReconstructionStrategy.FULL_CONTENT, degradations)

    return _from_diff_text(diff_text, degradations)


async def reconstruct_with_fetcher(
    diff_text: str | None,
    fetcher: ContentFetcher,
    coordinates: RepositoryCoordinates,
    path: str,
    revisions: RevisionPair | None = None,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_window_lines: int = DEFAULT_MAX_WINDOW_LINES,
    max_full_content_lines: int = DEFAULT_MAX_FULL_CONTENT_LINES,
) -> ReconstructionResult:
    """Fetch both snapshots in parallel, then reconstruct.

    Revisions default to the ``index <base>..<head>`` line of the diff.
    A fetch error or timeout cancels the other fetch and degrades to
    diff-only reconstruction.  One missing side (file added or deleted) is
    treated as an empty file; both missing also degrades.
    """
    degradations: list[str] = []
    revisions = revisions or extract_revision_pair(diff_text or "")
    if revisions is None:
        degradations.append("no revision pair known; full content not fetched")
        logger.info("No revisions for %s, reconstructing from diff text", path)
        return _from_diff_text(diff_text, degradations)

    # The task group cancels the other side as soon as one fetch fails.
    fetched = True
    try:
        async with asyncio.timeout(timeout):
            async with asyncio.TaskGroup() as group:
                base_task = group.create_task(fetcher.fetch(coordinates, path, revisions.base))
                head_task = group.create_task(fetcher.fetch(coordinates, path, revisions.head))
    except* TimeoutError:
        fetched = False
        degradations.append(f"content fetch timed out after {timeout:g}s")
        logger.warning(
            "Content fetch timed out, using diff text",
            extra={"path": path, "timeout": timeout},
        )
    except* ContentFetchError as group_exc:
        fetched = False
        exc = group_exc.exceptions[0]
        degradations.append(f"content fetch failed: {exc}")
        logger.warning(
            "Content fetch failed, using diff text: %s",
            exc,
            extra={"path": path, "status_code": exc.status_code},
        )

    if not fetched:
        return _from_diff_text(diff_text, degradations)

    before, after = base_task.result(), head_task.result()
    if before is None and after is None:
        degradations.append("file not found at either revision")
        logger.warning("File %s missing at both revisions, using diff text", path)
        return _from_diff_text(diff_text, degradations)

    return reconstruct(
        diff_text,
        before if before is not None else "",
        after if after is not None else "",
        max_window_lines=max_window_lines,
        max_full_content_lines=max_full_content_lines,
        degradations=degradations,
    )
