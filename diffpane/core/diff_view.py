"""Diff view service: reconstruct, shape and summarize one file's diff.

Glues the pure engine pieces together for a caller that wants something to
render: strategy selection, the optional context window or function
expansion, and the minimap.  Remote views fetch full content through the
provider's fetcher and are cached per (repository, path, revisions).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from diffpane.config import Settings
from diffpane.core.content_fetcher import (
    AzureDevOpsContentFetcher,
    ContentFetcher,
    GitHubContentFetcher,
    RepositoryCoordinates,
)
from diffpane.core.context_window import collapse_context
from diffpane.core.diff_cache import DiffCache, DiffCacheKey
from diffpane.core.diff_parser import RevisionPair, extract_revision_pair
from diffpane.core.function_boundary import expand_to_functions
from diffpane.core.line_model import AlignedPair
from diffpane.core.minimap import ChangeMark, build_minimap
from diffpane.core.strategy import (
    ReconstructionResult,
    ReconstructionStrategy,
    reconstruct,
    reconstruct_with_fetcher,
)

logger = logging.getLogger(__name__)


@dataclass
class DiffView:
    """Everything a renderer needs for one file."""

    pair: AlignedPair
    marks: list[ChangeMark]
    strategy: ReconstructionStrategy
    degradations: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.degradations)


class UnknownProviderError(LookupError):
    """No fetcher is configured for the requested provider."""


class DiffViewService:
    """Builds ``DiffView`` objects; one instance per application lifespan."""

    def __init__(
        self,
        settings: Settings,
        fetchers: dict[str, ContentFetcher] | None = None,
        cache: DiffCache[ReconstructionResult] | None = None,
    ) -> None:
        self.settings = settings
        self.fetchers = fetchers if fetchers is not None else self._default_fetchers(settings)
        self.cache: DiffCache[ReconstructionResult] = cache or DiffCache(
            ttl_seconds=settings.diff_cache_ttl_seconds,
            max_entries=settings.diff_cache_max_entries,
        )

    @staticmethod
    def _default_fetchers(settings: Settings) -> dict[str, ContentFetcher]:
        fetchers: dict[str, ContentFetcher] = {}
        for provider in settings.enabled_providers:
            if provider == "github":
                fetchers[provider] = GitHubContentFetcher(
                    settings.github_token,
                    api_base=settings.github_api_base,
                    timeout=settings.content_fetch_timeout_seconds,
                )
            elif provider == "azure_devops":
                fetchers[provider] = AzureDevOpsContentFetcher(
                    settings.azure_devops_pat,
                    timeout=settings.content_fetch_timeout_seconds,
                )
        return fetchers

    # ------------------------------------------------------------------
    #  Shaping
    # ------------------------------------------------------------------

    def _finish(
        self,
        result: ReconstructionResult,
        *,
        context_lines: int | None,
        expand_functions: bool,
    ) -> DiffView:
        pair = result.pair
        if expand_functions:
            pair = expand_to_functions(
                pair,
                max_lines=self.settings.function_scan_max_lines,
                context_lines=self.settings.context_lines,
            )
        elif context_lines is not None and result.strategy is ReconstructionStrategy.FULL_CONTENT:
            # Diff-only pairs are already limited to the diff's own context.
            pair = collapse_context(pair, context_lines=context_lines)

        view = DiffView(
            pair=pair,
            marks=build_minimap(pair),
            strategy=result.strategy,
            degradations=list(result.degradations),
        )
        logger.info(
            "Built diff view",
            extra={
                "strategy": result.strategy.value,
                "rows": len(pair),
                "marks": len(view.marks),
                "degraded": view.degraded,
            },
        )
        return view

    # ------------------------------------------------------------------
    #  Public API
    # ------------------------------------------------------------------

    def build_view(
        self,
        diff_text: str | None,
        before: str | None = None,
        after: str | None = None,
        *,
        context_lines: int | None = None,
        expand_functions: bool = False,
    ) -> DiffView:
        """Build a view from caller-supplied inputs.  Never touches the network."""
        result = reconstruct(
            diff_text,
            before,
            after,
            max_window_lines=self.settings.lcs_max_window_lines,
            max_full_content_lines=self.settings.max_full_content_lines,
        )
        return self._finish(result, context_lines=context_lines, expand_functions=expand_functions)

    async def build_remote_view(
        self,
        diff_text: str | None,
        coordinates: RepositoryCoordinates,
        path: str,
        revisions: RevisionPair | None = None,
        *,
        context_lines: int | None = None,
        expand_functions: bool = False,
    ) -> DiffView:
        """Build a view, fetching full content from the repository's provider.

        Raises:
            UnknownProviderError: If no fetcher serves ``coordinates.provider``.
        """
        fetcher = self.fetchers.get(coordinates.provider)
        if fetcher is None:
            raise UnknownProviderError(f"No content fetcher configured for {coordinates.provider!r}")

        revisions = revisions or extract_revision_pair(diff_text or "")
        key = DiffCacheKey(coordinates, path, revisions) if revisions else None

        # The unshaped reconstruction is cached; shaping is cheap and pure.
        result = self.cache.get(key) if key is not None else None
        if result is not None:
            logger.debug("Diff cache hit", extra={"path": path})
        else:
            result = await reconstruct_with_fetcher(
                diff_text,
                fetcher,
                coordinates,
                path,
                revisions,
                timeout=self.settings.content_fetch_timeout_seconds,
                max_window_lines=self.settings.lcs_max_window_lines,
                max_full_content_lines=self.settings.max_full_content_lines,
            )
            # Degraded results are not cached so the next request retries the fetch.
            if key is not None and not result.degraded:
                self.cache.put(key, result)

        return self._finish(result, context_lines=context_lines, expand_functions=expand_functions)
