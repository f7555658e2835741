"""Health-check endpoint.

The renderer polls this before its first request.  Besides liveness it
reports which providers can serve full file content, so the renderer knows
whether a remote align will be full-content or diff-only, and how many
reconstructions are currently cached.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from diffpane.api.diffs import get_diff_view_service
from diffpane.core.diff_view import DiffViewService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    service: DiffViewService = Depends(get_diff_view_service),
) -> dict[str, object]:
    """Report liveness, content providers and cache occupancy."""
    return {
        "status": "healthy",
        "providers": sorted(service.fetchers),
        "cached_views": len(service.cache),
    }
