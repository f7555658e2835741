"""Diff alignment endpoints.

POST /api/diffs/align         : diff text, optionally with both snapshots inline.
POST /api/diffs/align/remote  : diff text plus repository coordinates; the
                                snapshots are fetched from the provider.

Both return a ``DiffViewResponse``.  Reconstruction problems never turn into
error responses: the body carries ``degraded`` and ``degradations`` instead.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from diffpane.core.content_fetcher import RepositoryCoordinates
from diffpane.core.diff_parser import RevisionPair
from diffpane.core.diff_view import DiffViewService, UnknownProviderError
from diffpane.models.diff_view import AlignRequest, DiffViewResponse, RemoteAlignRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["diffs"])


def get_diff_view_service(request: Request) -> DiffViewService:
    """Return the service created during application startup."""
    return request.app.state.diff_view_service


@router.post("/align", response_model=DiffViewResponse)
async def align_diff(
    body: AlignRequest,
    service: DiffViewService = Depends(get_diff_view_service),
) -> DiffViewResponse:
    """Align a diff using only what the caller sent."""
    view = service.build_view(
        body.diff_text,
        body.before,
        body.after,
        context_lines=body.context_lines,
        expand_functions=body.expand_functions,
    )
    return DiffViewResponse.from_view(view)


@router.post("/align/remote", response_model=DiffViewResponse)
async def align_remote_diff(
    body: RemoteAlignRequest,
    service: DiffViewService = Depends(get_diff_view_service),
) -> DiffViewResponse:
    """Align a diff, fetching full content from GitHub or Azure DevOps.

    Raises:
        HTTPException(400): if no fetcher is configured for the provider.
    """
    coordinates = RepositoryCoordinates(
        provider=body.provider,
        organization=body.organization,
        repository=body.repository,
        project=body.project,
    )
    revisions = None
    if body.base_revision and body.head_revision:
        revisions = RevisionPair(base=body.base_revision, head=body.head_revision)

    try:
        view = await service.build_remote_view(
            body.diff_text,
            coordinates,
            body.path,
            revisions,
            context_lines=body.context_lines,
            expand_functions=body.expand_functions,
        )
    except UnknownProviderError as exc:
        logger.warning("Rejected remote align: %s", exc, extra={"provider": body.provider})
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return DiffViewResponse.from_view(view)
