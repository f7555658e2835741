"""FastAPI application entry point.

Start with:
    uvicorn diffpane.main:app --reload

The app exposes the alignment engine to an external renderer:
- Lifespan creates the per-session diff view service (fetchers + cache)
- CORS middleware configured for a browser-hosted renderer
- Router includes for diffs and health
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from diffpane.config import get_settings
from diffpane.core.diff_view import DiffViewService

assert sys.version_info >= (3, 12), "diffpane requires Python 3.12+"

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Lifespan: startup / shutdown
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: configure logging and build the shared service."""
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("diffpane starting up")

    app.state.diff_view_service = DiffViewService(settings)
    logger.info(
        "Diff view service ready",
        extra={
            "providers": sorted(app.state.diff_view_service.fetchers),
            "cache_ttl_seconds": settings.diff_cache_ttl_seconds,
        },
    )

    yield

    app.state.diff_view_service.cache.clear()
    logger.info("diffpane shutting down")


# ---------------------------------------------------------------------------
#  FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="diffpane",
    description="Side-by-side diff alignment engine: aligned line pairs and minimap marks",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS: the renderer is typically a webview on another origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
#  Router Registration
# ---------------------------------------------------------------------------

# Import routers lazily to avoid circular-import issues.
from diffpane.api.diffs import router as diffs_router  # noqa: E402
from diffpane.api.health import router as health_router  # noqa: E402

app.include_router(diffs_router, prefix="/api/diffs")
app.include_router(health_router)
