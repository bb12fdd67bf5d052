"""API router initialization."""

# Hey future me, this aggregates all routers. Unlike most APIs these live at the ROOT
# (no /api prefix): the browser frontend posts to /migrate and opens /progress directly.

from fastapi import APIRouter

from tunemigrate.api.routers import migration, progress, providers

api_router = APIRouter()

api_router.include_router(migration.router, tags=["Migration"])
api_router.include_router(progress.router, tags=["Progress"])
api_router.include_router(providers.spotify_router, prefix="/spotify", tags=["Spotify"])
api_router.include_router(providers.tidal_router, prefix="/tidal", tags=["Tidal"])

__all__ = ["api_router"]
