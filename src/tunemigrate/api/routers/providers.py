"""Provider status and destination maintenance endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, status

from tunemigrate.api.dependencies import (
    get_app_settings,
    get_cleanup_service,
    get_progress_store,
    get_run_registry,
    get_spotify_client,
    get_spotify_token,
    get_tidal_token,
)
from tunemigrate.api.schemas import AuthStatus, LikedTrackDTO, RunAccepted
from tunemigrate.application.services.library_cleanup_service import (
    LibraryCleanupService,
)
from tunemigrate.application.services.progress_tracker import ProgressStore
from tunemigrate.application.workers.migration_runner import (
    BackgroundRunRegistry,
    CancellationToken,
)
from tunemigrate.config import Settings
from tunemigrate.infrastructure.integrations.spotify_client import SpotifyClient

logger = logging.getLogger(__name__)

spotify_router = APIRouter()
tidal_router = APIRouter()


# Yo, "authorized" only means the cookie is there. We don't ping the provider,
# an expired token shows up as soon as a run makes its first call.
@spotify_router.get("/status", response_model=AuthStatus)
async def spotify_status(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> AuthStatus:
    return AuthStatus(authorized=bool(request.cookies.get(settings.spotify.token_cookie)))


@spotify_router.get("/liked-tracks", response_model=list[LikedTrackDTO])
async def spotify_liked_tracks(
    token: str = Depends(get_spotify_token),
    client: SpotifyClient = Depends(get_spotify_client),
) -> list[LikedTrackDTO]:
    """All liked tracks of the Spotify user, newest first."""
    tracks = await client.get_liked_tracks(token)
    return [LikedTrackDTO.from_entity(track) for track in tracks]


@tidal_router.get("/status", response_model=AuthStatus)
async def tidal_status(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> AuthStatus:
    return AuthStatus(authorized=bool(request.cookies.get(settings.tidal.token_cookie)))


@tidal_router.delete(
    "/tracks", status_code=status.HTTP_202_ACCEPTED, response_model=RunAccepted
)
async def delete_tidal_favorites(
    token: str = Depends(get_tidal_token),
    store: ProgressStore = Depends(get_progress_store),
    runs: BackgroundRunRegistry = Depends(get_run_registry),
    cleanup: LibraryCleanupService = Depends(get_cleanup_service),
) -> RunAccepted:
    """Remove every liked track from Tidal, in the background."""
    run_id, record = store.create()

    async def _run(cancel_token: CancellationToken) -> None:
        await cleanup.delete_all_favorites(token, record, cancel_token)

    runs.spawn(run_id, _run)
    return RunAccepted(message="Deleting liked tracks", uuid=run_id)


@tidal_router.delete(
    "/playlists", status_code=status.HTTP_202_ACCEPTED, response_model=RunAccepted
)
async def delete_tidal_playlists(
    token: str = Depends(get_tidal_token),
    store: ProgressStore = Depends(get_progress_store),
    runs: BackgroundRunRegistry = Depends(get_run_registry),
    cleanup: LibraryCleanupService = Depends(get_cleanup_service),
) -> RunAccepted:
    """Delete every playlist the Tidal user owns, in the background."""
    run_id, record = store.create()

    async def _run(cancel_token: CancellationToken) -> None:
        await cleanup.delete_all_playlists(token, record, cancel_token)

    runs.spawn(run_id, _run)
    return RunAccepted(message="Deleting playlists", uuid=run_id)
