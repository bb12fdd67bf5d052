"""Dependency injection for API endpoints.

Hey future me - everything shared lives on app.state (see
infrastructure/lifecycle.py init_app_state). These functions just hand it out,
so tests can swap any of them via app.dependency_overrides.
"""

import logging
from typing import cast

from fastapi import Depends, Request

from tunemigrate.application.services.library_cleanup_service import (
    LibraryCleanupService,
)
from tunemigrate.application.services.migration_service import MigrationOrchestrator
from tunemigrate.application.services.progress_stream import ProgressStreamPublisher
from tunemigrate.application.services.progress_tracker import ProgressStore
from tunemigrate.application.workers.migration_runner import BackgroundRunRegistry
from tunemigrate.config import Settings
from tunemigrate.domain.exceptions import AuthenticationError
from tunemigrate.infrastructure.integrations.spotify_client import SpotifyClient
from tunemigrate.infrastructure.integrations.tidal_client import TidalClient

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return cast(Settings, request.app.state.settings)


def get_progress_store(request: Request) -> ProgressStore:
    return cast(ProgressStore, request.app.state.progress_store)


def get_progress_publisher(request: Request) -> ProgressStreamPublisher:
    return cast(ProgressStreamPublisher, request.app.state.progress_publisher)


def get_run_registry(request: Request) -> BackgroundRunRegistry:
    return cast(BackgroundRunRegistry, request.app.state.runs)


def get_spotify_client(request: Request) -> SpotifyClient:
    return cast(SpotifyClient, request.app.state.spotify_client)


def get_tidal_client(request: Request) -> TidalClient:
    return cast(TidalClient, request.app.state.tidal_client)


def get_migration_orchestrator(
    source: SpotifyClient = Depends(get_spotify_client),
    destination: TidalClient = Depends(get_tidal_client),
) -> MigrationOrchestrator:
    return MigrationOrchestrator(source, destination)


def get_cleanup_service(
    destination: TidalClient = Depends(get_tidal_client),
) -> LibraryCleanupService:
    return LibraryCleanupService(destination)


# Yo, the OAuth callbacks (out of scope here) drop the bearer tokens into HTTP-only
# cookies. Cookie names come from settings, so we read request.cookies directly
# instead of a fixed Cookie(alias=...) parameter.
def get_spotify_token(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> str:
    """Spotify bearer token from its cookie.

    Raises:
        AuthenticationError: Cookie missing or empty
    """
    token = request.cookies.get(settings.spotify.token_cookie)
    if not token:
        raise AuthenticationError("Spotify")
    return token


def get_tidal_token(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> str:
    """Tidal bearer token from its cookie.

    Raises:
        AuthenticationError: Cookie missing or empty
    """
    token = request.cookies.get(settings.tidal.token_cookie)
    if not token:
        raise AuthenticationError("Tidal")
    return token
