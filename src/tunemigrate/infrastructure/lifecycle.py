"""Application lifecycle: shared state wiring, startup and shutdown.

Hey future me - there are exactly TWO gateways in this process, one per provider,
built here and nowhere else. Every run and every request handler goes through them,
so their throttles are the provider rate budgets. Don't construct a RequestGateway
anywhere else or the spacing guarantee is gone!

app.state after init_app_state():
- settings
- spotify_gateway / tidal_gateway
- spotify_client / tidal_client
- progress_store / progress_publisher
- runs (BackgroundRunRegistry)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from tunemigrate.application.services.progress_stream import ProgressStreamPublisher
from tunemigrate.application.services.progress_tracker import ProgressStore
from tunemigrate.application.workers.migration_runner import BackgroundRunRegistry
from tunemigrate.config import Settings
from tunemigrate.infrastructure.integrations.http_pool import HttpClientPool
from tunemigrate.infrastructure.integrations.request_gateway import RequestGateway
from tunemigrate.infrastructure.integrations.spotify_client import SpotifyClient
from tunemigrate.infrastructure.integrations.tidal_client import JSON_API, TidalClient
from tunemigrate.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


def init_app_state(
    app: FastAPI, settings: Settings, http_client: httpx.AsyncClient | None = None
) -> None:
    """Build the shared per-process objects and park them on app.state.

    Args:
        app: The application
        settings: Settings to build from
        http_client: Injected HTTP client (tests use an httpx.MockTransport one).
            None means the shared HttpClientPool client.
    """
    app.state.settings = settings

    spotify_gateway = RequestGateway(
        "spotify",
        settings.spotify.api_base_url,
        settings.gateway,
        client=http_client,
    )
    tidal_gateway = RequestGateway(
        "tidal",
        settings.tidal.api_base_url,
        settings.gateway,
        client=http_client,
        default_headers={"Accept": JSON_API},
    )
    app.state.spotify_gateway = spotify_gateway
    app.state.tidal_gateway = tidal_gateway
    app.state.spotify_client = SpotifyClient(spotify_gateway, settings.spotify)
    app.state.tidal_client = TidalClient(tidal_gateway, settings.tidal)

    store = ProgressStore(
        max_records=settings.progress.max_records,
        ttl_seconds=settings.progress.record_ttl_seconds,
    )
    app.state.progress_store = store
    app.state.progress_publisher = ProgressStreamPublisher(
        store, poll_interval=settings.progress.poll_interval_seconds
    )
    app.state.runs = BackgroundRunRegistry()


# Listen future me, everything before `yield` runs at STARTUP, everything after at
# SHUTDOWN. Shutdown order matters: runs first (they still use the HTTP client),
# then the pool.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles:
    - Logging configuration
    - Stopping detached runs on shutdown
    - Closing the shared HTTP client pool
    """
    settings: Settings = app.state.settings

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    try:
        yield
    finally:
        logger.info("Shutting down application")

        runs: BackgroundRunRegistry | None = getattr(app.state, "runs", None)
        if runs is not None:
            try:
                await runs.shutdown(settings.runs.shutdown_grace_seconds)
            except Exception as e:
                logger.exception("Error stopping background runs: %s", e)

        try:
            await HttpClientPool.close()
            logger.info("HTTP client pool closed")
        except Exception as e:
            logger.exception("Error closing HTTP client pool: %s", e)
