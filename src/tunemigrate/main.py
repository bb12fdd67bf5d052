"""FastAPI application factory and server entry point."""

import logging

import httpx
import uvicorn
from fastapi import FastAPI

from tunemigrate.api.exception_handlers import register_exception_handlers
from tunemigrate.api.routers import api_router
from tunemigrate.config import Settings, get_settings
from tunemigrate.infrastructure.lifecycle import init_app_state, lifespan
from tunemigrate.infrastructure.observability import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


# Hey future me - tests call create_app(settings, http_client=<MockTransport client>)
# and get a fully wired app that never touches the network. Production goes through
# the module-level `app` below (uvicorn tunemigrate.main:app).
def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (None = get_settings())
        http_client: HTTP client for both provider gateways (None = shared pool)

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Move liked tracks and playlists from Spotify to Tidal",
        lifespan=lifespan,
    )
    init_app_state(app, settings, http_client=http_client)

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "tunemigrate.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
