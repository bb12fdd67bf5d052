"""Fixtures for API tests: a fully wired app over mock providers."""

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tunemigrate.config import Settings
from tunemigrate.main import create_app


@pytest.fixture
def spotify_liked() -> list[dict[str, Any]]:
    return [
        {
            "added_at": "2024-02-01T00:00:00Z",
            "track": {"id": "s2", "name": "Newer", "external_ids": {"isrc": "ISRC2"}},
        },
        {
            "added_at": "2024-01-01T00:00:00Z",
            "track": {"id": "s1", "name": "Older", "external_ids": {"isrc": "ISRC1"}},
        },
    ]


@pytest.fixture
def provider_handler(
    fake_tidal, spotify_liked: list[dict[str, Any]]
) -> Callable[[httpx.Request], httpx.Response]:
    """Routes calls to the fake Tidal or a minimal fake Spotify by host."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "openapi.tidal.test":
            return fake_tidal.handler(request)
        path = request.url.path
        if path == "/v1/me":
            return httpx.Response(200, json={"id": "me"})
        if path == "/v1/me/tracks":
            return httpx.Response(200, json={"items": spotify_liked, "next": None})
        if path == "/v1/me/playlists":
            return httpx.Response(200, json={"items": [], "next": None})
        return httpx.Response(404, json={"error": {"status": 404, "message": path}})

    return handler


@pytest.fixture
def app(
    settings: Settings, provider_handler: Callable[[httpx.Request], httpx.Response]
) -> FastAPI:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(provider_handler))
    return create_app(settings, http_client=http_client)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    # `with` runs the lifespan and keeps one loop alive for background runs
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def authed_client(client: TestClient, settings: Settings) -> TestClient:
    client.cookies.set(settings.spotify.token_cookie, "spotify-token")
    client.cookies.set(settings.tidal.token_cookie, "tidal-token")
    return client
