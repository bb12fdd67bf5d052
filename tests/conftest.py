"""Shared test fixtures.

Hey future me - nothing here ever talks to a real provider. Gateways get an
httpx.AsyncClient over httpx.MockTransport, and every delay knob is cranked
down so throttle/retry/poll waits don't slow the suite.
"""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from tunemigrate.config import (
    GatewaySettings,
    ProgressSettings,
    Settings,
    SpotifySettings,
    TidalSettings,
)
from tunemigrate.infrastructure.integrations.request_gateway import RequestGateway

Handler = Callable[[httpx.Request], httpx.Response]

SPOTIFY_BASE = "https://api.spotify.test/v1"
TIDAL_BASE = "https://openapi.tidal.test/v2"


@pytest.fixture
def gateway_settings() -> GatewaySettings:
    """Gateway settings without spacing or backoff."""
    return GatewaySettings(
        min_request_interval=0.0, request_timeout=5.0, retry_backoff=0.0
    )


@pytest.fixture
def spotify_settings() -> SpotifySettings:
    return SpotifySettings(api_base_url=SPOTIFY_BASE, page_size=50)


@pytest.fixture
def tidal_settings() -> TidalSettings:
    return TidalSettings(api_base_url=TIDAL_BASE, country_code="DE")


@pytest.fixture
def settings(
    gateway_settings: GatewaySettings,
    spotify_settings: SpotifySettings,
    tidal_settings: TidalSettings,
) -> Settings:
    """Full settings tuned for fast tests."""
    return Settings(
        gateway=gateway_settings,
        spotify=spotify_settings,
        tidal=tidal_settings,
        progress=ProgressSettings(poll_interval_seconds=0.01),
    )


@pytest.fixture
def make_gateway(
    gateway_settings: GatewaySettings,
) -> Callable[..., RequestGateway]:
    """Factory: build a gateway whose HTTP traffic is answered by `handler`."""

    def _make(
        handler: Handler,
        name: str = "tidal",
        base_url: str = TIDAL_BASE,
        settings: GatewaySettings | None = None,
    ) -> RequestGateway:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RequestGateway(
            name, base_url, settings or gateway_settings, client=client
        )

    return _make


class FakeTidalAPI:
    """In-memory stand-in for the Tidal OpenAPI endpoints the client uses.

    Favorites PREPEND each submitted batch and playlist items APPEND, like the
    real service does.
    """

    def __init__(self, user_id: str = "u1") -> None:
        self.user_id = user_id
        self.catalog: dict[str, str] = {}  # isrc -> tidal track id
        self.favorites: list[str] = []
        self.favorite_writes: list[list[str]] = []
        self.playlists: dict[str, dict[str, Any]] = {}
        self.playlist_items: dict[str, list[str]] = {}
        self.fail_playlist_create: set[str] = set()
        self.fail_favorite_write_at: int | None = None
        self.requests: list[httpx.Request] = []

    def _ids(self, request: httpx.Request) -> list[str]:
        return [entry["id"] for entry in json.loads(request.content)["data"]]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v2")
        method = request.method
        favorites_path = f"/userCollections/{self.user_id}/relationships/tracks"

        if method == "GET" and path == "/users/me":
            return httpx.Response(200, json={"data": {"id": self.user_id}})

        if method == "GET" and path == "/tracks":
            isrcs = request.url.params.get_list("filter[isrc]")
            data = [
                {"id": self.catalog[isrc], "type": "tracks", "attributes": {"isrc": isrc}}
                for isrc in isrcs
                if isrc in self.catalog
            ]
            return httpx.Response(200, json={"data": data, "links": {}})

        if path == favorites_path:
            if method == "GET":
                data = [{"id": i, "type": "tracks"} for i in self.favorites]
                return httpx.Response(200, json={"data": data, "links": {}})
            ids = self._ids(request)
            if method == "POST":
                self.favorite_writes.append(ids)
                if self.fail_favorite_write_at == len(self.favorite_writes):
                    return httpx.Response(
                        400, json={"errors": [{"code": "BAD", "detail": "rejected"}]}
                    )
                self.favorites[:0] = ids
                return httpx.Response(201)
            if method == "DELETE":
                self.favorites = [i for i in self.favorites if i not in ids]
                return httpx.Response(204)

        if method == "POST" and path == "/playlists":
            attributes = json.loads(request.content)["data"]["attributes"]
            if attributes["name"] in self.fail_playlist_create:
                return httpx.Response(
                    500, json={"errors": [{"detail": "playlist service down"}]}
                )
            playlist_id = f"pl-{len(self.playlists) + 1}"
            self.playlists[playlist_id] = attributes
            self.playlist_items[playlist_id] = []
            return httpx.Response(201, json={"data": {"id": playlist_id}})

        if method == "GET" and path == "/playlists":
            data = [
                {"id": pid, "type": "playlists", "attributes": attrs}
                for pid, attrs in self.playlists.items()
            ]
            return httpx.Response(200, json={"data": data, "links": {}})

        if path.startswith("/playlists/") and path.endswith("/relationships/items"):
            playlist_id = path.split("/")[2]
            self.playlist_items[playlist_id].extend(self._ids(request))
            return httpx.Response(201)

        if method == "DELETE" and path.startswith("/playlists/"):
            playlist_id = path.split("/")[2]
            if self.playlists.pop(playlist_id, None) is None:
                return httpx.Response(404, json={"errors": [{"detail": "not found"}]})
            return httpx.Response(204)

        return httpx.Response(404, json={"errors": [{"detail": f"{method} {path}"}]})


@pytest.fixture
def fake_tidal() -> FakeTidalAPI:
    return FakeTidalAPI()
