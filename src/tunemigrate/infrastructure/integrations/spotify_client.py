"""Spotify Web API client - the SOURCE side of a migration."""

import logging
from datetime import datetime
from typing import Any

from tunemigrate.config.settings import SpotifySettings
from tunemigrate.domain.entities import Playlist, Track
from tunemigrate.domain.ports import ISourceLibrary
from tunemigrate.infrastructure.integrations.pagination import PaginationWalker
from tunemigrate.infrastructure.integrations.provider_errors import ensure_success
from tunemigrate.infrastructure.integrations.request_gateway import RequestGateway

logger = logging.getLogger(__name__)


# Spotify paging objects: {"items": [...], "next": "https://api.spotify.com/v1/...?offset=50"}
# The next link is ABSOLUTE - the gateway passes absolute URLs through untouched.
def spotify_items_of(page: dict[str, Any]) -> list[dict[str, Any]]:
    return page.get("items") or []


def spotify_next_of(page: dict[str, Any]) -> str | None:
    return page.get("next") or None


def _parse_added_at(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable added_at timestamp: {value!r}")
        return None


def track_from_saved_item(item: dict[str, Any]) -> Track | None:
    """Map a saved-track / playlist-track item to a Track.

    Returns None for empty slots (deleted or unavailable tracks show up as
    {"track": null}).
    """
    track = item.get("track")
    if not track:
        return None
    external_ids = track.get("external_ids") or {}
    return Track(
        id=track.get("id") or "",
        title=track.get("name") or "",
        isrc=external_ids.get("isrc"),
        added_at=_parse_added_at(item.get("added_at")),
    )


class SpotifyClient(ISourceLibrary):
    """Reads liked tracks and playlists from Spotify."""

    PROVIDER = "spotify"

    def __init__(self, gateway: RequestGateway, settings: SpotifySettings) -> None:
        """
        Initialize Spotify client.

        Args:
            gateway: The ONE Spotify gateway of this process
            settings: Spotify configuration
        """
        self.gateway = gateway
        self.settings = settings
        self.walker = PaginationWalker(gateway)

    async def get_current_user_id(self, access_token: str) -> str:
        """Get the Spotify user id of the token owner (GET /me)."""
        response = await self.gateway.get("/me", access_token)
        ensure_success(self.PROVIDER, response)
        return str(response.json()["id"])

    # Hey future me - /me/tracks lists NEWEST first. We return it like that and
    # let the orchestrator decide the order it writes in.
    async def get_liked_tracks(self, access_token: str) -> list[Track]:
        """Get all saved ("liked") tracks, newest first."""
        items = await self.walker.collect(
            "/me/tracks",
            access_token,
            spotify_items_of,
            spotify_next_of,
            query={"limit": self.settings.page_size},
        )
        tracks = [t for t in (track_from_saved_item(i) for i in items) if t]
        logger.info(f"Fetched {len(tracks)} liked tracks from Spotify")
        return tracks

    async def get_playlist_tracks(self, tracks_href: str, access_token: str) -> list[Track]:
        """Get all tracks of one playlist, in playlist order, skipping empty slots."""
        items = await self.walker.collect(
            tracks_href,
            access_token,
            spotify_items_of,
            spotify_next_of,
        )
        return [t for t in (track_from_saved_item(i) for i in items) if t]

    async def get_playlists(
        self, access_token: str, include_followed: bool = False
    ) -> list[Playlist]:
        """Get the user's playlists with tracks loaded.

        Args:
            access_token: Spotify bearer token
            include_followed: Keep playlists owned by someone else

        Returns:
            Playlists in the order Spotify lists them
        """
        raw_playlists = await self.walker.collect(
            "/me/playlists",
            access_token,
            spotify_items_of,
            spotify_next_of,
            query={"limit": self.settings.page_size},
        )

        if not include_followed:
            user_id = await self.get_current_user_id(access_token)
            before = len(raw_playlists)
            raw_playlists = [
                p for p in raw_playlists if (p.get("owner") or {}).get("id") == user_id
            ]
            logger.debug(
                f"Skipping {before - len(raw_playlists)} followed playlists "
                f"not owned by {user_id}"
            )

        playlists: list[Playlist] = []
        for raw in raw_playlists:
            tracks_ref = raw.get("tracks") or {}
            href = tracks_ref.get("href") or f"/playlists/{raw['id']}/tracks"
            tracks = await self.get_playlist_tracks(href, access_token)
            playlists.append(
                Playlist(
                    id=raw.get("id"),
                    name=raw.get("name") or "",
                    description=raw.get("description") or "",
                    public=bool(raw.get("public")),
                    owner_id=(raw.get("owner") or {}).get("id"),
                    tracks=tracks,
                )
            )

        logger.info(f"Fetched {len(playlists)} playlists from Spotify")
        return playlists
