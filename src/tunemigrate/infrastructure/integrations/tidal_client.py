"""Tidal OpenAPI v2 client - the DESTINATION side of a migration.

Hey future me - Tidal speaks JSON:API:
- bodies are {"data": ...} with content type application/vnd.api+json
- relationship writes take {"data": [{"id": "...", "type": "tracks"}, ...]}
  and accept at most 20 entries per call
- collections page via body["links"]["next"], a RELATIVE link
- errors come as {"errors": [{"code": ..., "detail": ...}]}

Ordering quirks (the whole reason batch_writer.py has preserve_order):
- favorites (userCollections/.../relationships/tracks) PREPEND each batch
- playlist items (playlists/{id}/relationships/items) APPEND

Rate limits: roughly 100 requests/minute, the gateway spacing keeps us below.
"""

from __future__ import annotations

import logging
from typing import Any

from tunemigrate.config.settings import TidalSettings
from tunemigrate.domain.entities import Playlist, Track, normalize_isrc
from tunemigrate.domain.exceptions import ProviderAPIError
from tunemigrate.domain.ports import (
    BatchWriteResult,
    IDestinationLibrary,
    StepCallback,
    TrackResolution,
)
from tunemigrate.infrastructure.integrations.batch_writer import (
    ChunkedBatchWriter,
    chunked,
)
from tunemigrate.infrastructure.integrations.pagination import PaginationWalker
from tunemigrate.infrastructure.integrations.provider_errors import ensure_success
from tunemigrate.infrastructure.integrations.request_gateway import RequestGateway

logger = logging.getLogger(__name__)

JSON_API = "application/vnd.api+json"


def tidal_items_of(page: dict[str, Any]) -> list[dict[str, Any]]:
    return page.get("data") or []


def tidal_next_of(page: dict[str, Any]) -> str | None:
    return (page.get("links") or {}).get("next") or None


def encode_track_relationships(tracks: list[Track]) -> dict[str, Any]:
    """JSON:API relationship body for a slice of destination tracks."""
    return {"data": [{"id": track.id, "type": "tracks"} for track in tracks]}


class TidalClient(IDestinationLibrary):
    """Resolves tracks by ISRC and writes favorites/playlists into Tidal."""

    PROVIDER = "tidal"

    def __init__(self, gateway: RequestGateway, settings: TidalSettings) -> None:
        """
        Initialize Tidal client.

        Args:
            gateway: The ONE Tidal gateway of this process
            settings: Tidal configuration (country code, chunk sizes)
        """
        self.gateway = gateway
        self.settings = settings
        self.walker = PaginationWalker(gateway)

    def _favorites_path(self, user_id: str) -> str:
        return f"/userCollections/{user_id}/relationships/tracks"

    async def get_current_user_id(self, access_token: str) -> str:
        """Get the Tidal user id of the token owner (GET /users/me)."""
        response = await self.gateway.get("/users/me", access_token)
        ensure_success(self.PROVIDER, response)
        return str(response.json()["data"]["id"])

    # =========================================================================
    # ISRC RESOLUTION
    # =========================================================================

    async def _lookup_isrcs(
        self, isrcs: list[str], access_token: str
    ) -> dict[str, str]:
        """Look up up to lookup_chunk_size ISRCs, returning isrc -> tidal id."""
        query: list[tuple[str, Any]] = [("countryCode", self.settings.country_code)]
        query.extend(("filter[isrc]", isrc) for isrc in isrcs)
        found = await self.walker.collect(
            "/tracks", access_token, tidal_items_of, tidal_next_of, query=query
        )

        by_isrc: dict[str, str] = {}
        for item in found:
            isrc = normalize_isrc((item.get("attributes") or {}).get("isrc"))
            # Several Tidal releases can share one ISRC - first one wins
            if isrc and isrc not in by_isrc:
                by_isrc[isrc] = str(item["id"])
        return by_isrc

    async def resolve_tracks(
        self,
        tracks: list[Track],
        access_token: str,
        on_lookup: StepCallback | None = None,
    ) -> TrackResolution:
        """Map source tracks to Tidal tracks by ISRC.

        Matched tracks carry the TIDAL id plus the source title/added_at and keep
        the order of `tracks`. Unmatched ones (including tracks without ISRC)
        are logged as warnings - that's not fatal.
        """
        wanted: list[str] = []
        seen: set[str] = set()
        for track in tracks:
            if track.isrc and track.isrc not in seen:
                seen.add(track.isrc)
                wanted.append(track.isrc)

        tidal_ids: dict[str, str] = {}
        for isrc_chunk in chunked(wanted, self.settings.lookup_chunk_size):
            tidal_ids.update(await self._lookup_isrcs(isrc_chunk, access_token))
            if on_lookup is not None:
                chunk_set = set(isrc_chunk)
                on_lookup(sum(1 for t in tracks if t.isrc in chunk_set))

        resolution = TrackResolution()
        for track in tracks:
            tidal_id = tidal_ids.get(track.isrc) if track.isrc else None
            if tidal_id is None:
                if track.isrc:
                    logger.warning(
                        f"Track '{track.title}' with ISRC {track.isrc} was not found on Tidal"
                    )
                else:
                    logger.warning(
                        f"Track '{track.title}' ({track.id}) has no ISRC, skipping"
                    )
                resolution.unmatched.append(track)
                continue
            resolution.matched.append(
                Track(
                    id=tidal_id,
                    title=track.title,
                    isrc=track.isrc,
                    added_at=track.added_at,
                )
            )

        logger.info(
            f"Resolved {len(resolution.matched)}/{len(tracks)} tracks on Tidal "
            f"({len(resolution.unmatched)} unmatched)"
        )
        return resolution

    # =========================================================================
    # FAVORITES
    # =========================================================================

    async def add_favorite_tracks(
        self,
        tracks: list[Track],
        access_token: str,
        ordered: bool = False,
        on_chunk: StepCallback | None = None,
    ) -> BatchWriteResult:
        """Add tracks to favorites so they show up in the order given.

        Favorites prepend, so every slice is reversed before submission.
        ordered=True writes one track per call for exact ordering.
        """
        unique: list[Track] = []
        seen: set[str] = set()
        for track in tracks:
            if track.id in seen:
                logger.debug(f"Skipping duplicate favorite {track.id}")
                continue
            seen.add(track.id)
            unique.append(track)

        user_id = await self.get_current_user_id(access_token)
        writer: ChunkedBatchWriter[Track] = ChunkedBatchWriter(
            self.gateway,
            self._favorites_path(user_id),
            encode_track_relationships,
            content_type=JSON_API,
        )
        chunk_size = 1 if ordered else self.settings.write_chunk_size
        logger.info(
            f"Adding {len(unique)} tracks to Tidal favorites (chunk size {chunk_size})"
        )
        return await writer.write_all(
            unique,
            access_token,
            chunk_size=chunk_size,
            preserve_order=True,
            on_chunk=on_chunk,
        )

    async def get_favorite_tracks(self, access_token: str) -> list[Track]:
        """Get all favorite track references of the current user."""
        user_id = await self.get_current_user_id(access_token)
        items = await self.walker.collect(
            self._favorites_path(user_id),
            access_token,
            tidal_items_of,
            tidal_next_of,
            query={"countryCode": self.settings.country_code},
        )
        return [Track(id=str(item["id"]), title="") for item in items]

    async def remove_favorite_tracks(
        self,
        tracks: list[Track],
        access_token: str,
        on_chunk: StepCallback | None = None,
    ) -> BatchWriteResult:
        """Remove tracks from favorites in chunks."""
        user_id = await self.get_current_user_id(access_token)
        writer: ChunkedBatchWriter[Track] = ChunkedBatchWriter(
            self.gateway,
            self._favorites_path(user_id),
            encode_track_relationships,
            method="DELETE",
            content_type=JSON_API,
        )
        return await writer.write_all(
            tracks,
            access_token,
            chunk_size=self.settings.write_chunk_size,
            on_chunk=on_chunk,
        )

    # =========================================================================
    # PLAYLISTS
    # =========================================================================

    async def create_playlist(self, playlist: Playlist, access_token: str) -> str:
        """Create an empty playlist mirroring name, description and visibility.

        Raises:
            ProviderAPIError: Tidal refused, or answered without an id
        """
        body = {
            "data": {
                "type": "playlists",
                "attributes": {
                    "name": playlist.name,
                    "description": playlist.description,
                    "accessType": "PUBLIC" if playlist.public else "UNLISTED",
                },
            }
        }
        response = await self.gateway.send(
            "POST",
            "/playlists",
            access_token,
            query={"countryCode": self.settings.country_code},
            body=body,
            content_type=JSON_API,
        )
        ensure_success(self.PROVIDER, response)

        playlist_id = (response.json().get("data") or {}).get("id")
        if not playlist_id:
            raise ProviderAPIError(
                self.PROVIDER, response.status_code, ["No playlist id returned"]
            )
        logger.info(f"Created Tidal playlist '{playlist.name}' with id {playlist_id}")
        return str(playlist_id)

    async def add_playlist_tracks(
        self,
        playlist_id: str,
        tracks: list[Track],
        access_token: str,
        on_chunk: StepCallback | None = None,
    ) -> BatchWriteResult:
        """Append tracks to a playlist. Playlist items append, no reversing needed."""
        writer: ChunkedBatchWriter[Track] = ChunkedBatchWriter(
            self.gateway,
            f"/playlists/{playlist_id}/relationships/items",
            encode_track_relationships,
            content_type=JSON_API,
        )
        return await writer.write_all(
            tracks,
            access_token,
            chunk_size=self.settings.write_chunk_size,
            preserve_order=False,
            on_chunk=on_chunk,
        )

    async def get_own_playlists(self, access_token: str) -> list[Playlist]:
        """Get the playlists owned by the current user (without tracks)."""
        user_id = await self.get_current_user_id(access_token)
        items = await self.walker.collect(
            "/playlists",
            access_token,
            tidal_items_of,
            tidal_next_of,
            query=[
                ("countryCode", self.settings.country_code),
                ("filter[owners.id]", user_id),
            ],
        )
        return [
            Playlist(
                id=str(item["id"]),
                name=(item.get("attributes") or {}).get("name") or "",
                description=(item.get("attributes") or {}).get("description") or "",
                owner_id=user_id,
            )
            for item in items
        ]

    async def delete_playlist(self, playlist_id: str, access_token: str) -> None:
        """Delete one playlist.

        Raises:
            ProviderAPIError: Tidal refused the deletion
        """
        response = await self.gateway.send(
            "DELETE", f"/playlists/{playlist_id}", access_token
        )
        ensure_success(self.PROVIDER, response)
