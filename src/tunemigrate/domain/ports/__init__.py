"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from tunemigrate.domain.entities import Playlist, Track
from tunemigrate.domain.exceptions import ProviderAPIError

# Called with the number of items handled by the step that just completed
StepCallback = Callable[[int], None]


@dataclass
class BatchWriteResult:
    """Outcome of a chunked write.

    Hey future me - success=False means a chunk came back non-2xx and we STOPPED
    there. Everything before it was written and stays written (no rollback).
    """

    success: bool
    chunks_written: int = 0
    items_written: int = 0
    error: ProviderAPIError | None = None

    @property
    def error_detail(self) -> str | None:
        if self.error is None:
            return None
        return self.error.first_detail or self.error.message


@dataclass
class TrackResolution:
    """Destination tracks matched by ISRC, in source order, plus the leftovers."""

    matched: list[Track] = field(default_factory=list)
    unmatched: list[Track] = field(default_factory=list)


# Hey future me, ISourceLibrary is a PORT! The orchestrator only knows this contract,
# the Spotify implementation lives in infrastructure/integrations/spotify_client.py.
# Tests swap in fakes or drive the real client through httpx.MockTransport.
class ISourceLibrary(ABC):
    """Read side of a migration (the account we copy FROM)."""

    @abstractmethod
    async def get_current_user_id(self, access_token: str) -> str:
        """Get the id of the token's owner."""
        pass

    @abstractmethod
    async def get_liked_tracks(self, access_token: str) -> list[Track]:
        """Get ALL liked tracks in the provider's native order (newest first)."""
        pass

    @abstractmethod
    async def get_playlists(
        self, access_token: str, include_followed: bool = False
    ) -> list[Playlist]:
        """Get playlists with their tracks loaded.

        Args:
            access_token: Source bearer token
            include_followed: Also return playlists the user follows but doesn't own
        """
        pass


class IDestinationLibrary(ABC):
    """Write side of a migration (the account we copy TO)."""

    @abstractmethod
    async def get_current_user_id(self, access_token: str) -> str:
        """Get the id of the token's owner."""
        pass

    @abstractmethod
    async def resolve_tracks(
        self,
        tracks: list[Track],
        access_token: str,
        on_lookup: StepCallback | None = None,
    ) -> TrackResolution:
        """Map source tracks to destination tracks via ISRC, keeping source order."""
        pass

    @abstractmethod
    async def add_favorite_tracks(
        self,
        tracks: list[Track],
        access_token: str,
        ordered: bool = False,
        on_chunk: StepCallback | None = None,
    ) -> BatchWriteResult:
        """Add tracks to the user's favorites so they end up in the given order.

        Args:
            ordered: Write one track per call (slow, exact ordering)
        """
        pass

    @abstractmethod
    async def create_playlist(self, playlist: Playlist, access_token: str) -> str:
        """Create an empty playlist and return its destination id."""
        pass

    @abstractmethod
    async def add_playlist_tracks(
        self,
        playlist_id: str,
        tracks: list[Track],
        access_token: str,
        on_chunk: StepCallback | None = None,
    ) -> BatchWriteResult:
        """Append tracks to a playlist in the given order."""
        pass

    @abstractmethod
    async def get_favorite_tracks(self, access_token: str) -> list[Track]:
        """Get all favorite tracks (ids only is fine)."""
        pass

    @abstractmethod
    async def remove_favorite_tracks(
        self,
        tracks: list[Track],
        access_token: str,
        on_chunk: StepCallback | None = None,
    ) -> BatchWriteResult:
        """Remove tracks from favorites."""
        pass

    @abstractmethod
    async def get_own_playlists(self, access_token: str) -> list[Playlist]:
        """Get playlists owned by the token's owner (without tracks)."""
        pass

    @abstractmethod
    async def delete_playlist(self, playlist_id: str, access_token: str) -> None:
        """Delete one playlist."""
        pass


__all__ = [
    "BatchWriteResult",
    "IDestinationLibrary",
    "ISourceLibrary",
    "StepCallback",
    "TrackResolution",
]
