"""Domain entities for library migration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


def normalize_isrc(isrc: str | None) -> str | None:
    """Upper-case and strip an ISRC, mapping blanks to None."""
    if isrc is None:
        return None
    normalized = isrc.strip().upper()
    return normalized or None


@dataclass(frozen=True)
class Track:
    """A track as seen by ONE provider.

    Hey future me - `id` is provider-local! A Spotify id and a Tidal id for the
    same recording have nothing in common. The ISRC is the only join key between
    providers, never compare ids across providers.
    """

    id: str
    title: str
    isrc: str | None = None
    added_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "isrc", normalize_isrc(self.isrc))


@dataclass
class Playlist:
    """A playlist with its ordered tracks.

    Track order is the user's insertion order and must survive the migration.
    """

    name: str
    description: str = ""
    public: bool = False
    id: str | None = None
    owner_id: str | None = None
    tracks: list[Track] = field(default_factory=list)


__all__ = ["Playlist", "Track", "normalize_isrc"]
