"""Closed set of migration options and the per-call migration request.

Hey future me - the client sends a free-form {name: bool} mapping. We turn it
into ONE field per recognized option right at the edge, so nothing downstream
ever branches on raw strings. Unknown names fail fast, and so do kinds we can
read but cannot map yet (albums, artists) - no silent no-ops!
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields

from tunemigrate.domain.exceptions import UnsupportedOptionError

# wire name -> dataclass field
OPTION_FIELDS: dict[str, str] = {
    "tracks": "migrate_tracks",
    "playlists": "migrate_playlists",
    "albums": "migrate_albums",
    "artists": "migrate_artists",
    "includeFollowedPlaylists": "include_followed_playlists",
    "orderedWrites": "use_ordered_writes",
}

# Options we recognize but have no cross-provider mapping for
UNSUPPORTED_KINDS: frozenset[str] = frozenset({"albums", "artists"})


@dataclass(frozen=True)
class MigrationOptions:
    """Enumerated migration options, immutable once parsed."""

    migrate_tracks: bool = False
    migrate_playlists: bool = False
    migrate_albums: bool = False
    migrate_artists: bool = False
    include_followed_playlists: bool = False
    use_ordered_writes: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, bool]) -> MigrationOptions:
        """Parse the wire mapping.

        Raises:
            UnsupportedOptionError: For unrecognized names, or for a kind
                without an implemented mapping that is switched on.
        """
        values: dict[str, bool] = {}
        for name, enabled in raw.items():
            field_name = OPTION_FIELDS.get(name)
            if field_name is None:
                raise UnsupportedOptionError(name, "unrecognized option")
            if enabled and name in UNSUPPORTED_KINDS:
                raise UnsupportedOptionError(
                    name, f"migrating {name} is not supported yet"
                )
            values[field_name] = bool(enabled)
        return cls(**values)

    def to_mapping(self) -> dict[str, bool]:
        """Wire representation (used for logging)."""
        by_field = {f.name: getattr(self, f.name) for f in fields(self)}
        return {wire: by_field[attr] for wire, attr in OPTION_FIELDS.items()}


@dataclass(frozen=True)
class MigrationRequest:
    """Options plus the two bearer tokens of one migration call."""

    options: MigrationOptions
    source_token: str
    destination_token: str

    def __repr__(self) -> str:
        # Tokens never end up in logs
        return f"MigrationRequest(options={self.options.to_mapping()!r})"
