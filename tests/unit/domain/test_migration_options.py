"""Tests for migration option parsing."""

import pytest

from tunemigrate.domain.entities import Track, normalize_isrc
from tunemigrate.domain.exceptions import UnsupportedOptionError
from tunemigrate.domain.value_objects import MigrationOptions, MigrationRequest


class TestMigrationOptionsParsing:
    """Test MigrationOptions.from_mapping."""

    def test_all_known_options_map_to_fields(self) -> None:
        options = MigrationOptions.from_mapping(
            {
                "tracks": True,
                "playlists": True,
                "includeFollowedPlaylists": True,
                "orderedWrites": True,
            }
        )

        assert options.migrate_tracks is True
        assert options.migrate_playlists is True
        assert options.include_followed_playlists is True
        assert options.use_ordered_writes is True

    def test_missing_options_default_to_false(self) -> None:
        options = MigrationOptions.from_mapping({"tracks": True})

        assert options.migrate_tracks is True
        assert options.migrate_playlists is False
        assert options.use_ordered_writes is False

    def test_unknown_option_is_rejected(self) -> None:
        with pytest.raises(UnsupportedOptionError) as exc_info:
            MigrationOptions.from_mapping({"tracks": True, "podcasts": True})

        assert exc_info.value.option == "podcasts"
        assert "podcasts" in exc_info.value.message

    @pytest.mark.parametrize("kind", ["albums", "artists"])
    def test_unmapped_kinds_switched_on_are_rejected(self, kind: str) -> None:
        with pytest.raises(UnsupportedOptionError) as exc_info:
            MigrationOptions.from_mapping({"tracks": True, kind: True})

        assert exc_info.value.option == kind
        assert "not supported" in exc_info.value.message

    @pytest.mark.parametrize("kind", ["albums", "artists"])
    def test_unmapped_kinds_switched_off_are_accepted(self, kind: str) -> None:
        options = MigrationOptions.from_mapping({"tracks": True, kind: False})

        assert options.migrate_tracks is True

    def test_options_are_immutable(self) -> None:
        options = MigrationOptions.from_mapping({"tracks": True})

        with pytest.raises(AttributeError):
            options.migrate_tracks = False  # type: ignore[misc]

    def test_to_mapping_uses_wire_names(self) -> None:
        options = MigrationOptions(migrate_tracks=True, use_ordered_writes=True)

        mapping = options.to_mapping()

        assert mapping["tracks"] is True
        assert mapping["orderedWrites"] is True
        assert mapping["playlists"] is False
        assert set(mapping) == {
            "tracks",
            "playlists",
            "albums",
            "artists",
            "includeFollowedPlaylists",
            "orderedWrites",
        }


class TestMigrationRequest:
    """Test MigrationRequest."""

    def test_repr_hides_tokens(self) -> None:
        request = MigrationRequest(
            options=MigrationOptions(migrate_tracks=True),
            source_token="secret-spotify",
            destination_token="secret-tidal",
        )

        text = repr(request)

        assert "secret-spotify" not in text
        assert "secret-tidal" not in text
        assert "tracks" in text


class TestTrack:
    """Test Track ISRC handling."""

    def test_isrc_is_normalized(self) -> None:
        track = Track(id="1", title="Song", isrc=" usrc17607839 ")

        assert track.isrc == "USRC17607839"

    def test_blank_isrc_becomes_none(self) -> None:
        assert Track(id="1", title="Song", isrc="  ").isrc is None
        assert normalize_isrc(None) is None
