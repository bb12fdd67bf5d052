"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from tunemigrate.config import GatewaySettings, Settings, TidalSettings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.gateway.min_request_interval == 0.5
        assert settings.gateway.request_timeout == 30.0
        assert settings.gateway.retry_backoff == 0.5
        assert settings.tidal.write_chunk_size == 20
        assert settings.progress.poll_interval_seconds == 0.5

    def test_sections_read_their_own_prefix(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GATEWAY_MIN_REQUEST_INTERVAL", "1.5")
        monkeypatch.setenv("TIDAL_COUNTRY_CODE", "US")

        settings = Settings()

        assert settings.gateway.min_request_interval == 1.5
        assert settings.tidal.country_code == "US"

    def test_chunk_size_capped_at_provider_limit(self) -> None:
        with pytest.raises(ValidationError):
            TidalSettings(write_chunk_size=21)

    def test_negative_spacing_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GatewaySettings(min_request_interval=-1)
