"""Application settings loaded from environment variables and .env.

Hey future me - every tunable number of the migration core lives here!
The per-section classes are standalone BaseSettings with their own env prefix,
so GATEWAY_MIN_REQUEST_INTERVAL=1.0 works without nested delimiters.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Throttle, deadline and retry knobs for the per-provider request gateways."""

    # Spacing is measured between dispatch STARTS, not between response and next call.
    min_request_interval: float = Field(default=0.5, ge=0.0)
    request_timeout: float = Field(default=30.0, gt=0.0)
    retry_backoff: float = Field(default=0.5, ge=0.0)

    model_config = SettingsConfigDict(env_prefix="GATEWAY_", extra="ignore")


class SpotifySettings(BaseSettings):
    """Source provider (Spotify Web API) settings."""

    api_base_url: str = "https://api.spotify.com/v1"
    page_size: int = Field(default=50, ge=1, le=50)
    token_cookie: str = "spotify_access_token"

    model_config = SettingsConfigDict(env_prefix="SPOTIFY_", extra="ignore")


class TidalSettings(BaseSettings):
    """Destination provider (Tidal OpenAPI v2) settings."""

    api_base_url: str = "https://openapi.tidal.com/v2"
    country_code: str = "DE"
    # Tidal rejects relationship writes and ISRC filters with more than 20 entries
    write_chunk_size: int = Field(default=20, ge=1, le=20)
    lookup_chunk_size: int = Field(default=20, ge=1, le=20)
    token_cookie: str = "tidal_access_token"

    model_config = SettingsConfigDict(env_prefix="TIDAL_", extra="ignore")


class ProgressSettings(BaseSettings):
    """Progress record store and stream settings."""

    poll_interval_seconds: float = Field(default=0.5, gt=0.0)
    record_ttl_seconds: float = Field(default=600.0, gt=0.0)
    max_records: int = Field(default=1000, ge=1)

    model_config = SettingsConfigDict(env_prefix="PROGRESS_", extra="ignore")


class RunSettings(BaseSettings):
    """Background run settings."""

    shutdown_grace_seconds: float = Field(default=10.0, ge=0.0)

    model_config = SettingsConfigDict(env_prefix="RUNS_", extra="ignore")


class Settings(BaseSettings):
    """Root settings object.

    Sections are created through default factories so each one reads its own
    prefixed environment variables.
    """

    app_name: str = "tunemigrate"
    log_level: str = "INFO"
    log_json_format: bool = False
    host: str = "127.0.0.1"
    port: int = 8080

    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    tidal: TidalSettings = Field(default_factory=TidalSettings)
    progress: ProgressSettings = Field(default_factory=ProgressSettings)
    runs: RunSettings = Field(default_factory=RunSettings)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
