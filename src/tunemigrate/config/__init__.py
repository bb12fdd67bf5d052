"""Configuration module for tunemigrate."""

from .settings import (
    GatewaySettings,
    ProgressSettings,
    RunSettings,
    Settings,
    SpotifySettings,
    TidalSettings,
    get_settings,
)

__all__ = [
    "GatewaySettings",
    "ProgressSettings",
    "RunSettings",
    "Settings",
    "SpotifySettings",
    "TidalSettings",
    "get_settings",
]
