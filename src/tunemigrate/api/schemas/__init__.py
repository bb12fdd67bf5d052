"""API request/response schemas."""

from tunemigrate.api.schemas.migration import (
    AuthStatus,
    LikedTrackDTO,
    MigrateRequestBody,
    RunAccepted,
)

__all__ = ["AuthStatus", "LikedTrackDTO", "MigrateRequestBody", "RunAccepted"]
