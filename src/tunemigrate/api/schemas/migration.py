"""Pydantic schemas for the migration endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from tunemigrate.domain.entities import Track


class MigrateRequestBody(BaseModel):
    """POST /migrate body. Option names are validated later, in the domain."""

    options: dict[str, bool] = Field(default_factory=dict)


class RunAccepted(BaseModel):
    """202 answer for anything that starts a background run."""

    message: str
    uuid: str


class AuthStatus(BaseModel):
    authorized: bool


class LikedTrackDTO(BaseModel):
    id: str
    title: str
    isrc: str | None = None
    added_at: datetime | None = None

    @classmethod
    def from_entity(cls, track: Track) -> "LikedTrackDTO":
        return cls(
            id=track.id, title=track.title, isrc=track.isrc, added_at=track.added_at
        )
