"""Thumbnail domain model."""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class Thumbnail(BaseModel):
    """A still frame captured from a source video.

    ``is_default`` is derived on read from the owning session's
    ``default_thumbnail_id`` so at most one thumbnail per session can ever
    be the default.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    session_id: str
    storage_path: str
    capture_seconds: float = Field(ge=0, description="Offset into the source")
    display_order: int = Field(ge=0)
    is_default: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
