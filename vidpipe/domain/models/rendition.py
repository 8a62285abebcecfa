"""Rendition domain model."""

from datetime import UTC, datetime
from uuid import NAMESPACE_URL, uuid5

from pydantic import BaseModel, Field

from vidpipe.domain.value_objects.resolution import Resolution


def rendition_id_for(job_id: str, rendition_type: str) -> str:
    """Deterministic id so a repeated completion overwrites instead of duplicating."""
    return str(uuid5(NAMESPACE_URL, f"vidpipe:rendition:{job_id}:{rendition_type.lower()}"))


def rendition_type_for(resolution: str, output_format: str) -> str:
    """Label a rendition, e.g. ('1280x720', 'hls') -> 'HLS_720p'."""
    return f"{output_format.upper()}_{Resolution.parse(resolution).short_label}"


class VideoRendition(BaseModel):
    """One stored output variant of a source video. Append-only."""

    id: str
    job_id: str
    session_id: str = Field(description="Source upload the rendition derives from")
    rendition_type: str = Field(description="Label such as 'HLS_720p'")
    storage_path: str = Field(description="Object path in the renditions bucket")
    resolution: str
    bitrate_kbps: int = Field(ge=0)
    encrypted: bool = False
    playback_url: str | None = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def quality_key(self) -> tuple[int, int]:
        """Sort key: bitrate first, then pixel count."""
        return (self.bitrate_kbps, Resolution.pixel_count_of(self.resolution))
