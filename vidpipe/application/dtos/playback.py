"""DTOs for playback URL issuance and video details."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from vidpipe.application.dtos.transcoding import RenditionView, TranscodingJobResponse
from vidpipe.domain.models.thumbnail import Thumbnail
from vidpipe.domain.models.upload import UploadStatus


class SignedUrlResponse(BaseModel):
    """Outcome of a playback URL request. ``url`` is present iff ``success``."""

    success: bool
    url: str | None = None
    message: str | None = None
    rendition_type: str | None = Field(
        default=None,
        description="Rendition the URL points to",
    )
    expires_at: datetime | None = None
    available_renditions: list[RenditionView] = Field(
        default_factory=list,
        description="Completed renditions, highest bitrate then resolution first",
    )

    @model_validator(mode="after")
    def _url_iff_success(self) -> "SignedUrlResponse":
        if self.success != bool(self.url):
            raise ValueError("url must be present if and only if success is true")
        return self


class VideoDetailsResponse(BaseModel):
    """Upload summary with its thumbnails, renditions and latest job."""

    video_id: str
    owner_id: str
    filename: str
    size_bytes: int
    mime_type: str
    upload_status: UploadStatus
    created_at: datetime
    updated_at: datetime
    selected_thumbnail: Thumbnail | None = None
    thumbnails: list[Thumbnail] = Field(default_factory=list)
    available_renditions: list[RenditionView] = Field(default_factory=list)
    latest_job: TranscodingJobResponse | None = None
