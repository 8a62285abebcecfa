"""DTOs for transcoding jobs: queue payload, worker reports and job views."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vidpipe.domain.models.job import JobStatus, TranscodingJob
from vidpipe.domain.models.rendition import VideoRendition


class TranscodingJobMessage(BaseModel):
    """Work message published for each queued job.

    Serialized with camelCase keys (``jobId``, ``sourcePath``...). Decoding
    accepts either key style.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    job_id: str
    session_id: str
    source_path: str = Field(description="Merged asset path in the uploads bucket")
    command_template: str
    target_format: str
    target_resolution: str
    target_bitrate_kbps: int = Field(gt=0)
    apply_drm: bool = False
    metadata: dict[str, str] = Field(default_factory=dict)

    def model_dump_json(self, **kwargs: Any) -> str:
        kwargs.setdefault("by_alias", True)
        return super().model_dump_json(**kwargs)


class InitiateTranscodingRequest(BaseModel):
    """Request to transcode a completed upload with one profile."""

    owner_id: str
    session_id: str
    profile_id: str


class ProgressReport(BaseModel):
    """Worker progress checkpoint."""

    job_id: str
    progress: int = Field(ge=0, le=100)
    status_message: str = ""
    status: JobStatus = JobStatus.IN_PROGRESS


class RenditionReport(BaseModel):
    """One stored output reported on completion."""

    rendition_type: str
    storage_path: str
    resolution: str
    bitrate_kbps: int = Field(ge=0)
    encrypted: bool = False
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RenditionView(BaseModel):
    """Rendition as exposed to callers."""

    id: str
    rendition_type: str
    storage_path: str
    resolution: str
    bitrate_kbps: int
    encrypted: bool
    playback_url: str | None = None
    generated_at: datetime

    @classmethod
    def from_rendition(cls, rendition: VideoRendition) -> "RenditionView":
        return cls(
            id=rendition.id,
            rendition_type=rendition.rendition_type,
            storage_path=rendition.storage_path,
            resolution=rendition.resolution,
            bitrate_kbps=rendition.bitrate_kbps,
            encrypted=rendition.encrypted,
            playback_url=rendition.playback_url,
            generated_at=rendition.generated_at,
        )


class TranscodingJobResponse(BaseModel):
    """Job state with its renditions loaded explicitly."""

    job_id: str
    owner_id: str
    session_id: str
    profile_id: str
    profile_name: str
    target_resolution: str
    target_bitrate_kbps: int
    target_format: str
    status: JobStatus
    progress: int
    status_message: str
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    renditions: list[RenditionView] = Field(default_factory=list)

    @classmethod
    def from_job(
        cls,
        job: TranscodingJob,
        renditions: list[VideoRendition] | None = None,
    ) -> "TranscodingJobResponse":
        return cls(
            job_id=job.id,
            owner_id=job.owner_id,
            session_id=job.session_id,
            profile_id=job.profile.profile_id,
            profile_name=job.profile.name,
            target_resolution=job.profile.resolution,
            target_bitrate_kbps=job.profile.bitrate_kbps,
            target_format=job.profile.format,
            status=job.status,
            progress=job.progress,
            status_message=job.status_message,
            created_at=job.created_at,
            updated_at=job.updated_at,
            completed_at=job.completed_at,
            renditions=[RenditionView.from_rendition(r) for r in renditions or []],
        )
