"""Transcoding job domain model."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from vidpipe.domain.models.profile import EncodingProfile


class JobStatus(str, Enum):
    """Lifecycle status of a transcoding job."""

    QUEUED = "queued"  # Persisted and published, not yet picked up
    IN_PROGRESS = "in_progress"  # A worker holds the message
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Statuses a job may be in immediately before moving to the key status.
# Terminal statuses never appear on the right-hand side.
ALLOWED_PREDECESSORS: dict[JobStatus, tuple[JobStatus, ...]] = {
    JobStatus.QUEUED: (),
    JobStatus.IN_PROGRESS: (JobStatus.QUEUED, JobStatus.IN_PROGRESS),
    JobStatus.COMPLETED: (JobStatus.QUEUED, JobStatus.IN_PROGRESS),
    JobStatus.FAILED: (JobStatus.QUEUED, JobStatus.IN_PROGRESS),
}


class ProfileSnapshot(BaseModel):
    """Encoding profile fields copied onto a job at creation.

    Later edits to the profile never affect a job already created.
    """

    profile_id: str
    name: str
    resolution: str
    bitrate_kbps: int
    format: str
    command_template: str
    apply_drm: bool = False

    @classmethod
    def of(cls, profile: EncodingProfile) -> "ProfileSnapshot":
        return cls(
            profile_id=profile.id,
            name=profile.name,
            resolution=profile.resolution,
            bitrate_kbps=profile.bitrate_kbps,
            format=profile.format,
            command_template=profile.command_template,
            apply_drm=profile.apply_drm,
        )


class TranscodingJob(BaseModel):
    """One request to turn a completed upload into a rendition.

    Status only moves forward (see ``ALLOWED_PREDECESSORS``) and progress
    never decreases while IN_PROGRESS. Both rules are enforced by the job
    repository's conditional updates, not by this model.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str
    session_id: str = Field(description="Source upload session")
    profile: ProfileSnapshot
    status: JobStatus = JobStatus.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    status_message: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def can_transition_to(self, new_status: JobStatus) -> bool:
        """Check whether the status machine permits a move to ``new_status``."""
        return self.status in ALLOWED_PREDECESSORS[new_status]
