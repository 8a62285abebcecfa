"""Domain models."""

from vidpipe.domain.models.job import (
    ALLOWED_PREDECESSORS,
    JobStatus,
    ProfileSnapshot,
    TranscodingJob,
)
from vidpipe.domain.models.profile import EncodingProfile
from vidpipe.domain.models.rendition import (
    VideoRendition,
    rendition_id_for,
    rendition_type_for,
)
from vidpipe.domain.models.thumbnail import Thumbnail
from vidpipe.domain.models.upload import UploadSession, UploadStatus

__all__ = [
    # Upload
    "UploadSession",
    "UploadStatus",
    # Profile
    "EncodingProfile",
    # Job
    "TranscodingJob",
    "JobStatus",
    "ProfileSnapshot",
    "ALLOWED_PREDECESSORS",
    # Rendition
    "VideoRendition",
    "rendition_id_for",
    "rendition_type_for",
    # Thumbnail
    "Thumbnail",
]
