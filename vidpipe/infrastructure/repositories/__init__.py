"""Document-backed repositories for sessions, profiles, jobs and thumbnails."""

from vidpipe.infrastructure.repositories.jobs import COMPLETED_MESSAGE, JobRepository
from vidpipe.infrastructure.repositories.profiles import EncodingProfileRepository
from vidpipe.infrastructure.repositories.thumbnails import (
    ThumbnailRepository,
    thumbnail_id_for,
)
from vidpipe.infrastructure.repositories.upload_sessions import UploadSessionRepository

__all__ = [
    "UploadSessionRepository",
    "EncodingProfileRepository",
    "JobRepository",
    "COMPLETED_MESSAGE",
    "ThumbnailRepository",
    "thumbnail_id_for",
]
