"""Application services for uploads, jobs, thumbnails and playback."""

from vidpipe.application.services.orchestrator import QUEUED_MESSAGE, JobOrchestrator
from vidpipe.application.services.playback import (
    NO_RENDITIONS_MESSAGE,
    SIGNED_MESSAGE,
    PlaybackService,
    order_for_playback,
    select_rendition,
)
from vidpipe.application.services.progress import ProgressReporter
from vidpipe.application.services.thumbnails import ThumbnailService
from vidpipe.application.services.upload import MERGED_MESSAGE, UploadService

__all__ = [
    # Upload
    "UploadService",
    "MERGED_MESSAGE",
    # Jobs
    "JobOrchestrator",
    "ProgressReporter",
    "QUEUED_MESSAGE",
    # Thumbnails
    "ThumbnailService",
    # Playback
    "PlaybackService",
    "order_for_playback",
    "select_rendition",
    "NO_RENDITIONS_MESSAGE",
    "SIGNED_MESSAGE",
]
