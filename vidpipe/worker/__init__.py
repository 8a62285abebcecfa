"""Transcoding worker process."""

from vidpipe.worker.service import JobStepFailed, TranscodingWorker, thumbnail_offsets

__all__ = [
    "TranscodingWorker",
    "JobStepFailed",
    "thumbnail_offsets",
]
