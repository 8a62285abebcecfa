"""Data Transfer Objects for application layer."""

from vidpipe.application.dtos.playback import SignedUrlResponse, VideoDetailsResponse
from vidpipe.application.dtos.transcoding import (
    InitiateTranscodingRequest,
    ProgressReport,
    RenditionReport,
    RenditionView,
    TranscodingJobMessage,
    TranscodingJobResponse,
)
from vidpipe.application.dtos.upload import (
    ChunkUploadResponse,
    InitiateUploadRequest,
    InitiateUploadResponse,
    UploadStatusResponse,
)

__all__ = [
    # Upload DTOs
    "InitiateUploadRequest",
    "InitiateUploadResponse",
    "ChunkUploadResponse",
    "UploadStatusResponse",
    # Transcoding DTOs
    "TranscodingJobMessage",
    "InitiateTranscodingRequest",
    "ProgressReport",
    "RenditionReport",
    "RenditionView",
    "TranscodingJobResponse",
    # Playback DTOs
    "SignedUrlResponse",
    "VideoDetailsResponse",
]
