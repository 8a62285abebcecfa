"""Domain layer - pipeline models, value objects and errors."""

from vidpipe.domain.exceptions import (
    AccessDeniedException,
    ChunkMissingException,
    DomainException,
    ErrorKind,
    FailureReason,
    InvalidChunkIndexException,
    InvalidCommandTemplateException,
    NotFoundException,
    PreconditionFailedException,
    SubprocessFailedException,
    TransientInfraException,
    UploadAlreadyCompletedException,
    UploadNotCompletedException,
    UploadOwnershipException,
    ValidationException,
)
from vidpipe.domain.models import (
    EncodingProfile,
    JobStatus,
    ProfileSnapshot,
    Thumbnail,
    TranscodingJob,
    UploadSession,
    UploadStatus,
    VideoRendition,
)
from vidpipe.domain.value_objects import CommandBindings, Resolution, render_command

__all__ = [
    # Exceptions
    "DomainException",
    "ErrorKind",
    "FailureReason",
    "ValidationException",
    "InvalidChunkIndexException",
    "InvalidCommandTemplateException",
    "PreconditionFailedException",
    "UploadNotCompletedException",
    "UploadOwnershipException",
    "UploadAlreadyCompletedException",
    "NotFoundException",
    "TransientInfraException",
    "ChunkMissingException",
    "SubprocessFailedException",
    "AccessDeniedException",
    # Models
    "UploadSession",
    "UploadStatus",
    "EncodingProfile",
    "TranscodingJob",
    "JobStatus",
    "ProfileSnapshot",
    "VideoRendition",
    "Thumbnail",
    # Value Objects
    "Resolution",
    "CommandBindings",
    "render_command",
]
