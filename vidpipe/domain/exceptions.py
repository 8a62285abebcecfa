"""Domain exceptions for the upload and transcoding pipeline.

Every exception carries an :class:`ErrorKind` so boundaries can map it to a
response or a dead-letter classification without inspecting message text.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from vidpipe.domain.models.upload import UploadStatus


class ErrorKind(str, Enum):
    """Category of a pipeline failure."""

    VALIDATION = "validation"
    PRECONDITION = "precondition"
    NOT_FOUND = "not_found"
    TRANSIENT_INFRA = "transient_infra"
    SUBPROCESS = "subprocess"
    ACCESS_DENIED = "access_denied"


class FailureReason(str, Enum):
    """Classified dead-letter reasons recorded by the transcoding worker."""

    SOURCE_DOWNLOAD_FAILED = "Source Video Download Failed"
    FFMPEG_EXECUTION_FAILED = "FFmpeg Execution Failed"
    FFMPEG_EXCEPTION = "FFmpeg Exception"
    FFMPEG_OUTPUT_MISSING = "FFmpeg Output Missing"
    NO_RENDITIONS_STORED = "No Renditions Stored"
    RENDITION_STORAGE_FAILED = "Rendition Storage/Completion Failed"
    UNEXPECTED_WORKER_ERROR = "Unexpected Worker Error"


class DomainException(Exception):
    """Base exception for domain errors."""

    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION


# =============================================================================
# Validation
# =============================================================================


class ValidationException(DomainException):
    """Raised when input is malformed. Never retried."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidChunkIndexException(ValidationException):
    """Raised when a chunk index falls outside [0, total_chunks)."""

    def __init__(self, session_id: str, index: int, total_chunks: int) -> None:
        self.session_id = session_id
        self.index = index
        self.total_chunks = total_chunks
        super().__init__(
            f"Chunk index {index} out of range [0, {total_chunks}) "
            f"for upload {session_id}",
            field="chunk_index",
        )


class InvalidCommandTemplateException(ValidationException):
    """Raised when a command template is unusable."""

    def __init__(self, template: str, reason: str) -> None:
        self.template = template
        self.reason = reason
        super().__init__(f"Invalid command template: {reason}", field="command_template")


# =============================================================================
# Preconditions
# =============================================================================


class PreconditionFailedException(DomainException):
    """Raised when an operation is valid but the current state forbids it."""

    kind = ErrorKind.PRECONDITION


class UploadNotCompletedException(PreconditionFailedException):
    """Raised when transcoding is requested for an unfinished upload."""

    def __init__(self, session_id: str, status: UploadStatus) -> None:
        self.session_id = session_id
        self.status = status
        super().__init__(
            f"Upload {session_id} is not completed. Current status: {status.value}"
        )


class UploadOwnershipException(PreconditionFailedException):
    """Raised when a caller acts on an upload they do not own."""

    def __init__(self, session_id: str, owner_id: str) -> None:
        self.session_id = session_id
        self.owner_id = owner_id
        super().__init__(f"Upload {session_id} does not belong to {owner_id}")


class UploadAlreadyCompletedException(PreconditionFailedException):
    """Raised when a chunk arrives for an upload that is already merged."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Upload {session_id} is already completed")


# =============================================================================
# Lookup
# =============================================================================


class NotFoundException(DomainException):
    """Raised when a referenced record does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str, identifier: str, detail: str = "") -> None:
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found: {identifier}"
        super().__init__(f"{message} ({detail})" if detail else message)


# =============================================================================
# Infrastructure and subprocesses
# =============================================================================


class TransientInfraException(DomainException):
    """Raised when storage, database or broker I/O fails."""

    kind = ErrorKind.TRANSIENT_INFRA

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class ChunkMissingException(TransientInfraException):
    """Raised when a chunk recorded as received is absent from the store."""

    def __init__(self, session_id: str, index: int) -> None:
        self.session_id = session_id
        self.index = index
        super().__init__(
            "merge", f"chunk {index} of upload {session_id} is missing from storage"
        )


class SubprocessFailedException(DomainException):
    """Raised when an external tool fails or its output cannot be trusted."""

    kind = ErrorKind.SUBPROCESS

    def __init__(
        self,
        reason: FailureReason,
        description: str,
        exit_code: int | None = None,
    ) -> None:
        self.reason = reason
        self.description = description
        self.exit_code = exit_code
        super().__init__(f"{reason.value}: {description}")


# =============================================================================
# Access
# =============================================================================


class AccessDeniedException(DomainException):
    """Raised for any unusable signed URL.

    Expired, tampered and unknown URLs share one message so callers learn
    nothing about prior validity.
    """

    kind = ErrorKind.ACCESS_DENIED

    def __init__(self) -> None:
        super().__init__("Access denied")
