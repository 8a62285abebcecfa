"""Upload session domain model."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


class UploadStatus(str, Enum):
    """Lifecycle status of a chunked upload."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class UploadSession(BaseModel):
    """A resumable chunked upload of one source file.

    Chunks may arrive in any order and may be repeated. The session becomes
    COMPLETED exactly once, when every index in [0, total_chunks) has been
    received and the merged asset has been written; after that it is
    immutable apart from thumbnail selection.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Upload / video identifier",
    )
    owner_id: str = Field(description="User that initiated the upload")
    filename: str = Field(min_length=1, description="Original file name")
    size_bytes: int = Field(ge=0, description="Declared total size")
    mime_type: str = Field(default="application/octet-stream")
    total_chunks: int = Field(ge=1, description="Number of chunks expected")
    completed_chunks: list[int] = Field(
        default_factory=list,
        description="Distinct chunk indices received so far, unordered",
    )
    status: UploadStatus = Field(default=UploadStatus.IN_PROGRESS)
    final_asset_path: str | None = Field(
        default=None,
        description="Merged asset path in blob storage, set only when COMPLETED",
    )
    merge_lease_expires: float = Field(
        default=0.0,
        description="Epoch seconds until which one caller holds the merge claim",
    )
    default_thumbnail_id: str | None = None
    selected_thumbnail_path: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "UploadSession":
        has_path = bool(self.final_asset_path)
        if has_path != (self.status == UploadStatus.COMPLETED):
            raise ValueError("final_asset_path must be set if and only if completed")
        if any(not 0 <= i < self.total_chunks for i in self.completed_chunks):
            raise ValueError("completed_chunks contains an out-of-range index")
        return self

    @property
    def is_completed(self) -> bool:
        """Check if the upload has been merged."""
        return self.status == UploadStatus.COMPLETED

    @property
    def received_count(self) -> int:
        """Number of distinct chunks received."""
        return len(set(self.completed_chunks))

    @property
    def all_chunks_received(self) -> bool:
        """Check if every expected chunk index has been received."""
        return self.received_count == self.total_chunks

    def accepts_index(self, index: int) -> bool:
        """Check if a chunk index is within range."""
        return 0 <= index < self.total_chunks

    def missing_chunks(self) -> list[int]:
        """Indices not yet received, ascending. The resume point for clients."""
        received = set(self.completed_chunks)
        return [i for i in range(self.total_chunks) if i not in received]
