"""DTOs for chunked upload operations."""

from datetime import datetime

from pydantic import BaseModel, Field

from vidpipe.domain.models.upload import UploadSession, UploadStatus


class InitiateUploadRequest(BaseModel):
    """Request to open a new chunked upload."""

    owner_id: str = Field(description="Authenticated caller")
    filename: str = Field(min_length=1, description="Original file name")
    size_bytes: int = Field(ge=0, description="Declared total size")
    mime_type: str = Field(default="application/octet-stream")
    total_chunks: int = Field(ge=1, description="Number of chunks the client will send")


class InitiateUploadResponse(BaseModel):
    """Identifier and expectations for a new upload."""

    upload_id: str
    total_chunks: int
    status: UploadStatus


class ChunkUploadResponse(BaseModel):
    """Outcome of one chunk write."""

    upload_id: str
    chunk_index: int
    is_completed: bool = Field(description="True once the upload has been merged")
    final_storage_path: str | None = Field(
        default=None,
        description="Merged asset path, present only when completed",
    )
    message: str = ""


class UploadStatusResponse(BaseModel):
    """Progress of an upload, including the indices still to send."""

    upload_id: str
    owner_id: str
    filename: str
    size_bytes: int
    mime_type: str
    status: UploadStatus
    total_chunks: int
    received_chunks: list[int] = Field(description="Received indices, ascending")
    missing_chunks: list[int] = Field(description="Indices to (re)send, ascending")
    final_asset_path: str | None = None
    selected_thumbnail_path: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: UploadSession) -> "UploadStatusResponse":
        return cls(
            upload_id=session.id,
            owner_id=session.owner_id,
            filename=session.filename,
            size_bytes=session.size_bytes,
            mime_type=session.mime_type,
            status=session.status,
            total_chunks=session.total_chunks,
            received_chunks=sorted(set(session.completed_chunks)),
            missing_chunks=session.missing_chunks(),
            final_asset_path=session.final_asset_path,
            selected_thumbnail_path=session.selected_thumbnail_path,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )
