"""Chunked upload assembly: chunk writes, completion detection and merge."""

import tempfile
from pathlib import Path

from vidpipe.application.dtos.upload import (
    ChunkUploadResponse,
    InitiateUploadRequest,
    InitiateUploadResponse,
    UploadStatusResponse,
)
from vidpipe.commons.infrastructure.blob.base import BlobNotFoundError, BlobStorageBase
from vidpipe.commons.settings.models import Settings
from vidpipe.commons.telemetry import LogContext, get_logger
from vidpipe.domain.exceptions import (
    ChunkMissingException,
    InvalidChunkIndexException,
    NotFoundException,
    UploadAlreadyCompletedException,
)
from vidpipe.domain.models.upload import UploadSession, UploadStatus
from vidpipe.domain.value_objects.storage_paths import chunk_path, merged_asset_path
from vidpipe.infrastructure.repositories.upload_sessions import UploadSessionRepository

MERGED_MESSAGE = "File upload completed and merged successfully."


class UploadService:
    """Accepts chunks in any order and merges them exactly once.

    Chunk bookkeeping is an atomic add-to-set on the session, so concurrent
    writers never lose an index. Whoever observes the full set first takes
    a time-limited merge claim; other writers see the claim and return
    without merging. A failed merge drops the claim and leaves the session
    in progress, so the next chunk write (or a re-upload) retries it.
    """

    def __init__(
        self,
        sessions: UploadSessionRepository,
        blob_storage: BlobStorageBase,
        settings: Settings,
    ) -> None:
        """Initialize upload service.

        Args:
            sessions: Upload session repository.
            blob_storage: Store for chunks and merged assets.
            settings: Application settings.
        """
        self._sessions = sessions
        self._blob = blob_storage
        self._logger = get_logger(__name__)

        self._chunks_bucket = settings.blob_storage.buckets.chunks
        self._uploads_bucket = settings.blob_storage.buckets.uploads
        self._merge_lease_seconds = settings.upload.merge_lease_seconds
        self._temp_dir = settings.worker.temp_dir

    async def initiate_upload(self, request: InitiateUploadRequest) -> InitiateUploadResponse:
        """Open a new in-progress upload session."""
        session = UploadSession(
            owner_id=request.owner_id,
            filename=request.filename,
            size_bytes=request.size_bytes,
            mime_type=request.mime_type,
            total_chunks=request.total_chunks,
        )
        await self._sessions.add(session)

        self._logger.info(
            "Upload initiated",
            extra={
                "session_id": session.id,
                "owner_id": session.owner_id,
                "total_chunks": session.total_chunks,
                "size_bytes": session.size_bytes,
            },
        )
        return InitiateUploadResponse(
            upload_id=session.id,
            total_chunks=session.total_chunks,
            status=session.status,
        )

    async def put_chunk(self, session_id: str, index: int, data: bytes) -> ChunkUploadResponse:
        """Store one chunk and merge the upload if it was the last one missing.

        Re-sending an index overwrites the stored chunk and is not counted
        twice.

        Args:
            session_id: Upload to write into.
            index: Zero-based chunk index.
            data: Chunk bytes.

        Returns:
            Whether the upload is now complete, with the merged path if so.

        Raises:
            NotFoundException: If the session does not exist.
            InvalidChunkIndexException: If the index is out of range.
            UploadAlreadyCompletedException: If the session was already merged.
            ChunkMissingException: If a recorded chunk vanished before merge.
            TransientInfraException: If storage or database I/O fails.
        """
        session = await self._require(session_id)
        if not session.accepts_index(index):
            raise InvalidChunkIndexException(session_id, index, session.total_chunks)
        if session.is_completed:
            raise UploadAlreadyCompletedException(session_id)

        await self._blob.upload(self._chunks_bucket, chunk_path(session_id, index), data)

        updated = await self._sessions.add_chunk(session_id, index)
        if updated is None:
            # Completed between our read and our write
            raise UploadAlreadyCompletedException(session_id)

        self._logger.debug(
            "Chunk stored",
            extra={
                "session_id": session_id,
                "chunk_index": index,
                "received": updated.received_count,
                "total_chunks": updated.total_chunks,
            },
        )

        if updated.all_chunks_received:
            merged = await self._try_merge(session_id)
            if merged is not None:
                return ChunkUploadResponse(
                    upload_id=session_id,
                    chunk_index=index,
                    is_completed=True,
                    final_storage_path=merged.final_asset_path,
                    message=MERGED_MESSAGE,
                )

        return ChunkUploadResponse(
            upload_id=session_id,
            chunk_index=index,
            is_completed=False,
            message=f"Chunk {index} processed.",
        )

    async def get_upload_status(self, session_id: str) -> UploadStatusResponse:
        """Current progress, including the chunk indices still missing."""
        return UploadStatusResponse.from_session(await self._require(session_id))

    async def list_user_uploads(
        self,
        owner_id: str,
        status: UploadStatus | None = None,
    ) -> list[UploadStatusResponse]:
        """Uploads of one owner, newest first."""
        sessions = await self._sessions.list_for_owner(owner_id, status=status)
        return [UploadStatusResponse.from_session(s) for s in sessions]

    async def _require(self, session_id: str) -> UploadSession:
        session = await self._sessions.get(session_id)
        if session is None:
            raise NotFoundException("Upload session", session_id)
        return session

    async def _try_merge(self, session_id: str) -> UploadSession | None:
        """Merge if no one else is merging.

        Returns:
            The completed session, or None if another caller holds the claim.
        """
        claimed = await self._sessions.claim_merge(session_id, self._merge_lease_seconds)
        if claimed is None:
            self._logger.debug("Merge already claimed", extra={"session_id": session_id})
            return None

        with LogContext(session_id=session_id):
            try:
                final_path = await self._merge(claimed)
            except Exception:
                self._logger.warning("Merge failed, releasing claim", exc_info=True)
                await self._sessions.release_merge(session_id)
                raise

            completed = await self._sessions.complete(session_id, final_path)
            if completed is None:
                # Lease outlived by a slow merge and another caller finished first
                current = await self._require(session_id)
                self._logger.warning("Session completed by another merge")
                return current if current.is_completed else None

            self._logger.info(
                "Upload merged",
                extra={"final_asset_path": final_path, "total_chunks": completed.total_chunks},
            )
            await self._delete_chunks(completed)
            return completed

    async def _merge(self, session: UploadSession) -> str:
        """Concatenate chunks 0..N-1 and store the result as the final asset."""
        final_path = merged_asset_path(session.id, session.filename)

        with tempfile.TemporaryDirectory(prefix="vidpipe-merge-", dir=self._temp_dir) as tmp:
            merged_file = Path(tmp) / "merged"
            with merged_file.open("wb") as out:
                for index in range(session.total_chunks):
                    try:
                        data = await self._blob.download(
                            self._chunks_bucket, chunk_path(session.id, index)
                        )
                    except BlobNotFoundError as e:
                        raise ChunkMissingException(session.id, index) from e
                    out.write(data)

            await self._blob.upload_file(
                self._uploads_bucket,
                final_path,
                merged_file,
                content_type=session.mime_type,
            )
        return final_path

    async def _delete_chunks(self, session: UploadSession) -> None:
        """Remove chunk blobs after a merge. Failures are logged only."""
        failed: list[int] = []
        for index in range(session.total_chunks):
            try:
                await self._blob.delete(self._chunks_bucket, chunk_path(session.id, index))
            except Exception as e:
                self._logger.warning(
                    "Failed to delete chunk",
                    extra={"chunk_index": index, "error": str(e)},
                )
                failed.append(index)
        if failed:
            self._logger.warning(
                "Chunk cleanup incomplete",
                extra={"failed_chunks": failed},
            )
