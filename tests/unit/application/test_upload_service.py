"""Unit tests for chunked upload assembly."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from vidpipe.application.dtos.upload import InitiateUploadRequest
from vidpipe.application.services.upload import MERGED_MESSAGE
from vidpipe.domain.exceptions import (
    ChunkMissingException,
    InvalidChunkIndexException,
    NotFoundException,
    UploadAlreadyCompletedException,
)
from vidpipe.domain.models.upload import UploadStatus
from vidpipe.domain.value_objects.storage_paths import chunk_path

CHUNKS = [b"first-", b"second-", b"third"]


async def _initiate(upload_service, total_chunks=3, filename="clip.mp4"):
    response = await upload_service.initiate_upload(
        InitiateUploadRequest(
            owner_id="user-1",
            filename=filename,
            size_bytes=sum(len(c) for c in CHUNKS),
            mime_type="video/mp4",
            total_chunks=total_chunks,
        )
    )
    return response.upload_id


class TestInitiateUpload:
    """Tests for opening upload sessions."""

    async def test_creates_in_progress_session(self, upload_service, sessions):
        upload_id = await _initiate(upload_service)

        session = await sessions.get(upload_id)
        assert session is not None
        assert session.status == UploadStatus.IN_PROGRESS
        assert session.total_chunks == 3
        assert session.completed_chunks == []
        assert session.final_asset_path is None

    async def test_status_reports_missing_chunks(self, upload_service):
        upload_id = await _initiate(upload_service)
        await upload_service.put_chunk(upload_id, 1, CHUNKS[1])

        status = await upload_service.get_upload_status(upload_id)

        assert status.received_chunks == [1]
        assert status.missing_chunks == [0, 2]
        assert status.status == UploadStatus.IN_PROGRESS

    async def test_status_of_unknown_upload(self, upload_service):
        with pytest.raises(NotFoundException):
            await upload_service.get_upload_status("missing")

    async def test_list_user_uploads_filters_by_status(self, upload_service):
        done = await _initiate(upload_service, total_chunks=1)
        await upload_service.put_chunk(done, 0, b"x")
        await _initiate(upload_service)

        completed = await upload_service.list_user_uploads(
            "user-1", status=UploadStatus.COMPLETED
        )
        everything = await upload_service.list_user_uploads("user-1")

        assert [u.upload_id for u in completed] == [done]
        assert len(everything) == 2
        assert await upload_service.list_user_uploads("someone-else") == []


class TestPutChunk:
    """Tests for chunk writes and merge."""

    async def test_out_of_order_chunks_merge_in_index_order(
        self, upload_service, sessions, blob, settings
    ):
        upload_id = await _initiate(upload_service)

        first = await upload_service.put_chunk(upload_id, 2, CHUNKS[2])
        second = await upload_service.put_chunk(upload_id, 0, CHUNKS[0])
        assert first.is_completed is False
        assert second.is_completed is False
        assert (await sessions.get(upload_id)).status == UploadStatus.IN_PROGRESS

        last = await upload_service.put_chunk(upload_id, 1, CHUNKS[1])

        assert last.is_completed is True
        assert last.message == MERGED_MESSAGE
        assert last.final_storage_path == f"{upload_id}/clip.mp4"

        merged = await blob.download(settings.blob_storage.buckets.uploads, last.final_storage_path)
        assert merged == b"".join(CHUNKS)

        session = await sessions.get(upload_id)
        assert session.status == UploadStatus.COMPLETED
        assert session.final_asset_path == last.final_storage_path
        assert sorted(session.completed_chunks) == [0, 1, 2]

    async def test_merge_deletes_chunk_blobs(self, upload_service, blob, settings):
        upload_id = await _initiate(upload_service)
        for index, data in enumerate(CHUNKS):
            await upload_service.put_chunk(upload_id, index, data)

        assert blob.list_paths(settings.blob_storage.buckets.chunks, upload_id) == []

    async def test_chunk_cleanup_failure_is_not_fatal(self, upload_service, blob):
        upload_id = await _initiate(upload_service, total_chunks=1)
        blob.delete = AsyncMock(side_effect=OSError("store offline"))

        response = await upload_service.put_chunk(upload_id, 0, b"only")

        assert response.is_completed is True

    async def test_duplicate_chunk_is_not_double_counted(self, upload_service, sessions):
        upload_id = await _initiate(upload_service)

        await upload_service.put_chunk(upload_id, 0, b"old")
        response = await upload_service.put_chunk(upload_id, 0, CHUNKS[0])

        assert response.is_completed is False
        session = await sessions.get(upload_id)
        assert session.completed_chunks == [0]

    async def test_resent_chunk_overwrites_content(self, upload_service, blob, settings):
        upload_id = await _initiate(upload_service)
        await upload_service.put_chunk(upload_id, 0, b"stale-")
        await upload_service.put_chunk(upload_id, 0, CHUNKS[0])
        await upload_service.put_chunk(upload_id, 1, CHUNKS[1])
        last = await upload_service.put_chunk(upload_id, 2, CHUNKS[2])

        merged = await blob.download(settings.blob_storage.buckets.uploads, last.final_storage_path)
        assert merged == b"".join(CHUNKS)

    @pytest.mark.parametrize("index", [-1, 3, 10])
    async def test_out_of_range_index_rejected(self, upload_service, sessions, index):
        upload_id = await _initiate(upload_service)

        with pytest.raises(InvalidChunkIndexException):
            await upload_service.put_chunk(upload_id, index, b"data")

        assert (await sessions.get(upload_id)).completed_chunks == []

    async def test_write_to_completed_session_rejected(self, upload_service):
        upload_id = await _initiate(upload_service, total_chunks=1)
        await upload_service.put_chunk(upload_id, 0, b"data")

        with pytest.raises(UploadAlreadyCompletedException):
            await upload_service.put_chunk(upload_id, 0, b"again")

    async def test_unknown_session_rejected(self, upload_service):
        with pytest.raises(NotFoundException):
            await upload_service.put_chunk("missing", 0, b"data")

    async def test_missing_chunk_fails_merge_and_keeps_session_open(
        self, upload_service, sessions, blob, settings
    ):
        upload_id = await _initiate(upload_service)
        await upload_service.put_chunk(upload_id, 0, CHUNKS[0])
        await upload_service.put_chunk(upload_id, 1, CHUNKS[1])
        await blob.delete(settings.blob_storage.buckets.chunks, chunk_path(upload_id, 1))

        with pytest.raises(ChunkMissingException) as exc_info:
            await upload_service.put_chunk(upload_id, 2, CHUNKS[2])

        assert exc_info.value.index == 1
        session = await sessions.get(upload_id)
        assert session.status == UploadStatus.IN_PROGRESS
        assert session.final_asset_path is None
        assert session.merge_lease_expires == 0.0

        # Re-uploading the lost chunk retries the merge
        retry = await upload_service.put_chunk(upload_id, 1, CHUNKS[1])
        assert retry.is_completed is True

    async def test_concurrent_chunks_merge_exactly_once(self, upload_service, blob, settings):
        upload_id = await _initiate(upload_service)
        uploads_bucket = settings.blob_storage.buckets.uploads
        original_upload_file = blob.upload_file
        blob.upload_file = AsyncMock(side_effect=original_upload_file)

        results = await asyncio.gather(
            *(upload_service.put_chunk(upload_id, i, data) for i, data in enumerate(CHUNKS))
        )

        assert sum(r.is_completed for r in results) == 1
        assert blob.upload_file.await_count == 1
        merged = await blob.download(uploads_bucket, f"{upload_id}/clip.mp4")
        assert merged == b"".join(CHUNKS)

    async def test_filename_path_components_are_dropped(self, upload_service):
        upload_id = await _initiate(upload_service, total_chunks=1, filename="../../etc/clip.mov")

        response = await upload_service.put_chunk(upload_id, 0, b"data")

        assert response.final_storage_path == f"{upload_id}/clip.mov"
