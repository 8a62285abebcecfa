"""Unit tests for job creation and queries."""

from unittest.mock import AsyncMock

import pytest

from vidpipe.application.dtos.transcoding import InitiateTranscodingRequest
from vidpipe.application.services.orchestrator import QUEUED_MESSAGE
from vidpipe.commons.infrastructure.queue import QueueUnavailableError
from vidpipe.domain.exceptions import (
    NotFoundException,
    TransientInfraException,
    UploadNotCompletedException,
    UploadOwnershipException,
)
from vidpipe.domain.models.job import JobStatus
from vidpipe.domain.models.upload import UploadSession, UploadStatus


@pytest.fixture
async def completed_session(sessions):
    session = UploadSession(
        owner_id="user-1",
        filename="clip.mp4",
        size_bytes=10,
        total_chunks=1,
        completed_chunks=[0],
        status=UploadStatus.COMPLETED,
        final_asset_path="s-1/clip.mp4",
        id="s-1",
    )
    await sessions.add(session)
    return session


@pytest.fixture
async def stored_profile(profiles, profile):
    await profiles.add(profile)
    return profile


def _request(session_id="s-1", owner_id="user-1", profile_id="profile-720"):
    return InitiateTranscodingRequest(
        owner_id=owner_id, session_id=session_id, profile_id=profile_id
    )


class TestInitiate:
    """Tests for JobOrchestrator.initiate."""

    async def test_creates_queued_job_and_publishes(
        self, orchestrator, jobs, queue, completed_session, stored_profile
    ):
        response = await orchestrator.initiate(_request())

        assert response.status == JobStatus.QUEUED
        assert response.progress == 0
        assert response.status_message == QUEUED_MESSAGE

        job = await jobs.get(response.job_id)
        assert job is not None
        assert job.profile.command_template == stored_profile.command_template
        assert job.profile.resolution == "1280x720"

        delivery = await queue.consume()
        assert delivery is not None
        message = delivery.message
        assert message.job_id == response.job_id
        assert message.session_id == "s-1"
        assert message.source_path == "s-1/clip.mp4"
        assert message.target_resolution == "1280x720"
        assert message.target_bitrate_kbps == 2500
        assert message.target_format == "mp4"
        assert delivery.handle.message_id == response.job_id

    async def test_profile_edits_do_not_change_created_job(
        self, orchestrator, jobs, profiles, completed_session, stored_profile
    ):
        response = await orchestrator.initiate(_request())
        await profiles.add(stored_profile.model_copy(update={"bitrate_kbps": 9000}))

        job = await jobs.get(response.job_id)
        assert job.profile.bitrate_kbps == 2500

    async def test_in_progress_session_rejected_without_job_row(
        self, orchestrator, sessions, jobs, queue, stored_profile
    ):
        await sessions.add(
            UploadSession(
                id="s-2",
                owner_id="user-1",
                filename="clip.mp4",
                size_bytes=10,
                total_chunks=2,
                completed_chunks=[0],
            )
        )

        with pytest.raises(UploadNotCompletedException) as exc_info:
            await orchestrator.initiate(_request(session_id="s-2"))

        assert exc_info.value.status == UploadStatus.IN_PROGRESS
        assert await jobs.list_for_session("s-2") == []
        assert queue.pending_count == 0

    async def test_missing_session_is_not_found(self, orchestrator, stored_profile):
        with pytest.raises(NotFoundException):
            await orchestrator.initiate(_request(session_id="nope"))

    async def test_foreign_session_rejected(
        self, orchestrator, jobs, completed_session, stored_profile
    ):
        with pytest.raises(UploadOwnershipException):
            await orchestrator.initiate(_request(owner_id="intruder"))

        assert await jobs.list_for_owner("intruder") == []

    async def test_missing_profile_is_not_found(self, orchestrator, completed_session):
        with pytest.raises(NotFoundException) as exc_info:
            await orchestrator.initiate(_request(profile_id="unknown"))

        assert exc_info.value.resource == "Encoding profile"

    async def test_inactive_profile_is_not_found(
        self, orchestrator, profiles, jobs, completed_session, profile
    ):
        await profiles.add(profile.model_copy(update={"is_active": False}))

        with pytest.raises(NotFoundException):
            await orchestrator.initiate(_request())

        assert await jobs.list_for_session("s-1") == []

    async def test_publish_failure_leaves_queued_job(
        self, orchestrator, jobs, queue, completed_session, stored_profile
    ):
        queue.publish = AsyncMock(side_effect=QueueUnavailableError("publish", "broker down"))

        with pytest.raises(TransientInfraException):
            await orchestrator.initiate(_request())

        orphaned = await jobs.list_for_session("s-1")
        assert len(orphaned) == 1
        assert orphaned[0].status == JobStatus.QUEUED


class TestJobQueries:
    """Tests for job lookups."""

    async def test_get_job_includes_renditions(
        self, orchestrator, progress, completed_session, stored_profile
    ):
        from vidpipe.application.dtos.transcoding import RenditionReport

        created = await orchestrator.initiate(_request())
        await progress.complete(
            created.job_id,
            [
                RenditionReport(
                    rendition_type="MP4_720p",
                    storage_path=f"{created.job_id}/{created.job_id}_720p.mp4",
                    resolution="1280x720",
                    bitrate_kbps=2500,
                )
            ],
        )

        job = await orchestrator.get_job(created.job_id)

        assert job.status == JobStatus.COMPLETED
        assert [r.rendition_type for r in job.renditions] == ["MP4_720p"]

    async def test_get_unknown_job(self, orchestrator):
        with pytest.raises(NotFoundException):
            await orchestrator.get_job("missing")

    async def test_list_jobs(self, orchestrator, completed_session, stored_profile):
        await orchestrator.initiate(_request())
        await orchestrator.initiate(_request())

        assert len(await orchestrator.list_jobs_for_owner("user-1")) == 2
        assert len(await orchestrator.list_jobs_for_session("s-1")) == 2
        assert await orchestrator.list_jobs_for_session("other") == []
