"""Unit tests for Application DTOs."""

import json

import pytest
from pydantic import ValidationError

from vidpipe.application.dtos.playback import SignedUrlResponse
from vidpipe.application.dtos.transcoding import (
    ProgressReport,
    TranscodingJobMessage,
    TranscodingJobResponse,
)
from vidpipe.application.dtos.upload import InitiateUploadRequest, UploadStatusResponse
from vidpipe.domain.models.job import JobStatus, ProfileSnapshot, TranscodingJob
from vidpipe.domain.models.upload import UploadSession


class TestInitiateUploadRequest:
    """Tests for InitiateUploadRequest DTO."""

    def test_valid(self):
        request = InitiateUploadRequest(
            owner_id="user-1", filename="clip.mp4", size_bytes=100, total_chunks=2
        )
        assert request.mime_type == "application/octet-stream"

    def test_zero_chunks(self):
        with pytest.raises(ValidationError):
            InitiateUploadRequest(owner_id="u", filename="a", size_bytes=1, total_chunks=0)

    def test_empty_filename(self):
        with pytest.raises(ValidationError):
            InitiateUploadRequest(owner_id="u", filename="", size_bytes=1, total_chunks=1)


class TestUploadStatusResponse:
    """Tests for UploadStatusResponse DTO."""

    def test_from_session_sorts_and_dedupes(self):
        session = UploadSession(
            owner_id="user-1",
            filename="clip.mp4",
            size_bytes=40,
            total_chunks=4,
            completed_chunks=[3, 0, 3],
        )

        response = UploadStatusResponse.from_session(session)

        assert response.received_chunks == [0, 3]
        assert response.missing_chunks == [1, 2]


class TestTranscodingJobMessage:
    """Tests for the queue payload."""

    @pytest.fixture
    def message(self) -> TranscodingJobMessage:
        return TranscodingJobMessage(
            job_id="job-1",
            session_id="s-1",
            source_path="s-1/clip.mp4",
            command_template="-i {inputPath} {outputPath}",
            target_format="mp4",
            target_resolution="1280x720",
            target_bitrate_kbps=2500,
            apply_drm=True,
            metadata={"profileName": "HLS 720p"},
        )

    def test_serialized_with_camel_case(self, message):
        data = json.loads(message.model_dump_json())

        assert data["jobId"] == "job-1"
        assert data["sourcePath"] == "s-1/clip.mp4"
        assert data["targetBitrateKbps"] == 2500
        assert data["applyDrm"] is True

    def test_decodes_either_key_style(self, message):
        decoded = TranscodingJobMessage.model_validate_json(message.model_dump_json())
        assert decoded == message

        snake = TranscodingJobMessage.model_validate(message.model_dump())
        assert snake == message

    def test_bitrate_must_be_positive(self):
        with pytest.raises(ValidationError):
            TranscodingJobMessage(
                job_id="j",
                session_id="s",
                source_path="p",
                command_template="-i {inputPath} {outputPath}",
                target_format="mp4",
                target_resolution="1x1",
                target_bitrate_kbps=0,
            )


class TestProgressReport:
    """Tests for ProgressReport DTO."""

    def test_defaults_to_in_progress(self):
        assert ProgressReport(job_id="j", progress=10).status == JobStatus.IN_PROGRESS

    @pytest.mark.parametrize("progress", [-1, 101])
    def test_bounds(self, progress):
        with pytest.raises(ValidationError):
            ProgressReport(job_id="j", progress=progress)


class TestTranscodingJobResponse:
    """Tests for TranscodingJobResponse DTO."""

    def test_from_job(self, profile):
        job = TranscodingJob(owner_id="u", session_id="s", profile=ProfileSnapshot.of(profile))

        response = TranscodingJobResponse.from_job(job)

        assert response.job_id == job.id
        assert response.profile_name == "HLS 720p"
        assert response.target_resolution == "1280x720"
        assert response.renditions == []


class TestSignedUrlResponse:
    """Tests for SignedUrlResponse DTO."""

    def test_success_requires_url(self):
        with pytest.raises(ValidationError):
            SignedUrlResponse(success=True)

    def test_failure_forbids_url(self):
        with pytest.raises(ValidationError):
            SignedUrlResponse(success=False, url="https://cdn/x")

    def test_failure(self):
        response = SignedUrlResponse(success=False, message="none")
        assert response.url is None
