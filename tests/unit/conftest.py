"""Shared fixtures wiring services to in-memory providers."""

import base64

import pytest

from vidpipe.application.dtos.transcoding import TranscodingJobMessage
from vidpipe.application.services.orchestrator import JobOrchestrator
from vidpipe.application.services.playback import PlaybackService
from vidpipe.application.services.progress import ProgressReporter
from vidpipe.application.services.thumbnails import ThumbnailService
from vidpipe.application.services.upload import UploadService
from vidpipe.commons.infrastructure.blob import InMemoryBlobStorage
from vidpipe.commons.infrastructure.documentdb import InMemoryDocumentDB
from vidpipe.commons.infrastructure.queue import InMemoryMessageQueue
from vidpipe.commons.settings.models import (
    BlobStorageSettings,
    DocumentDBSettings,
    QueueSettings,
    Settings,
    SigningSettings,
    WorkerSettings,
)
from vidpipe.domain.models.profile import EncodingProfile
from vidpipe.infrastructure.repositories import (
    EncodingProfileRepository,
    JobRepository,
    ThumbnailRepository,
    UploadSessionRepository,
)
from vidpipe.infrastructure.signing import HmacUrlSigner

SIGNING_KEY = base64.b64encode(b"unit-test-signing-key").decode()


class FakeClock:
    """Manually advanced clock for lease and expiry tests."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        blob_storage=BlobStorageSettings(provider="memory"),
        document_db=DocumentDBSettings(provider="memory"),
        queue=QueueSettings(provider="memory"),
        signing=SigningSettings(
            base_url="https://cdn.example.com/media",
            security_key=SIGNING_KEY,
        ),
        worker=WorkerSettings(
            temp_dir=str(tmp_path),
            idle_wait_seconds=0.01,
            failure_backoff_seconds=0.0,
        ),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def document_db() -> InMemoryDocumentDB:
    return InMemoryDocumentDB()


@pytest.fixture
def blob() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def queue(clock) -> InMemoryMessageQueue[TranscodingJobMessage]:
    return InMemoryMessageQueue(
        TranscodingJobMessage, visibility_timeout_seconds=300, clock=clock
    )


@pytest.fixture
def sessions(document_db, settings) -> UploadSessionRepository:
    return UploadSessionRepository(
        document_db, settings.document_db.collections.upload_sessions
    )


@pytest.fixture
def profiles(document_db, settings) -> EncodingProfileRepository:
    return EncodingProfileRepository(
        document_db, settings.document_db.collections.encoding_profiles
    )


@pytest.fixture
def jobs(document_db, settings) -> JobRepository:
    collections = settings.document_db.collections
    return JobRepository(
        document_db, collections.transcoding_jobs, collections.renditions
    )


@pytest.fixture
def thumbnail_repository(document_db, settings) -> ThumbnailRepository:
    return ThumbnailRepository(document_db, settings.document_db.collections.thumbnails)


@pytest.fixture
def upload_service(sessions, blob, settings) -> UploadService:
    return UploadService(sessions, blob, settings)


@pytest.fixture
def orchestrator(sessions, profiles, jobs, queue) -> JobOrchestrator:
    return JobOrchestrator(sessions, profiles, jobs, queue)


@pytest.fixture
def progress(jobs) -> ProgressReporter:
    return ProgressReporter(jobs)


@pytest.fixture
def thumbnail_service(thumbnail_repository, sessions, blob, settings) -> ThumbnailService:
    return ThumbnailService(thumbnail_repository, sessions, blob, settings)


@pytest.fixture
def signer(clock) -> HmacUrlSigner:
    return HmacUrlSigner("https://cdn.example.com/media", SIGNING_KEY, clock=clock)


@pytest.fixture
def playback(sessions, jobs, thumbnail_service, signer, settings) -> PlaybackService:
    return PlaybackService(sessions, jobs, thumbnail_service, signer, settings)


@pytest.fixture
def profile() -> EncodingProfile:
    return EncodingProfile(
        id="profile-720",
        name="HLS 720p",
        resolution="1280x720",
        bitrate_kbps=2500,
        format="mp4",
        command_template="-i {inputPath} -s {resolution} -b:v {bitrate} {outputPath}",
    )


@pytest.fixture
def signing_key() -> str:
    return SIGNING_KEY
