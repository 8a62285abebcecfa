"""Service construction from the infrastructure factory."""

from vidpipe.application.services.orchestrator import JobOrchestrator
from vidpipe.application.services.playback import PlaybackService
from vidpipe.application.services.progress import ProgressReporter
from vidpipe.application.services.thumbnails import ThumbnailService
from vidpipe.application.services.upload import UploadService
from vidpipe.infrastructure.factory import InfrastructureFactory


def get_upload_service(factory: InfrastructureFactory) -> UploadService:
    """Get upload service with all dependencies."""
    return UploadService(
        sessions=factory.get_upload_session_repository(),
        blob_storage=factory.get_blob_storage(),
        settings=factory.settings,
    )


def get_job_orchestrator(factory: InfrastructureFactory) -> JobOrchestrator:
    """Get job orchestrator with all dependencies."""
    return JobOrchestrator(
        sessions=factory.get_upload_session_repository(),
        profiles=factory.get_profile_repository(),
        jobs=factory.get_job_repository(),
        queue=factory.get_job_queue(),
    )


def get_progress_reporter(factory: InfrastructureFactory) -> ProgressReporter:
    return ProgressReporter(factory.get_job_repository())


def get_thumbnail_service(factory: InfrastructureFactory) -> ThumbnailService:
    return ThumbnailService(
        thumbnails=factory.get_thumbnail_repository(),
        sessions=factory.get_upload_session_repository(),
        blob_storage=factory.get_blob_storage(),
        settings=factory.settings,
    )


def get_playback_service(factory: InfrastructureFactory) -> PlaybackService:
    """Get playback service with all dependencies."""
    return PlaybackService(
        sessions=factory.get_upload_session_repository(),
        jobs=factory.get_job_repository(),
        thumbnails=get_thumbnail_service(factory),
        signer=factory.get_url_signer(),
        settings=factory.settings,
    )
