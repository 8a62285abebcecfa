"""Job creation from completed uploads, and job queries."""

from vidpipe.application.dtos.transcoding import (
    InitiateTranscodingRequest,
    TranscodingJobMessage,
    TranscodingJobResponse,
)
from vidpipe.commons.infrastructure.queue.base import MessageQueueBase, QueueUnavailableError
from vidpipe.commons.telemetry import LogContext, get_logger
from vidpipe.domain.exceptions import (
    NotFoundException,
    TransientInfraException,
    UploadNotCompletedException,
    UploadOwnershipException,
)
from vidpipe.domain.models.job import JobStatus, ProfileSnapshot, TranscodingJob
from vidpipe.infrastructure.repositories.jobs import JobRepository
from vidpipe.infrastructure.repositories.profiles import EncodingProfileRepository
from vidpipe.infrastructure.repositories.upload_sessions import UploadSessionRepository

QUEUED_MESSAGE = "Job created and queued for processing."


class JobOrchestrator:
    """Validates a transcoding request, persists the job and queues it.

    The job row is written before the message is published. If the publish
    fails the job stays QUEUED with no message behind it; that case is
    logged and surfaced as a transient error, and is left to an
    out-of-band reconciliation sweep.
    """

    def __init__(
        self,
        sessions: UploadSessionRepository,
        profiles: EncodingProfileRepository,
        jobs: JobRepository,
        queue: MessageQueueBase[TranscodingJobMessage],
    ) -> None:
        self._sessions = sessions
        self._profiles = profiles
        self._jobs = jobs
        self._queue = queue
        self._logger = get_logger(__name__)

    async def initiate(self, request: InitiateTranscodingRequest) -> TranscodingJobResponse:
        """Create and queue a transcoding job.

        Args:
            request: Owner, source upload and profile.

        Returns:
            The queued job.

        Raises:
            NotFoundException: If the upload or the profile does not exist,
                or the profile is inactive.
            UploadOwnershipException: If the upload belongs to someone else.
            UploadNotCompletedException: If the upload has not been merged.
            TransientInfraException: If persistence or publishing fails.
        """
        with LogContext(session_id=request.session_id, profile_id=request.profile_id):
            session = await self._sessions.get(request.session_id)
            if session is None:
                raise NotFoundException("Upload session", request.session_id)
            if session.owner_id != request.owner_id:
                raise UploadOwnershipException(request.session_id, request.owner_id)
            if not session.is_completed or session.final_asset_path is None:
                raise UploadNotCompletedException(request.session_id, session.status)

            profile = await self._profiles.get(request.profile_id)
            if profile is None:
                raise NotFoundException("Encoding profile", request.profile_id)
            if not profile.is_active:
                raise NotFoundException("Encoding profile", request.profile_id, "inactive")

            job = TranscodingJob(
                owner_id=request.owner_id,
                session_id=session.id,
                profile=ProfileSnapshot.of(profile),
                status=JobStatus.QUEUED,
                progress=0,
                status_message=QUEUED_MESSAGE,
            )
            await self._jobs.add(job)

            message = TranscodingJobMessage(
                job_id=job.id,
                session_id=session.id,
                source_path=session.final_asset_path,
                command_template=job.profile.command_template,
                target_format=job.profile.format,
                target_resolution=job.profile.resolution,
                target_bitrate_kbps=job.profile.bitrate_kbps,
                apply_drm=job.profile.apply_drm,
                metadata={"profileName": job.profile.name, "ownerId": job.owner_id},
            )
            try:
                await self._queue.publish(message, message_id=job.id)
            except QueueUnavailableError as e:
                self._logger.error(
                    "Job persisted but not queued",
                    extra={"job_id": job.id, "error": str(e)},
                )
                raise TransientInfraException("publish", str(e)) from e

            self._logger.info(
                "Transcoding job queued",
                extra={"job_id": job.id, "profile_name": profile.name},
            )
            return TranscodingJobResponse.from_job(job)

    async def get_job(self, job_id: str) -> TranscodingJobResponse:
        """Job state with its renditions.

        Raises:
            NotFoundException: If the job does not exist.
        """
        job = await self._jobs.get(job_id)
        if job is None:
            raise NotFoundException("Transcoding job", job_id)
        renditions = await self._jobs.renditions_for_job(job_id)
        return TranscodingJobResponse.from_job(job, renditions)

    async def list_jobs_for_owner(self, owner_id: str) -> list[TranscodingJobResponse]:
        jobs = await self._jobs.list_for_owner(owner_id)
        return [TranscodingJobResponse.from_job(job) for job in jobs]

    async def list_jobs_for_session(self, session_id: str) -> list[TranscodingJobResponse]:
        jobs = await self._jobs.list_for_session(session_id)
        return [TranscodingJobResponse.from_job(job) for job in jobs]
