"""Worker-side job status reporting."""

from vidpipe.application.dtos.transcoding import ProgressReport, RenditionReport
from vidpipe.commons.telemetry import get_logger
from vidpipe.domain.exceptions import ValidationException
from vidpipe.domain.models.job import JobStatus, TranscodingJob
from vidpipe.domain.models.rendition import VideoRendition, rendition_id_for
from vidpipe.infrastructure.repositories.jobs import COMPLETED_MESSAGE, JobRepository


class ProgressReporter:
    """Applies progress, completion and failure reports to jobs.

    Writes that the status machine rejects (a terminal job, or lower
    progress than already recorded) are ignored with a log line rather
    than raised, since they are expected under message redelivery.
    """

    def __init__(self, jobs: JobRepository) -> None:
        self._jobs = jobs
        self._logger = get_logger(__name__)

    async def report(self, report: ProgressReport) -> TranscodingJob | None:
        """Record a checkpoint. Completed and failed reports are routed accordingly."""
        if report.status == JobStatus.COMPLETED:
            return await self.complete(report.job_id, [], report.status_message)
        if report.status == JobStatus.FAILED:
            return await self.fail(report.job_id, report.status_message)
        if report.status != JobStatus.IN_PROGRESS:
            raise ValidationException(
                f"Cannot report status {report.status.value}", field="status"
            )

        job = await self._jobs.report_progress(
            report.job_id, report.progress, report.status_message
        )
        if job is None:
            self._logger.info(
                "Progress report ignored",
                extra={"job_id": report.job_id, "progress": report.progress},
            )
        return job

    async def complete(
        self,
        job_id: str,
        renditions: list[RenditionReport],
        status_message: str = COMPLETED_MESSAGE,
    ) -> TranscodingJob | None:
        """Attach renditions and mark the job completed.

        A completion with no renditions is refused; the job is failed
        instead because a successful exit alone does not prove output.
        """
        job = await self._jobs.get(job_id)
        if job is None:
            self._logger.warning("Completion for unknown job", extra={"job_id": job_id})
            return None
        if not renditions:
            return await self.fail(job_id, "Completion reported without renditions.")

        rows = [
            VideoRendition(
                id=rendition_id_for(job_id, r.rendition_type),
                job_id=job_id,
                session_id=job.session_id,
                rendition_type=r.rendition_type,
                storage_path=r.storage_path,
                resolution=r.resolution,
                bitrate_kbps=r.bitrate_kbps,
                encrypted=r.encrypted,
                generated_at=r.generated_at,
            )
            for r in renditions
        ]
        completed = await self._jobs.complete(job_id, rows, status_message or COMPLETED_MESSAGE)
        if completed is None:
            self._logger.warning(
                "Completion ignored for failed job", extra={"job_id": job_id}
            )
        else:
            self._logger.info(
                "Job completed",
                extra={"job_id": job_id, "renditions": len(rows)},
            )
        return completed

    async def fail(self, job_id: str, error_message: str) -> TranscodingJob | None:
        """Mark the job failed. A job already terminal is left as is."""
        failed = await self._jobs.fail(job_id, error_message)
        if failed is None:
            self._logger.info("Failure report ignored", extra={"job_id": job_id})
        else:
            self._logger.warning(
                "Job failed",
                extra={"job_id": job_id, "error": error_message[:200]},
            )
        return failed
