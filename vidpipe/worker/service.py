"""Queue-driven transcoding worker.

Each message moves through download, transform, upload and report, and
ends either acknowledged or dead-lettered. Every failure path marks the job
failed first, so a dead-lettered message never leaves a job that still
looks runnable.
"""

import asyncio
import tempfile
from pathlib import Path, PurePosixPath

from vidpipe.application.dtos.transcoding import (
    ProgressReport,
    RenditionReport,
    TranscodingJobMessage,
)
from vidpipe.application.services.progress import ProgressReporter
from vidpipe.application.services.thumbnails import ThumbnailService
from vidpipe.commons.infrastructure.blob.base import BlobStorageBase
from vidpipe.commons.infrastructure.queue.base import MessageQueueBase, QueuedMessage
from vidpipe.commons.settings.models import Settings
from vidpipe.commons.telemetry import LogContext, get_logger, set_correlation_id
from vidpipe.domain.exceptions import (
    FailureReason,
    InvalidCommandTemplateException,
    SubprocessFailedException,
    TransientInfraException,
)
from vidpipe.domain.models.rendition import rendition_type_for
from vidpipe.domain.value_objects.command_template import CommandBindings, render_command
from vidpipe.domain.value_objects.resolution import Resolution
from vidpipe.domain.value_objects.storage_paths import rendition_file_name, rendition_path
from vidpipe.infrastructure.media.base import MediaToolBase, MediaToolError
from vidpipe.infrastructure.repositories.jobs import JobRepository

logger = get_logger(__name__)

_CONTENT_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mkv": "video/x-matroska",
    "mov": "video/quicktime",
    "m3u8": "application/vnd.apple.mpegurl",
    "hls": "application/vnd.apple.mpegurl",
    "mpd": "application/dash+xml",
    "dash": "application/dash+xml",
}


class JobStepFailed(Exception):
    """A non-subprocess step failed; carries its dead-letter classification."""

    def __init__(self, reason: FailureReason, description: str) -> None:
        self.reason = reason
        self.description = description
        super().__init__(f"{reason.value}: {description}")


def thumbnail_offsets(duration_seconds: float, count: int) -> list[int]:
    """Capture points at 10%, 30%, 50%... of the duration, in whole seconds."""
    if duration_seconds <= 0:
        return []
    return [round(duration_seconds * (0.1 + 0.2 * i)) for i in range(count)]


class TranscodingWorker:
    """Consumes transcoding messages one at a time.

    Duplicate deliveries are tolerated: a message for a job that is
    already completed or failed is acknowledged without work, and
    completion itself is idempotent.
    """

    def __init__(
        self,
        queue: MessageQueueBase[TranscodingJobMessage],
        jobs: JobRepository,
        progress: ProgressReporter,
        blob_storage: BlobStorageBase,
        media_tool: MediaToolBase,
        thumbnails: ThumbnailService,
        settings: Settings,
    ) -> None:
        """Initialize the worker.

        Args:
            queue: Source of job messages.
            jobs: Job repository, for terminal-state checks.
            progress: Job status reporter.
            blob_storage: Store holding sources, renditions and thumbnails.
            media_tool: Transform, probe and frame capture.
            thumbnails: Thumbnail persistence.
            settings: Application settings.
        """
        self._queue = queue
        self._jobs = jobs
        self._progress = progress
        self._blob = blob_storage
        self._media = media_tool
        self._thumbnails = thumbnails

        worker = settings.worker
        self._temp_dir = worker.temp_dir
        self._idle_wait = worker.idle_wait_seconds
        self._failure_backoff = worker.failure_backoff_seconds
        self._thumbnail_count = worker.thumbnail_count
        self._thumbnail_size = (worker.thumbnail_width, worker.thumbnail_height)
        self._message_limit = worker.status_message_limit

        buckets = settings.blob_storage.buckets
        self._uploads_bucket = buckets.uploads
        self._renditions_bucket = buckets.renditions

    async def run(self, stop: asyncio.Event) -> None:
        """Process messages until ``stop`` is set.

        An unexpected error in one iteration is logged and followed by a
        bounded backoff; it never ends the loop. Cancelling the task that
        runs this coroutine terminates any in-flight subprocess.
        """
        logger.info("Transcoding worker started")
        while not stop.is_set():
            try:
                processed = await self.process_next()
            except Exception:
                logger.exception("Unexpected error in worker loop")
                await self._sleep(stop, self._failure_backoff)
                continue
            if not processed:
                await self._sleep(stop, self._idle_wait)
        logger.info("Transcoding worker stopped")

    @staticmethod
    async def _sleep(stop: asyncio.Event, seconds: float) -> None:
        try:
            await asyncio.wait_for(stop.wait(), seconds)
        except TimeoutError:
            pass

    async def process_next(self) -> bool:
        """Consume and fully settle at most one message.

        Returns:
            False if no message was visible.

        Raises:
            Exception: Anything unexpected, after the job has been failed
                and the message dead-lettered where possible.
        """
        delivery = await self._queue.consume()
        if delivery is None:
            return False

        message = delivery.message
        set_correlation_id(message.job_id)
        with LogContext(
            job_id=message.job_id,
            session_id=message.session_id,
            delivery_count=delivery.handle.delivery_count,
        ):
            try:
                await self._process(delivery)
            except (SubprocessFailedException, JobStepFailed) as e:
                await self._abandon(delivery, e.reason, e.description)
            except Exception as e:
                await self._abandon(
                    delivery,
                    FailureReason.UNEXPECTED_WORKER_ERROR,
                    f"{type(e).__name__}: {e}",
                )
                raise
        return True

    async def _process(self, delivery: QueuedMessage[TranscodingJobMessage]) -> None:
        message = delivery.message

        job = await self._jobs.get(message.job_id)
        if job is None:
            raise JobStepFailed(
                FailureReason.UNEXPECTED_WORKER_ERROR,
                f"Job {message.job_id} does not exist",
            )
        if job.is_terminal:
            logger.info("Job already settled, skipping", extra={"status": job.status.value})
            await self._queue.ack(delivery.handle)
            return

        logger.info("Processing transcoding job")
        await self._report(message.job_id, 0, "Processing started.")

        with tempfile.TemporaryDirectory(prefix="vidpipe-job-", dir=self._temp_dir) as tmp:
            workdir = Path(tmp)
            source = await self._download_source(message, workdir)

            await self._report(message.job_id, 10, "Transcoding.")
            output = await self._transform(message, source, workdir)

            await self._report(message.job_id, 70, "Uploading rendition.")
            rendition = await self._store_rendition(message, output)

            await self._report(message.job_id, 85, "Generating thumbnails.")
            await self._capture_thumbnails(message.session_id, source)

            try:
                completed = await self._progress.complete(message.job_id, [rendition])
            except TransientInfraException as e:
                raise JobStepFailed(FailureReason.RENDITION_STORAGE_FAILED, str(e)) from e

        if completed is None:
            logger.warning("Job was failed elsewhere before completion")
        if not await self._queue.ack(delivery.handle):
            logger.warning("Lease lost before acknowledgement; message will be redelivered")

    async def _report(self, job_id: str, progress: int, status_message: str) -> None:
        await self._progress.report(
            ProgressReport(job_id=job_id, progress=progress, status_message=status_message)
        )

    async def _download_source(self, message: TranscodingJobMessage, workdir: Path) -> Path:
        name = PurePosixPath(message.source_path).name or "source"
        source = workdir / f"input_{name}"
        try:
            await self._blob.download_to_file(self._uploads_bucket, message.source_path, source)
        except Exception as e:
            raise JobStepFailed(
                FailureReason.SOURCE_DOWNLOAD_FAILED,
                f"{message.source_path}: {type(e).__name__}: {e}",
            ) from e
        logger.debug("Source downloaded", extra={"bytes": source.stat().st_size})
        return source

    async def _transform(
        self,
        message: TranscodingJobMessage,
        source: Path,
        workdir: Path,
    ) -> Path:
        """Run the profile's command and check it produced the expected file."""
        resolution = Resolution.parse(message.target_resolution)
        output = workdir / rendition_file_name(
            message.job_id, resolution.short_label, message.target_format
        )

        try:
            args = render_command(
                message.command_template,
                CommandBindings(
                    input_path=str(source),
                    output_path=str(output),
                    resolution=str(resolution),
                    bitrate_kbps=message.target_bitrate_kbps,
                ),
            )
            result = await self._media.transform(args)
        except (MediaToolError, InvalidCommandTemplateException) as e:
            raise SubprocessFailedException(FailureReason.FFMPEG_EXCEPTION, str(e)) from e

        if not result.succeeded:
            raise SubprocessFailedException(
                FailureReason.FFMPEG_EXECUTION_FAILED,
                f"Exit code {result.exit_code}: {result.error_text(self._message_limit)}",
                exit_code=result.exit_code,
            )
        if not output.is_file() or output.stat().st_size == 0:
            raise SubprocessFailedException(
                FailureReason.FFMPEG_OUTPUT_MISSING,
                f"FFmpeg exited successfully but {output.name} was not produced.",
                exit_code=result.exit_code,
            )
        return output

    async def _store_rendition(
        self,
        message: TranscodingJobMessage,
        output: Path,
    ) -> RenditionReport:
        """Upload the output and confirm the store holds it."""
        path = rendition_path(message.job_id, output.name)
        content_type = _CONTENT_TYPES.get(message.target_format.lower(), "application/octet-stream")
        try:
            await self._blob.upload_file(
                self._renditions_bucket, path, output, content_type=content_type
            )
            stored = await self._blob.exists(self._renditions_bucket, path)
        except Exception as e:
            raise JobStepFailed(
                FailureReason.RENDITION_STORAGE_FAILED, f"{path}: {type(e).__name__}: {e}"
            ) from e

        if not stored:
            raise JobStepFailed(
                FailureReason.NO_RENDITIONS_STORED,
                "Transform succeeded but no rendition could be confirmed in storage.",
            )

        logger.info("Rendition stored", extra={"storage_path": path})
        return RenditionReport(
            rendition_type=rendition_type_for(message.target_resolution, message.target_format),
            storage_path=path,
            resolution=message.target_resolution,
            bitrate_kbps=message.target_bitrate_kbps,
            encrypted=message.apply_drm,
        )

    async def _capture_thumbnails(self, session_id: str, source: Path) -> None:
        """Capture evenly spaced frames. Failures are logged per frame."""
        try:
            duration = await self._media.probe_duration(source)
        except Exception as e:
            logger.warning("Duration probe failed", extra={"error": str(e)})
            duration = 0.0
        if duration <= 0:
            logger.warning("Duration unknown, skipping thumbnails")
            return

        width, height = self._thumbnail_size
        has_default = False
        for order, offset in enumerate(thumbnail_offsets(duration, self._thumbnail_count)):
            try:
                frame = await self._media.extract_frame(source, offset, width, height)
                await self._thumbnails.add_thumbnail(
                    session_id,
                    frame.data,
                    capture_seconds=offset,
                    display_order=order,
                    is_default=not has_default,
                    content_type=frame.content_type,
                )
            except Exception as e:
                logger.warning(
                    "Thumbnail capture failed",
                    extra={"display_order": order, "offset_seconds": offset, "error": str(e)},
                )
                continue
            has_default = True

    async def _abandon(
        self,
        delivery: QueuedMessage[TranscodingJobMessage],
        reason: FailureReason,
        description: str,
    ) -> None:
        """Fail the job, then dead-letter the message."""
        logger.error(
            "Transcoding job failed",
            extra={"reason": reason.value, "error": description[:500]},
        )
        await self._progress.fail(delivery.message.job_id, f"{reason.value}: {description}")
        if not await self._queue.dead_letter(delivery.handle, reason.value, description):
            logger.warning("Lease lost before dead-lettering; message will be redelivered")
