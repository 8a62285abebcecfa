"""Transcoding worker entry point: ``python -m vidpipe.worker``."""

import asyncio
import logging
import signal

from vidpipe.commons.settings.loader import get_settings
from vidpipe.commons.settings.models import Settings
from vidpipe.commons.telemetry import configure_logging, get_logger
from vidpipe.dependencies import get_progress_reporter, get_thumbnail_service
from vidpipe.infrastructure.factory import get_factory
from vidpipe.worker.service import TranscodingWorker

logger = get_logger(__name__)


def _setup_logging(settings: Settings) -> None:
    """Configure logging for the worker process."""
    log_level = settings.telemetry.log_level or settings.app.log_level
    configure_logging(
        level=log_level,
        format_type=settings.telemetry.log_format,
        logger_name="vidpipe",
    )
    logging.getLogger().setLevel(getattr(logging, log_level.upper()))


async def run_worker(settings: Settings) -> None:
    """Build the worker from settings and run it until SIGINT/SIGTERM."""
    factory = get_factory(settings)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await factory.ensure_buckets()
        await factory.ensure_indexes()
        worker = TranscodingWorker(
            queue=factory.get_job_queue(),
            jobs=factory.get_job_repository(),
            progress=get_progress_reporter(factory),
            blob_storage=factory.get_blob_storage(),
            media_tool=factory.get_media_tool(),
            thumbnails=get_thumbnail_service(factory),
            settings=settings,
        )

        task = asyncio.create_task(worker.run(stop))
        await stop.wait()
        logger.info("Shutdown requested")
        # Cancelling terminates any in-flight ffmpeg and removes its temp files
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info("In-flight job interrupted; it will be redelivered")
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await factory.close_all()


def main() -> None:
    settings = get_settings()
    _setup_logging(settings)
    logger.info(
        "Starting transcoding worker",
        extra={"environment": settings.app.environment, "queue": settings.queue.provider},
    )
    asyncio.run(run_worker(settings))


if __name__ == "__main__":
    main()
