"""FFmpeg implementation of the media tool."""

import asyncio
import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from vidpipe.commons.telemetry import get_logger, timed
from vidpipe.infrastructure.media.base import (
    CapturedFrame,
    MediaToolBase,
    MediaToolError,
    ProcessResult,
)

logger = get_logger(__name__)

# Grace period between SIGTERM and SIGKILL for a cancelled child
TERMINATE_GRACE_SECONDS = 5.0


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    process.terminate()
    try:
        await asyncio.wait_for(process.wait(), TERMINATE_GRACE_SECONDS)
    except TimeoutError:
        process.kill()
        await process.wait()


async def run_process(
    args: list[str],
    timeout_seconds: float | None = None,
) -> ProcessResult:
    """Run a subprocess with captured output.

    The child is terminated if the caller is cancelled or the timeout
    elapses.

    Raises:
        MediaToolError: On launch failure or timeout.
    """
    command = Path(args[0]).name
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise MediaToolError(command, f"could not start: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout_seconds)
    except TimeoutError as e:
        await _terminate(process)
        raise MediaToolError(command, f"timed out after {timeout_seconds}s") from e
    except asyncio.CancelledError:
        logger.warning("Terminating subprocess on cancellation", extra={"command": command})
        await asyncio.shield(_terminate(process))
        raise

    return ProcessResult(
        exit_code=process.returncode if process.returncode is not None else -1,
        stdout=stdout,
        stderr=stderr,
    )


class FFmpegMediaTool(MediaToolBase):
    """ffmpeg/ffprobe based media operations.

    Requires ffmpeg and ffprobe to be installed and reachable.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        probe_timeout_seconds: float = 60.0,
        frame_timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize the tool.

        Args:
            ffmpeg_path: Path to ffmpeg executable.
            ffprobe_path: Path to ffprobe executable.
            probe_timeout_seconds: Limit for a duration probe.
            frame_timeout_seconds: Limit for one frame capture.
        """
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._probe_timeout = probe_timeout_seconds
        self._frame_timeout = frame_timeout_seconds

    @timed
    async def transform(
        self,
        args: list[str],
        timeout_seconds: float | None = None,
    ) -> ProcessResult:
        """Run ffmpeg with rendered template arguments."""
        return await run_process([self._ffmpeg, "-nostdin", *args], timeout_seconds)

    @timed
    async def probe_duration(self, source: Path) -> float:
        """Read the container duration with ffprobe."""
        try:
            result = await run_process(
                [
                    self._ffprobe,
                    "-v",
                    "error",
                    "-show_entries",
                    "format=duration",
                    "-of",
                    "default=noprint_wrappers=1:nokey=1",
                    str(source),
                ],
                self._probe_timeout,
            )
        except MediaToolError as e:
            logger.warning("ffprobe unavailable", extra={"source": str(source), "error": str(e)})
            return 0.0
        if not result.succeeded:
            logger.warning(
                "ffprobe failed",
                extra={"source": str(source), "error": result.error_text(500)},
            )
            return 0.0

        raw = result.stdout.decode("utf-8", errors="ignore").strip()
        try:
            duration = float(raw)
        except ValueError:
            logger.warning("Unparseable duration", extra={"raw": raw[:100]})
            return 0.0
        return duration if duration > 0 else 0.0

    async def extract_frame(
        self,
        source: Path,
        at_seconds: float,
        width: int,
        height: int,
    ) -> CapturedFrame:
        """Capture one frame as JPEG bytes on stdout."""
        result = await run_process(
            [
                self._ffmpeg,
                "-nostdin",
                "-ss",
                f"{at_seconds:.3f}",
                "-i",
                str(source),
                "-vframes",
                "1",
                "-c:v",
                "mjpeg",
                "-q:v",
                "2",
                "-s",
                f"{width}x{height}",
                "-f",
                "image2pipe",
                "pipe:1",
            ],
            self._frame_timeout,
        )
        if not result.succeeded or not result.stdout:
            raise MediaToolError(
                "ffmpeg",
                f"no frame at {at_seconds}s (exit {result.exit_code}): "
                f"{result.error_text(500)}",
            )

        try:
            with Image.open(io.BytesIO(result.stdout)) as img:
                frame_width, frame_height = img.size
        except UnidentifiedImageError as e:
            raise MediaToolError("ffmpeg", f"undecodable frame at {at_seconds}s") from e

        return CapturedFrame(data=result.stdout, width=frame_width, height=frame_height)
