"""Abstract media tool: transform, duration probe and frame capture."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


class MediaToolError(Exception):
    """Raised when a media subprocess cannot be run to completion.

    Covers a missing executable, an OS launch failure and a timeout. A
    process that runs and exits non-zero is reported through
    :class:`ProcessResult` instead.
    """

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"{command}: {reason}")


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and captured output of one subprocess run."""

    exit_code: int
    stdout: bytes
    stderr: bytes

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def error_text(self, limit: int = 4096) -> str:
        """Tail of stderr, where ffmpeg puts the actual error."""
        text = self.stderr.decode("utf-8", errors="replace").strip()
        return text[-limit:] if len(text) > limit else text


@dataclass(frozen=True)
class CapturedFrame:
    """A single encoded still frame."""

    data: bytes
    width: int
    height: int
    content_type: str = "image/jpeg"


class MediaToolBase(ABC):
    """Subprocess-backed media operations.

    Every call is cancellable: cancelling the awaiting task terminates the
    child process before the cancellation propagates.
    """

    @abstractmethod
    async def transform(
        self,
        args: list[str],
        timeout_seconds: float | None = None,
    ) -> ProcessResult:
        """Run the transform tool with rendered template arguments.

        Args:
            args: Arguments, not including the executable.
            timeout_seconds: Optional wall-clock limit.

        Returns:
            Exit code and captured output.

        Raises:
            MediaToolError: If the process cannot be started or times out.
        """

    @abstractmethod
    async def probe_duration(self, source: Path) -> float:
        """Duration of a media file in seconds, 0.0 when unknown."""

    @abstractmethod
    async def extract_frame(
        self,
        source: Path,
        at_seconds: float,
        width: int,
        height: int,
    ) -> CapturedFrame:
        """Capture one JPEG frame at an offset.

        Raises:
            MediaToolError: If no decodable frame was produced.
        """
