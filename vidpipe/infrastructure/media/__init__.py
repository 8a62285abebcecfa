"""Media subprocess tooling."""

from vidpipe.infrastructure.media.base import (
    CapturedFrame,
    MediaToolBase,
    MediaToolError,
    ProcessResult,
)
from vidpipe.infrastructure.media.ffmpeg_tool import FFmpegMediaTool, run_process

__all__ = [
    "MediaToolBase",
    "MediaToolError",
    "ProcessResult",
    "CapturedFrame",
    "FFmpegMediaTool",
    "run_process",
]
