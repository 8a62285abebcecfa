"""Unit tests for the ffmpeg media tool."""

import asyncio
import io
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from PIL import Image

from vidpipe.infrastructure.media import (
    FFmpegMediaTool,
    MediaToolError,
    ProcessResult,
    run_process,
)

RUN_PROCESS = "vidpipe.infrastructure.media.ffmpeg_tool.run_process"


def _jpeg(width: int = 32, height: int = 18) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 10, 10)).save(buffer, format="JPEG")
    return buffer.getvalue()


class TestRunProcess:
    """Tests for run_process."""

    async def test_captures_output(self):
        result = await run_process(
            [sys.executable, "-c", "import sys; print('out'); sys.stderr.write('err')"]
        )

        assert result.succeeded
        assert result.stdout.strip() == b"out"
        assert result.error_text() == "err"

    async def test_non_zero_exit_is_a_result(self):
        result = await run_process([sys.executable, "-c", "raise SystemExit(3)"])

        assert result.exit_code == 3
        assert not result.succeeded

    async def test_missing_executable(self):
        with pytest.raises(MediaToolError) as exc_info:
            await run_process(["/nonexistent/ffmpeg-binary", "-version"])
        assert exc_info.value.command == "ffmpeg-binary"

    async def test_timeout(self):
        with pytest.raises(MediaToolError, match="timed out"):
            await run_process([sys.executable, "-c", "import time; time.sleep(30)"], 0.2)

    async def test_cancel_terminates_child(self):
        spawned: list[asyncio.subprocess.Process] = []
        real_exec = asyncio.create_subprocess_exec

        async def spawn(*args, **kwargs):
            process = await real_exec(*args, **kwargs)
            spawned.append(process)
            return process

        with patch(
            "vidpipe.infrastructure.media.ffmpeg_tool.asyncio.create_subprocess_exec", spawn
        ):
            task = asyncio.create_task(
                run_process([sys.executable, "-c", "import time; time.sleep(30)"])
            )
            for _ in range(500):
                if spawned:
                    break
                await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert len(spawned) == 1
        assert spawned[0].returncode is not None


class TestProcessResult:
    """Tests for ProcessResult."""

    def test_error_text_keeps_tail(self):
        result = ProcessResult(exit_code=1, stdout=b"", stderr=b"abcdefghij")
        assert result.error_text(4) == "ghij"


class TestFFmpegMediaTool:
    """Tests for FFmpegMediaTool with the subprocess layer patched."""

    @pytest.fixture
    def tool(self) -> FFmpegMediaTool:
        return FFmpegMediaTool(ffmpeg_path="/usr/bin/ffmpeg", ffprobe_path="/usr/bin/ffprobe")

    async def test_transform_prepends_executable(self, tool):
        with patch(RUN_PROCESS, AsyncMock(return_value=ProcessResult(0, b"", b""))) as run:
            await tool.transform(["-i", "in.mp4", "out.mp4"], timeout_seconds=10)

        run.assert_awaited_once_with(
            ["/usr/bin/ffmpeg", "-nostdin", "-i", "in.mp4", "out.mp4"], 10
        )

    @pytest.mark.parametrize(
        ("stdout", "exit_code", "expected"),
        [
            (b"12.5\n", 0, 12.5),
            (b"N/A\n", 0, 0.0),
            (b"", 1, 0.0),
            (b"-1", 0, 0.0),
        ],
    )
    async def test_probe_duration(self, tool, stdout, exit_code, expected):
        result = ProcessResult(exit_code, stdout, b"")
        with patch(RUN_PROCESS, AsyncMock(return_value=result)):
            assert await tool.probe_duration(Path("in.mp4")) == expected

    async def test_probe_duration_tool_error(self, tool):
        error = MediaToolError("ffprobe", "timed out after 60.0s")
        with patch(RUN_PROCESS, AsyncMock(side_effect=error)):
            assert await tool.probe_duration(Path("in.mp4")) == 0.0

    async def test_extract_frame(self, tool):
        data = _jpeg(32, 18)
        with patch(RUN_PROCESS, AsyncMock(return_value=ProcessResult(0, data, b""))) as run:
            frame = await tool.extract_frame(Path("in.mp4"), 3, 32, 18)

        assert frame.data == data
        assert (frame.width, frame.height) == (32, 18)
        assert frame.content_type == "image/jpeg"
        args = run.call_args[0][0]
        assert args[args.index("-ss") + 1] == "3.000"

    async def test_extract_frame_without_output(self, tool):
        with patch(RUN_PROCESS, AsyncMock(return_value=ProcessResult(1, b"", b"bad seek"))):
            with pytest.raises(MediaToolError, match="bad seek"):
                await tool.extract_frame(Path("in.mp4"), 3, 32, 18)

    async def test_extract_frame_undecodable(self, tool):
        with patch(RUN_PROCESS, AsyncMock(return_value=ProcessResult(0, b"garbage", b""))):
            with pytest.raises(MediaToolError, match="undecodable"):
                await tool.extract_frame(Path("in.mp4"), 3, 32, 18)
