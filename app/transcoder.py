"""Audio Convert API - Transcode invoker.

Drives ffmpeg against a staged input file and reads the converted output back
into memory.

Resilience features:
- Bounded number of simultaneous ffmpeg processes (slot semaphore)
- Per-invocation timeout
- Output temp file removed on success and on failure

Dependencies:
- Requires ffmpeg installed and in PATH (or CONVERT_FFMPEG_BIN)

Error codes:
- TRANSCODE_FAILURE: ffmpeg failed, timed out, is missing, or no slot was free
- OUTPUT_READ_FAILURE: the converted file could not be stat'ed or fully read
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from app.errors import OutputReadError, TranscodeFailedError
from app.utils.temp_files import create_temp_file, read_exact, remove_quietly

if TYPE_CHECKING:
    from app.formats import TranscodeDirectives
    from app.staging import StagedUpload

logger = logging.getLogger(__name__)

# Number of trailing stderr lines carried in a failure message
STDERR_TAIL_LINES = 5


@dataclass
class ConversionResult:
    """Converted audio held in memory."""

    data: bytes
    format: str


def build_ffmpeg_command(
    ffmpeg_bin: str,
    input_path: Path,
    output_path: Path,
    directives: TranscodeDirectives,
) -> list[str]:
    """Build the ffmpeg argument vector.

    Args:
        ffmpeg_bin: ffmpeg executable.
        input_path: Staged upload.
        output_path: Output temp file (overwritten).
        directives: Codec and container for the target format.

    Returns:
        Command list for subprocess.run.
    """
    return [
        ffmpeg_bin,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-i",
        str(input_path),
        "-vn",
        "-c:a",
        directives.codec,
        "-f",
        directives.container,
        str(output_path),
    ]


def _forward_stderr(stderr: bytes) -> list[str]:
    """Log ffmpeg diagnostic output and return its non-empty lines."""
    lines = [
        line.strip()
        for line in stderr.decode("utf-8", errors="replace").splitlines()
        if line.strip()
    ]
    for line in lines:
        logger.info("ffmpeg: %s", line)
    return lines


class Transcoder:
    """Runs ffmpeg conversions with bounded concurrency."""

    def __init__(
        self,
        output_dir: str | Path,
        ffmpeg_bin: str = "ffmpeg",
        timeout_seconds: float = 300,
        max_concurrent: int = 4,
        queue_wait_seconds: float = 30,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout_seconds = timeout_seconds
        self.queue_wait_seconds = queue_wait_seconds
        self._slots = threading.BoundedSemaphore(max_concurrent)

    def convert(self, staged: StagedUpload, directives: TranscodeDirectives) -> ConversionResult:
        """Convert a staged upload.

        Blocking; call from a worker thread.

        Args:
            staged: Staged input file.
            directives: Codec and container for the target format.

        Returns:
            ConversionResult with the complete converted bytes.

        Raises:
            TranscodeFailedError: If no slot frees up in time, or ffmpeg fails.
            OutputReadError: If the output cannot be read back.
        """
        if not self._slots.acquire(timeout=self.queue_wait_seconds):
            raise TranscodeFailedError(
                f"no transcode slot became free within {self.queue_wait_seconds}s"
            )
        try:
            return self._convert_in_slot(staged, directives)
        finally:
            self._slots.release()

    def _convert_in_slot(
        self,
        staged: StagedUpload,
        directives: TranscodeDirectives,
    ) -> ConversionResult:
        try:
            fd, output_path = create_temp_file(self.output_dir, suffix=f".{directives.extension}")
        except OSError as e:
            raise TranscodeFailedError(f"could not create output file: {e}") from e
        os.close(fd)

        try:
            elapsed_ms = self._run_ffmpeg(staged.path, output_path, directives)

            try:
                data = read_exact(output_path)
            except OSError as e:
                raise OutputReadError(str(e)) from e

            logger.info(
                "Converted %s to %s: %d bytes in %dms",
                staged.path.name,
                directives.extension,
                len(data),
                elapsed_ms,
            )
            return ConversionResult(data=data, format=directives.extension)
        finally:
            remove_quietly(output_path)

    def _run_ffmpeg(
        self,
        input_path: Path,
        output_path: Path,
        directives: TranscodeDirectives,
    ) -> int:
        """Run ffmpeg once. Returns elapsed milliseconds."""
        cmd = build_ffmpeg_command(self.ffmpeg_bin, input_path, output_path, directives)
        logger.debug("Running %s", " ".join(cmd))

        start = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                check=False,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            _forward_stderr(e.stderr or b"")
            logger.error(
                "ffmpeg timed out after %s seconds on %s", self.timeout_seconds, input_path
            )
            raise TranscodeFailedError(
                f"ffmpeg timed out after {self.timeout_seconds} seconds"
            ) from e
        except FileNotFoundError as e:
            logger.error("ffmpeg not found: %s", self.ffmpeg_bin)
            raise TranscodeFailedError(f"ffmpeg executable not found: {self.ffmpeg_bin}") from e
        except OSError as e:
            logger.error("ffmpeg execution failed: %s", e)
            raise TranscodeFailedError(f"ffmpeg execution failed: {e}") from e
        elapsed_ms = int((time.monotonic() - start) * 1000)

        lines = _forward_stderr(result.stderr or b"")
        if result.returncode != 0:
            tail = "; ".join(lines[-STDERR_TAIL_LINES:]) or "no diagnostic output"
            raise TranscodeFailedError(f"ffmpeg exited with status {result.returncode}: {tail}")

        return elapsed_ms


__all__ = ["ConversionResult", "Transcoder", "build_ffmpeg_command"]
