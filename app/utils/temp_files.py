"""Audio Convert API - Temporary file utilities.

Low-level helpers shared by the upload stager and the transcoder:
- Unique temp file creation inside an injected staging directory
- Bounded stream copy to a file descriptor
- Best-effort removal and startup orphan sweep

Uniqueness comes from tempfile.mkstemp (O_CREAT | O_EXCL with a random name),
so concurrent requests never need a lock to pick a file name.
"""

import logging
import os
import tempfile
import time
from pathlib import Path

from app.config import TEMP_FILE_PREFIX

logger = logging.getLogger(__name__)


class StreamLimitExceeded(Exception):
    """Raised by copy_stream_to_fd when the byte limit is crossed."""

    def __init__(self, total_bytes: int, limit: int):
        self.total_bytes = total_bytes
        self.limit = limit
        super().__init__(f"stream exceeded {limit} bytes (read {total_bytes})")


def _write_all(fd: int, data: bytes) -> None:
    """Write all bytes to a file descriptor, handling partial writes.

    Args:
        fd: File descriptor to write to.
        data: Bytes to write.

    Raises:
        OSError: If write fails or returns 0 bytes unexpectedly.
    """
    total_written = 0
    data_len = len(data)

    while total_written < data_len:
        try:
            written = os.write(fd, data[total_written:])
            if written == 0:
                raise OSError("os.write() returned 0 bytes unexpectedly")
            total_written += written
        except InterruptedError:
            continue


def create_temp_file(directory: str | Path, suffix: str = "") -> tuple[int, Path]:
    """Create a uniquely named temp file in a staging directory.

    Name pattern: audio-file-<random><suffix>. The directory must exist.

    Args:
        directory: Staging directory.
        suffix: File suffix including the leading dot, or "".

    Returns:
        Tuple of (open file descriptor, path).

    Raises:
        OSError: If the file cannot be created.
    """
    fd, name = tempfile.mkstemp(suffix=suffix, prefix=TEMP_FILE_PREFIX, dir=str(directory))
    return fd, Path(name)


def copy_stream_to_fd(
    stream,
    fd: int,
    limit: int | None = None,
    chunk_size: int = 65536,
) -> int:
    """Copy a file-like stream into a file descriptor.

    Args:
        stream: File-like object with read() method.
        fd: Destination file descriptor.
        limit: Maximum number of bytes accepted, or None for no limit.
        chunk_size: Buffer size for reading (default: 64KB).

    Returns:
        Total bytes written.

    Raises:
        StreamLimitExceeded: As soon as more than limit bytes were read.
        OSError: If a read or write fails.
    """
    total_bytes = 0
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        total_bytes += len(chunk)
        if limit is not None and total_bytes > limit:
            raise StreamLimitExceeded(total_bytes, limit)
        _write_all(fd, chunk)
    return total_bytes


def read_exact(path: str | Path) -> bytes:
    """Read a whole file into a buffer sized from its stat.

    Args:
        path: File to read.

    Returns:
        The file contents.

    Raises:
        OSError: If stat or read fails, or fewer bytes than st_size were read.
    """
    with open(path, "rb") as f:
        size = os.fstat(f.fileno()).st_size
        buffer = bytearray(size)
        total_read = f.readinto(buffer) if size else 0

    if total_read != size:
        raise OSError(f"short read on {path}: expected {size} bytes, got {total_read}")
    return bytes(buffer)


def remove_quietly(path: str | Path | None) -> bool:
    """Remove a file, ignoring a missing file.

    Args:
        path: File to remove (None is a no-op).

    Returns:
        True if a file was removed.
    """
    if path is None:
        return False
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Failed to remove temp file %s: %s", path, e)
        return False


def cleanup_orphan_temp_files(
    directory: str | Path,
    prefix: str = TEMP_FILE_PREFIX,
    min_age_seconds: float = 0,
) -> int:
    """Clean up orphan temp files in a staging directory.

    Called during startup to remove files left behind by a crashed process.

    Args:
        directory: Directory to scan.
        prefix: File name prefix to match (default: "audio-file-").
        min_age_seconds: Only remove files whose mtime is at least this old.

    Returns:
        Number of files removed.
    """
    directory = Path(directory)
    removed = 0

    if not directory.exists():
        return 0

    now = time.time()
    for temp_file in directory.glob(f"{prefix}*"):
        try:
            if not temp_file.is_file():
                continue
            if now - temp_file.stat().st_mtime < min_age_seconds:
                continue
            temp_file.unlink()
            removed += 1
        except OSError:
            pass  # Best-effort cleanup

    return removed
