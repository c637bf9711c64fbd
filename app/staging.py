"""Audio Convert API - Upload stager.

Materializes an uploaded audio payload to a uniquely named file in the upload
staging directory and guarantees the file is gone when the request is done.

Usage:
    stager = UploadStager(UPLOAD_TMP_DIR, MAX_UPLOAD_BYTES)
    with stager.stage(stream, "song.wav", declared_size) as staged:
        ...  # staged.path is valid here
    # staged file closed and removed, whatever happened inside the block
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from app.errors import PayloadTooLargeError, UploadIOError
from app.utils.paths import upload_suffix
from app.utils.temp_files import (
    StreamLimitExceeded,
    copy_stream_to_fd,
    create_temp_file,
    remove_quietly,
)

if TYPE_CHECKING:
    from typing import BinaryIO

logger = logging.getLogger(__name__)


@dataclass
class StagedUpload:
    """An upload copied to the staging directory."""

    path: Path
    fd: int
    filename: str
    size_bytes: int = 0
    released: bool = False

    def release(self) -> None:
        """Close the handle and remove the file. Safe to call twice."""
        if self.released:
            return
        self.released = True
        try:
            os.close(self.fd)
        except OSError as e:
            logger.warning("Failed to close staged upload %s: %s", self.path, e)
        remove_quietly(self.path)
        logger.debug("Released staged upload %s", self.path)


class UploadStager:
    """Stages uploads under a fixed directory with a size ceiling."""

    def __init__(self, staging_dir: str | Path, max_bytes: int) -> None:
        self.staging_dir = Path(staging_dir)
        self.max_bytes = max_bytes

    def check_declared_size(self, declared_size: int | None) -> None:
        """Reject a payload whose declared size is over the ceiling.

        Raises:
            PayloadTooLargeError: If declared_size > max_bytes.
        """
        if declared_size is not None and declared_size > self.max_bytes:
            raise PayloadTooLargeError(declared_size, self.max_bytes)

    @contextmanager
    def stage(
        self,
        stream: BinaryIO,
        filename: str,
        declared_size: int | None = None,
    ) -> Iterator[StagedUpload]:
        """Copy an upload stream to a staged temp file.

        Args:
            stream: File-like object with the audio payload.
            filename: Client-supplied file name (its extension is kept).
            declared_size: Size reported by the multipart parser, if known.

        Yields:
            StagedUpload, released on exit from the with block.

        Raises:
            PayloadTooLargeError: If the payload is over the ceiling.
            UploadIOError: If the temp file cannot be created or written.
        """
        self.check_declared_size(declared_size)

        try:
            fd, path = create_temp_file(self.staging_dir, suffix=upload_suffix(filename))
        except OSError as e:
            raise UploadIOError(str(e)) from e

        staged = StagedUpload(path=path, fd=fd, filename=filename)
        try:
            try:
                staged.size_bytes = copy_stream_to_fd(stream, fd, limit=self.max_bytes)
                os.lseek(fd, 0, os.SEEK_SET)
            except StreamLimitExceeded as e:
                raise PayloadTooLargeError(e.total_bytes, self.max_bytes) from e
            except OSError as e:
                raise UploadIOError(
                    f"error copying the uploaded audio file from the request: {e}"
                ) from e

            logger.info(
                "Copied the uploaded audio file to %s (total size: %d bytes)",
                path,
                staged.size_bytes,
            )
            yield staged
        finally:
            staged.release()


__all__ = ["StagedUpload", "UploadStager"]
