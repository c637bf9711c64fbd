"""Audio Convert API - Conversion service logic.

Core request pipeline implementing:
- Target format validation against the allow-list
- Upload staging with guaranteed cleanup
- ffmpeg transcode into an in-memory result

NO HTTP concerns here; main.py owns request parsing and responses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from app.config import (
    CONVERT_TMP_DIR,
    FFMPEG_BIN,
    FFMPEG_TIMEOUT_SECONDS,
    MAX_CONCURRENT_TRANSCODES,
    MAX_UPLOAD_BYTES,
    TRANSCODE_QUEUE_WAIT_SECONDS,
    UPLOAD_TMP_DIR,
)
from app.errors import UnsupportedFormatError
from app.formats import directives_for, is_supported, media_type_for, normalize_format
from app.staging import UploadStager
from app.transcoder import Transcoder
from app.utils.paths import download_filename

if TYPE_CHECKING:
    from typing import BinaryIO

logger = logging.getLogger(__name__)


# --- Result Types ---


@dataclass
class ConvertedFile:
    """A converted file ready to be sent to the client."""

    data: bytes
    format: str
    media_type: str
    filename: str

    @property
    def content_disposition(self) -> str:
        return f"attachment; filename={self.filename}"


# --- Conversion Service ---


def validate_target_format(fmt: str | None) -> str:
    """Validate a requested target format.

    Args:
        fmt: Format name from the request path.

    Returns:
        Normalized (lowercase) format name.

    Raises:
        UnsupportedFormatError: If the format is not on the allow-list.
    """
    if not is_supported(fmt):
        raise UnsupportedFormatError(fmt or "")
    return normalize_format(fmt)


class ConvertService:
    """Stages an upload, transcodes it, and cleans up."""

    def __init__(self, stager: UploadStager, transcoder: Transcoder) -> None:
        self.stager = stager
        self.transcoder = transcoder

    def convert_upload(
        self,
        stream: BinaryIO,
        filename: str,
        target_format: str,
        declared_size: int | None = None,
    ) -> ConvertedFile:
        """Convert an uploaded audio stream.

        Steps:
        1. Validate target format
        2. Stage the upload (released on every exit path)
        3. Transcode with ffmpeg
        4. Build the download metadata

        Blocking; call from a worker thread.

        Args:
            stream: File-like object with the audio payload.
            filename: Client-supplied file name.
            target_format: Requested output format (any case).
            declared_size: Size reported by the multipart parser, if known.

        Returns:
            ConvertedFile with the full converted bytes.

        Raises:
            ConversionError: Subclass matching the failed stage.
        """
        fmt = validate_target_format(target_format)
        directives = directives_for(fmt)

        with self.stager.stage(stream, filename, declared_size) as staged:
            result = self.transcoder.convert(staged, directives)

        logger.info("Received audio file buffer with %d bytes", len(result.data))

        return ConvertedFile(
            data=result.data,
            format=fmt,
            media_type=media_type_for(fmt),
            filename=download_filename(filename, fmt),
        )


def build_convert_service(
    upload_dir: str | Path = UPLOAD_TMP_DIR,
    convert_dir: str | Path = CONVERT_TMP_DIR,
) -> ConvertService:
    """Build a ConvertService from configuration.

    Args:
        upload_dir: Upload staging directory.
        convert_dir: Transcoder output directory.
    """
    return ConvertService(
        stager=UploadStager(upload_dir, MAX_UPLOAD_BYTES),
        transcoder=Transcoder(
            convert_dir,
            ffmpeg_bin=FFMPEG_BIN,
            timeout_seconds=FFMPEG_TIMEOUT_SECONDS,
            max_concurrent=MAX_CONCURRENT_TRANSCODES,
            queue_wait_seconds=TRANSCODE_QUEUE_WAIT_SECONDS,
        ),
    )
