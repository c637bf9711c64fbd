"""Audio Convert API - Conversion error taxonomy.

Every failure in the pipeline is a ConversionError carrying one of the
ConversionErrorCode values. The HTTP layer collapses them into a single
client status; the code survives in logs and tests.
"""

from __future__ import annotations

from enum import StrEnum


class ConversionErrorCode(StrEnum):
    """Error codes for the conversion pipeline."""

    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    UPLOAD_MISSING = "UPLOAD_MISSING"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    UPLOAD_IO_FAILURE = "UPLOAD_IO_FAILURE"
    TRANSCODE_FAILURE = "TRANSCODE_FAILURE"
    OUTPUT_READ_FAILURE = "OUTPUT_READ_FAILURE"


class ConversionError(Exception):
    """Base exception for conversion errors."""

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code}: {message}")


class UnsupportedFormatError(ConversionError):
    """Target format is not on the allow-list."""

    def __init__(self, fmt: str):
        self.format = fmt
        super().__init__(
            ConversionErrorCode.UNSUPPORTED_FORMAT,
            f"{fmt} is not a supported audio format",
        )


class UploadMissingError(ConversionError):
    """The audio field could not be retrieved from the request."""

    def __init__(self, reason: str):
        super().__init__(
            ConversionErrorCode.UPLOAD_MISSING,
            f"error retrieving the audio file from the request. reason: {reason}",
        )


class PayloadTooLargeError(ConversionError):
    """Upload exceeds the size ceiling."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            ConversionErrorCode.PAYLOAD_TOO_LARGE,
            f"uploaded audio file exceeds the {limit} byte limit (got at least {size} bytes)",
        )


class UploadIOError(ConversionError):
    """Staging the upload to disk failed."""

    def __init__(self, reason: str):
        super().__init__(
            ConversionErrorCode.UPLOAD_IO_FAILURE,
            f"could not buffer the uploaded audio file. reason: {reason}",
        )


class TranscodeFailedError(ConversionError):
    """ffmpeg failed, timed out, or could not be started."""

    def __init__(self, reason: str):
        super().__init__(
            ConversionErrorCode.TRANSCODE_FAILURE,
            f"could not convert the uploaded audio file. reason: {reason}",
        )


class OutputReadError(ConversionError):
    """The converted file could not be read back."""

    def __init__(self, reason: str):
        super().__init__(
            ConversionErrorCode.OUTPUT_READ_FAILURE,
            f"could not read the converted audio file. reason: {reason}",
        )


__all__ = [
    "ConversionError",
    "ConversionErrorCode",
    "OutputReadError",
    "PayloadTooLargeError",
    "TranscodeFailedError",
    "UnsupportedFormatError",
    "UploadIOError",
    "UploadMissingError",
]
