"""Audio Convert API - FastAPI application.

Single-endpoint service converting an uploaded audio file to AAC, FLAC or MP3.
The target format is validated before the request body is parsed; the upload
is staged, transcoded with ffmpeg in a worker thread, and returned in full as
an attachment. Every failure becomes one structured 400 response.

Run with:
    python -m services.convert_api.main
    uvicorn services.convert_api.main:app --reload  # dev server only
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from starlette.datastructures import UploadFile
from starlette.types import Message, Receive

from app.config import (
    API_HOST,
    API_PORT,
    MAX_UPLOAD_BYTES,
    ORPHAN_GRACE_SECONDS,
    UPLOAD_FIELD_NAME,
)
from app.errors import ConversionError, PayloadTooLargeError, UploadMissingError
from app.schemas import ErrorResponse
from services.convert_api.errors import report_error
from services.convert_api.service import (
    ConvertService,
    build_convert_service,
    validate_target_format,
)

logger = logging.getLogger(__name__)

# Allowance for multipart boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024
MAX_BODY_BYTES = MAX_UPLOAD_BYTES + MULTIPART_OVERHEAD_BYTES

# --- Service Setup ---

# Module-level service (initialized on startup)
_convert_service: ConvertService | None = None


def get_convert_service() -> ConvertService:
    """Dependency that provides the conversion service.

    Raises:
        RuntimeError: If the service is not initialized (app lifespan not invoked).
    """
    if _convert_service is None:
        raise RuntimeError("Convert service not initialized. App lifespan not invoked?")
    return _convert_service


# --- Lifespan ---


def _prepare_staging_dirs_safe(service: ConvertService) -> None:
    """Create staging directories and sweep orphans (best-effort).

    Never crashes startup.
    """
    from app.utils.temp_files import cleanup_orphan_temp_files

    for directory in (service.stager.staging_dir, service.transcoder.output_dir):
        try:
            directory.mkdir(parents=True, exist_ok=True)
            removed = cleanup_orphan_temp_files(directory, min_age_seconds=ORPHAN_GRACE_SECONDS)
            if removed > 0:
                logger.info(
                    "Startup cleanup: removed %d orphan temp files from %s", removed, directory
                )
        except Exception:
            logger.warning("Startup preparation of %s failed (non-fatal)", directory, exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Builds the conversion service from configuration unless one was injected,
    then prepares its staging directories.
    """
    global _convert_service
    if _convert_service is None:
        _convert_service = build_convert_service()

    _prepare_staging_dirs_safe(_convert_service)

    yield


# --- FastAPI App ---


app = FastAPI(
    title="Audio Convert API",
    description="Converts an uploaded audio file to AAC, FLAC or MP3.",
    version="0.1.0",
    lifespan=lifespan,
)


# --- Endpoints ---


def _check_content_length(request: Request) -> None:
    """Reject a body that cannot fit under the upload ceiling before parsing it."""
    header = request.headers.get("content-length")
    if not header:
        return
    try:
        content_length = int(header)
    except ValueError:
        return
    if content_length > MAX_BODY_BYTES:
        raise PayloadTooLargeError(content_length, MAX_UPLOAD_BYTES)


class BoundedReceive:
    """ASGI receive wrapper that stops a request body at a byte ceiling.

    Covers bodies without a usable Content-Length (chunked transfer), which
    the multipart parser would otherwise spool to disk in full.
    """

    def __init__(self, receive: Receive, max_bytes: int):
        self._receive = receive
        self.max_bytes = max_bytes
        self.received_bytes = 0

    async def __call__(self) -> Message:
        message = await self._receive()
        if message["type"] == "http.request":
            self.received_bytes += len(message.get("body", b""))
            if self.received_bytes > self.max_bytes:
                raise PayloadTooLargeError(self.received_bytes, MAX_UPLOAD_BYTES)
        return message


@app.post(
    "/convert/{to_format}",
    response_class=Response,
    responses={
        200: {
            "content": {"audio/aac": {}, "audio/flac": {}, "audio/mp3": {}},
            "description": "Converted audio file as an attachment",
        },
        400: {"model": ErrorResponse, "description": "Conversion failed"},
    },
    summary="Convert an audio file",
    description=(
        "Convert the multipart field 'audio_file' to the format in the path "
        "(aac, flac or mp3, case-insensitive). Uploads are limited to 10 MiB."
    ),
)
async def convert_audio_file(
    to_format: str,
    request: Request,
    service: Annotated[ConvertService, Depends(get_convert_service)],
):
    """Convert an uploaded audio file.

    The original file name's extension is replaced with the target format in
    the Content-Disposition header.
    """
    try:
        fmt = validate_target_format(to_format)
        _check_content_length(request)
    except ConversionError as e:
        return report_error(e)
    logger.info("Desired audio format is %s", fmt)

    bounded = Request(request.scope, receive=BoundedReceive(request.receive, MAX_BODY_BYTES))
    try:
        form = await bounded.form()
    except ConversionError as e:
        return report_error(e)
    except Exception as e:
        # Malformed multipart surfaces as HTTPException or a multipart parser error
        reason = getattr(e, "detail", None) or str(e) or type(e).__name__
        return report_error(UploadMissingError(reason))

    try:
        upload = form.get(UPLOAD_FIELD_NAME)
        if not isinstance(upload, UploadFile):
            raise UploadMissingError(f"no file found in form field '{UPLOAD_FIELD_NAME}'")
        logger.info("Retrieved audio file from the request; name: %s", upload.filename)

        converted = await run_in_threadpool(
            service.convert_upload,
            upload.file,
            upload.filename or "",
            fmt,
            upload.size,
        )
    except Exception as e:
        return report_error(e)
    finally:
        await form.close()

    return Response(
        content=converted.data,
        media_type=converted.media_type,
        headers={"Content-Disposition": converted.content_disposition},
    )


# --- For testing: allow overriding the service ---


def override_convert_service(service: ConvertService | None) -> None:
    """Override the conversion service for testing."""
    global _convert_service
    _convert_service = service


# --- Standalone Execution ---


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    logger.info("Starting server on %s:%d", API_HOST, API_PORT)
    uvicorn.run(app, host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
