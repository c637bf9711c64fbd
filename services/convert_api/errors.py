"""Audio Convert API - Error reporter.

Turns any pipeline failure into the structured 400 response and logs the
underlying cause. Every failure maps to the same client status; the internal
error code is only logged.
"""

from __future__ import annotations

import logging

from fastapi.responses import JSONResponse

from app.config import ERROR_TITLE
from app.errors import ConversionError
from app.schemas import ErrorComponent, ErrorResponse

logger = logging.getLogger(__name__)

ERROR_STATUS_CODE = 400

# Detail sent to the client for failures outside the taxonomy
UNEXPECTED_ERROR_DETAIL = "An unexpected error occurred during conversion"


def build_error_body(detail: str, status_code: int = ERROR_STATUS_CODE) -> ErrorResponse:
    """Build a single-record error body."""
    return ErrorResponse(
        errors=[
            ErrorComponent(
                title=ERROR_TITLE,
                detail=detail,
                code=str(status_code),
                status=status_code,
            )
        ]
    )


def report_error(err: Exception) -> JSONResponse:
    """Log a failure and build the client response.

    Args:
        err: A ConversionError, or any unexpected exception.

    Returns:
        JSONResponse with status 400 and an ErrorResponse body.
    """
    if isinstance(err, ConversionError):
        logger.warning("Conversion failed [%s]: %s", err.error_code, err.message)
        if err.__cause__ is not None:
            logger.warning("Underlying cause: %r", err.__cause__)
        detail = err.message
    else:
        # Log full exception server-side, return generic message to client
        logger.error("Unexpected error during conversion", exc_info=err)
        detail = UNEXPECTED_ERROR_DETAIL

    return JSONResponse(
        status_code=ERROR_STATUS_CODE,
        content=build_error_body(detail).model_dump(),
    )


__all__ = [
    "ERROR_STATUS_CODE",
    "UNEXPECTED_ERROR_DETAIL",
    "build_error_body",
    "report_error",
]
