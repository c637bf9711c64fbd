"""Audio Convert API - Pydantic models for API responses.

Pydantic models corresponding to the JSON schemas in /specs.
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorComponent(BaseModel):
    """A single client-facing error record."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., description="Fixed human-readable summary")
    detail: str = Field(..., description="Message of the underlying failure")
    code: str = Field(..., description="HTTP status as a string")
    status: int = Field(..., ge=400, le=599, description="HTTP status")


class ErrorResponse(BaseModel):
    """Structured error body.

    Corresponds to specs/error_response.schema.json.
    """

    model_config = ConfigDict(extra="forbid")

    errors: list[ErrorComponent] = Field(..., min_length=1)


__all__ = [
    "ErrorComponent",
    "ErrorResponse",
]
