"""Unified API response format and error codes."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    Queue screens poll these endpoints every few seconds, so every response
    has the same shape whether it carries data or an error.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=request_id or str(uuid4()))


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    """Create a success response."""
    return APIResponse(success=True, data=data, error=None, meta=_meta(request_id))


def error_response(code: str, message: str, request_id: str | None = None) -> APIResponse:
    """Create an error response."""
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message),
        meta=_meta(request_id),
    )


class ErrorCodes:
    """Machine-readable error codes returned in APIError.code."""

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    SCOPE_MISMATCH = "SCOPE_MISMATCH"

    # Queue Lifecycle
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    POSITION_CONFLICT = "POSITION_CONFLICT"
    ALREADY_IN_QUEUE = "ALREADY_IN_QUEUE"

    # Paid Priority
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
