"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import (
    ConflictError,
    DuplicateActiveEntryError,
    InvalidTransitionError,
    NotFoundError,
    PaymentRequiredError,
    QueueError,
    ReconciliationError,
    ScopeMismatchError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
QUEUE_ERROR_STATUS: list[tuple[type[QueueError], int, str]] = [
    (NotFoundError, 404, ErrorCodes.NOT_FOUND),
    (InvalidTransitionError, 409, ErrorCodes.INVALID_STATUS_TRANSITION),
    (ConflictError, 409, ErrorCodes.POSITION_CONFLICT),
    (DuplicateActiveEntryError, 409, ErrorCodes.ALREADY_IN_QUEUE),
    (ScopeMismatchError, 400, ErrorCodes.SCOPE_MISMATCH),
    (PaymentRequiredError, 402, ErrorCodes.PAYMENT_REQUIRED),
]


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _json_error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, _request_id(request)).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(QueueError)
    async def queue_error_handler(request: Request, exc: QueueError):
        for error_type, status_code, code in QUEUE_ERROR_STATUS:
            if isinstance(exc, error_type):
                return _json_error(request, status_code, code, str(exc))
        return _json_error(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(ReconciliationError)
    async def reconciliation_error_handler(request: Request, exc: ReconciliationError):
        logger.exception("Queue renumbering failed; transaction rolled back", exc_info=exc)
        return _json_error(
            request, 500, ErrorCodes.INTERNAL_ERROR, "Queue could not be updated"
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _json_error(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json_error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception", exc_info=exc)
        return _json_error(
            request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred"
        )
