import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------


class ValidationError(AppError):
    """Malformed or incomplete input."""

    status_code = 422


class InvalidRange(AppError):
    """Start date falls after end date."""

    status_code = 422


class InvalidHalfDayRange(AppError):
    """Half-day requested over more than one calendar day."""

    status_code = 422


class CertificateRequired(AppError):
    """The leave type demands a supporting certificate for this duration."""

    status_code = 422


class InsufficientBalance(AppError):
    """Not enough remaining days to cover the request."""

    status_code = status.HTTP_400_BAD_REQUEST


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN


# ---------------------------------------------------------------------------
# Referential errors
# ---------------------------------------------------------------------------


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UnknownLeaveType(NotFound):
    pass


class EmployeeNotFound(NotFound):
    pass


class NoBalanceRecord(NotFound):
    pass


# ---------------------------------------------------------------------------
# State and concurrency errors
# ---------------------------------------------------------------------------


class InvalidTransition(AppError):
    """Request status does not allow the attempted transition."""

    status_code = status.HTTP_409_CONFLICT


class ConflictError(AppError):
    """Concurrent updates kept colliding after the bounded retries."""

    status_code = status.HTTP_409_CONFLICT


class BalanceConflict(ConflictError):
    """A balance row changed between read and write (stale version)."""


class InvariantViolation(AppError):
    """An internal consistency check failed. Indicates a lifecycle bug, not user error."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InvariantViolation):
        logger.error("Invariant violation on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=422,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
