from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    code: str | None = None
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
# Input validation (rejected before any state change)
# ---------------------------------------------------------------------------


class ValidationError(AppError):
    """Malformed input: missing dates, non-positive day counts, bad factors."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidDateOrder(ValidationError):
    """The reference date precedes the hire date."""


class FutureDate(ValidationError):
    """A live computation was asked about a date after today."""


class InvalidDates(ValidationError):
    """A request's date range is empty or inverted."""


# ---------------------------------------------------------------------------
# Business rules (rejected with a reason, no side effects)
# ---------------------------------------------------------------------------


class BusinessRuleViolation(AppError):
    """A well-formed operation that the current state does not allow."""

    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientBalance(BusinessRuleViolation):
    """Available days do not cover the requested days."""


class OverlappingRequest(BusinessRuleViolation):
    """The date range overlaps another active request of the same employee."""

    status_code = status.HTTP_409_CONFLICT


class IllegalTransition(BusinessRuleViolation):
    """The request state machine has no edge for this status and action."""

    status_code = status.HTTP_409_CONFLICT


class NotAuthorized(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


# ---------------------------------------------------------------------------
# Data integrity (surfaced, never auto-corrected)
# ---------------------------------------------------------------------------


class DataIntegrityError(AppError):
    """Persisted or candidate state violates a balance invariant."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "DATA_INTEGRITY") -> None:
        self.code = code
        super().__init__(message)


class AuditCheckError(AppError):
    """An individual audit check raised while running."""

    def __init__(self, check_name: str, cause: Exception) -> None:
        self.check_name = check_name
        self.cause = cause
        super().__init__(f"Audit check '{check_name}' failed: {cause}")


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            code=getattr(exc, "code", None),
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
