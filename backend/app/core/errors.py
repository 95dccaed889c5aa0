"""
Domain error taxonomy and the FastAPI exception handlers that render it.

Services raise these; the handlers registered in `register_exception_handlers`
turn them into `{"error": message}` bodies (plus `issues` for validation
failures) with the matching status code.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationFailed(AppError):
    default_message = "Validation error"

    def __init__(self, issues: list[dict[str, Any]], message: Optional[str] = None):
        super().__init__(message)
        self.issues = issues

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, "issues": self.issues}


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidDateRange(AppError):
    default_message = "Check-out date must be after check-in date."


class SelfBookingForbidden(AppError):
    default_message = "You cannot book your own property."


class DateConflict(AppError):
    default_message = "The dates are already booked for this property."


class DuplicateListing(AppError):
    default_message = "You already have a listing with the same name or image."


class UpstreamError(AppError):
    """Identity, datastore or storage failure not covered by another error."""

    default_message = "Upstream service error"


def issues_from_validation_error(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Flatten pydantic errors into path/message/code issues, one per failing field."""
    issues = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        # Drop the request-part prefix FastAPI adds ("body", "query", "path")
        if loc and loc[0] in ("body", "query", "path", "header", "cookie"):
            loc = loc[1:]
        issues.append({
            "path": loc,
            "message": err.get("msg", "Invalid value"),
            "code": err.get("type", "invalid"),
        })
    return issues


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_error", error=exc.message, error_type=type(exc).__name__)
    else:
        logger.info("request_rejected", error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    failure = ValidationFailed(issues_from_validation_error(exc))
    return JSONResponse(status_code=failure.status_code, content=failure.to_body())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
