"""
Error taxonomy and the error funnel.

Route handlers raise the typed errors below. The handlers registered by
register_error_handlers() turn every raised error, every request validation
failure and every unmatched route into the same JSON body:

    {"status": "error", "message": "..."}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobtracker.core.config import Settings
from jobtracker.schemas.schemas import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong!"
ROUTE_NOT_FOUND_MESSAGE = "Route does not exist"


class JobTrackerException(Exception):
    """
    Base exception for the job tracker API.

    Carries the HTTP status and a machine-readable code alongside the
    human-readable message.
    """

    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return ErrorResponse(message=self.message).model_dump()


class ValidationError(JobTrackerException):
    """Malformed or missing input."""

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400)


class UnauthenticatedError(JobTrackerException):
    """Missing, invalid or expired credential."""

    def __init__(self, message: str = "Authentication invalid"):
        super().__init__(message, code="UNAUTHENTICATED", status_code=401)


class ForbiddenError(JobTrackerException):
    """Authenticated, but not allowed to touch this resource."""

    def __init__(self, message: str = "Not authorized to access this resource"):
        super().__init__(message, code="FORBIDDEN", status_code=403)


class NotFoundError(JobTrackerException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, code="NOT_FOUND", status_code=404)


class ConflictError(JobTrackerException):
    """Uniqueness violation."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, code="CONFLICT", status_code=409)


class InternalError(JobTrackerException):
    def __init__(self, message: str = GENERIC_ERROR_MESSAGE):
        super().__init__(message, code="INTERNAL_ERROR", status_code=500)


class DatabaseConnectionError(JobTrackerException):
    """Raised at startup when MongoDB cannot be reached. Fatal."""

    def __init__(self, url: str, error: str):
        super().__init__(
            f"Could not connect to MongoDB at {url}: {error}",
            code="DATABASE_UNAVAILABLE",
            status_code=503,
        )
        self.url = url


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def unexpected_error_response(method: str, path: str, exc: Exception, hide_details: bool) -> JSONResponse:
    """500 body for an exception nothing else recognised; logged with its traceback."""
    logger.error(f"Unexpected error on {method} {path}: {exc}", exc_info=exc)
    message = GENERIC_ERROR_MESSAGE if hide_details else str(exc) or exc.__class__.__name__
    return error_response(500, message)


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into one readable line, e.g. 'company: Field required'."""
    parts = []
    for error in exc.errors():
        loc = [str(item) for item in error.get("loc", ()) if item not in ("body", "query", "path")]
        field = ".".join(loc)
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Install the error funnel.

    Typed errors, validation failures and HTTP errors are converted by
    Starlette inside the pipeline stages. The bare Exception handler lives
    outside them, so route failures are caught first by UnhandledErrorMiddleware.
    """

    @app.exception_handler(JobTrackerException)
    async def handle_jobtracker_exception(request: Request, exc: JobTrackerException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            message = GENERIC_ERROR_MESSAGE if settings.is_production else exc.message
            return error_response(exc.status_code, message)

        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _format_validation_errors(exc)
        logger.info(f"{request.method} {request.url.path} -> 400 VALIDATION_ERROR: {message}")
        return error_response(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, ROUTE_NOT_FOUND_MESSAGE)
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    # Last resort for failures raised by the pipeline stages themselves; errors
    # from routes are converted earlier by UnhandledErrorMiddleware
    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception):
        return unexpected_error_response(request.method, request.url.path, exc, settings.is_production)
