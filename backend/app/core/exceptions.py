"""
Global exception handlers for the FastAPI application.
Every error is rendered as {"error": {"message", "details", "path"}}.
Server errors are also reported to observability.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from typing import Any

from app.core.integrations.observability import record_exception


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundError(AppException):
    """Requested record does not exist."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ForbiddenError(AppException):
    """Caller's role does not allow the operation."""
    def __init__(self, message: str = "Forbidden", details: Any = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class PreconditionFailedError(AppException):
    """
    Record is not in a state that allows the operation
    (wrong status, already generated, missing configuration).
    The caller has to change the record before retrying.
    """
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class InvalidAmountError(PreconditionFailedError):
    """A derived money amount came out as zero or negative."""
    pass


def _error_response(request: Request, status_code: int, message: Any, details: Any = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"message": message, "details": details, "path": request.url.path}},
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application exception: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "details": exc.details,
        },
    )
    if exc.status_code >= 500:
        record_exception(exc, request)

    return _error_response(request, exc.status_code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions raised by FastAPI and the auth dependency."""
    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    return _error_response(
        request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None)
    )


def _jsonable(value: Any) -> Any:
    # Pydantic puts the raised ValueError itself into ctx
    if isinstance(value, Exception):
        return str(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    return value


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    errors = [_jsonable(error) for error in exc.errors()]
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"path": request.url.path, "errors": errors},
    )
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", errors)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.
    The underlying message is returned in details so operators can reconcile
    half-applied multi-step writes.
    """
    logger.exception(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        },
    )
    record_exception(exc, request)
    return _error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(exc)
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
