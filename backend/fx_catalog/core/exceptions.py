"""
Application exceptions and the global exception handlers that turn them into
JSON error envelopes.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from typing import Any

from fx_catalog.core.integrations.observability import record_exception


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InputValidationError(AppException):
    """Malformed or missing input, detected before touching the store."""
    def __init__(self, message: str, field: str = None):
        details = {"field": field} if field else None
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)
        self.field = field


class MissingDateError(InputValidationError):
    def __init__(self):
        super().__init__("Date parameter is required", field="date")


class InvalidDateFormatError(InputValidationError):
    def __init__(self, value: Any):
        super().__init__("Invalid date format", field="date")
        self.details["value"] = str(value)


class NotFoundError(AppException):
    """Referenced entity does not exist."""
    def __init__(self, message: str, entity_id: Any = None):
        details = {"id": entity_id} if entity_id is not None else None
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class BaseCurrencyProtectedError(AppException):
    def __init__(self, code: str):
        super().__init__(
            f"Cannot delete base currency ({code})",
            status.HTTP_403_FORBIDDEN,
            {"code": code},
        )


class DuplicateCodeError(AppException):
    def __init__(self, code: str):
        super().__init__(
            "Currency code already exists",
            status.HTTP_409_CONFLICT,
            {"code": code},
        )


class StorageError(AppException):
    """Store failure that is not otherwise classified. The message stays generic."""
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


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
    
    error = {
        "message": exc.message,
        "path": request.url.path,
    }
    if exc.details is not None:
        error["details"] = exc.details
    
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": error},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions, including unmatched routes."""
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    
    logger.warning(
        f"HTTP exception: {message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
        },
    )
    
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "message": message,
                "status_code": exc.status_code,
                "path": request.url.path,
            },
        },
        headers=getattr(exc, "headers", None),
    )


def _serialize_validation_errors(errors: list) -> list:
    """Convert validation errors to JSON-serializable format."""
    serialized = []
    for error in errors:
        serialized_error = {}
        for key, value in error.items():
            if key == "ctx" and isinstance(value, dict):
                # ctx may carry the raised ValueError itself
                serialized_error[key] = {
                    ctx_key: str(ctx_value) if isinstance(ctx_value, Exception) else ctx_value
                    for ctx_key, ctx_value in value.items()
                }
            elif isinstance(value, Exception):
                serialized_error[key] = str(value)
            else:
                serialized_error[key] = value
        serialized.append(serialized_error)
    return serialized


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    serialized_errors = _serialize_validation_errors(exc.errors())
    
    logger.warning(
        f"Validation error: {serialized_errors}",
        extra={
            "path": request.url.path,
            "errors": serialized_errors,
        },
    )
    
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": {
                "message": "Validation error",
                "details": serialized_errors,
                "path": request.url.path,
            },
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        },
    )
    
    record_exception(exc, request)
    
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {
                "message": "Internal server error",
                "path": request.url.path,
            },
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
