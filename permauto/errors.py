"""Error taxonomy and the handlers that render it as a JSON envelope.

Every failure leaves the API as ``{"success": false, "message": ..., "error": ...}``
with the status code of its kind.
"""
import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PermautoError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Any = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class Unauthenticated(PermautoError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Forbidden(PermautoError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(PermautoError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class ValidationError(PermautoError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request data"

    def __init__(self, message: Optional[str] = None, error: Any = None, fields: Optional[List[str]] = None):
        super().__init__(message, error)
        self.fields = fields or []


class SelfModificationError(PermautoError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "You cannot change your own role"


class SelfDeletionError(PermautoError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "You cannot delete your own account"


class InternalError(PermautoError):
    pass


class InvalidTokenError(Exception):
    """Session token is malformed, tampered with or expired."""


class ConfigurationError(Exception):
    """Required configuration is missing or unusable."""


def error_response(status_code: int, message: str, error: Any = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def _missing_fields(errors) -> List[str]:
    """Field names reported missing or empty by request validation."""
    missing = []
    for err in errors:
        err_type = err.get("type")
        empty = err_type == "string_too_short" and (err.get("ctx") or {}).get("min_length") == 1
        if err_type != "missing" and not empty:
            continue
        loc = [part for part in err.get("loc", ()) if part != "body"]
        if loc:
            name = str(loc[-1])
            if name not in missing:
                missing.append(name)
    return missing


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PermautoError)
    async def permauto_error_handler(request: Request, exc: PermautoError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        else:
            logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        error = exc.error
        if isinstance(exc, ValidationError) and exc.fields and error is None:
            error = {"fields": exc.fields}
        return error_response(exc.status_code, exc.message, error)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        missing = _missing_fields(errors)
        if missing:
            message = "Missing required fields: " + ", ".join(missing)
        else:
            message = "Invalid request data"
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg"),
            }
            for err in errors
        ]
        logger.warning("Validation failed on %s %s: %s", request.method, request.url.path, details)
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            message,
            {"fields": missing, "details": details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning("HTTP %s on %s %s - %s", exc.status_code, request.method, request.url.path, exc.detail)
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error("Configuration error on %s %s: %s", request.method, request.url.path, exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server is not configured")

    # 5xx bodies never echo exception text; the detail goes to the log only
    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message)
