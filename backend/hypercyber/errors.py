"""Error taxonomy and the FastAPI handlers that render it as JSON."""
from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(AppError):
    pass


class InvalidToken(Exception):
    """Raised by the token service when a signature or expiry check fails."""


class StorageError(Exception):
    """Raised by a file storage backend when an operation fails."""


class IdentityProviderError(Exception):
    """Raised when the OpenID Connect provider cannot be reached or answers badly."""


def error_body(message: str) -> dict[str, str]:
    return {"error": message}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(content=error_body(exc.message), status_code=exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Framework-raised errors (unknown route, bad method) share the same envelope.
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        content=error_body(message),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Report the first offending field only, e.g. "Invalid query.entity_id: ...".
    message = "Invalid request"
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = first.get("msg", "invalid value")
        message = f"Invalid {location}: {detail}" if location else detail
    return JSONResponse(content=error_body(message), status_code=status.HTTP_400_BAD_REQUEST)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        content=error_body("Database error"),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        content=error_body("File storage error"),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def identity_provider_error_handler(
    request: Request, exc: IdentityProviderError
) -> JSONResponse:
    # Messages are fixed strings such as "Token exchange failed"; provider detail is logged upstream.
    return JSONResponse(
        content=error_body(str(exc) or "Identity provider error"),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak internals; the traceback goes to the log only.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        content=error_body(InternalError.default_message),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler so all failures render as {"error": ...}."""

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(IdentityProviderError, identity_provider_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
