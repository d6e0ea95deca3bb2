"""Application error taxonomy and the FastAPI handlers that render it."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

_LOGGER = logging.getLogger(__name__)


class AppError(Exception):
    """Base error carrying an HTTP status and a machine-readable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "APP_ERROR"

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class RepositoryError(AppError):
    """Raised when a store operation fails in the data access layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "REPOSITORY_ERROR"


class ServiceError(AppError):
    """Raised when a business rule rejects the request."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "SERVICE_ERROR"


class ServiceFailure(ServiceError):
    """Service-level wrapper for repository failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "SERVICE_FAILURE"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_ERROR"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "AUTHORIZATION_ERROR"


def _is_production() -> bool:
    return os.getenv("APP_ENV", "development").strip().lower() == "production"


def format_validation_errors(errors) -> list[str]:
    """Turn pydantic error dicts into one readable line per violation."""

    messages: list[str] = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        ctx_error = (err.get("ctx") or {}).get("error")
        if err.get("type") == "value_error" and ctx_error is not None:
            text = str(ctx_error)
        else:
            text = err.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {text}" if loc else text)
    return messages


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    _LOGGER.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "errorCode": exc.error_code},
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Validation error",
            "errors": format_validation_errors(exc.errors()),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    _LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {
        "success": False,
        "message": "An unexpected error occurred",
        "errorCode": "INTERNAL_SERVER_ERROR",
    }
    if not _is_production():
        content["details"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


@contextmanager
def repository_failures(message: str):
    """Re-raise repository failures as a ``ServiceFailure`` with ``message``."""

    try:
        yield
    except RepositoryError as exc:
        raise ServiceFailure(message) from exc
