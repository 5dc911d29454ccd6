"""Error taxonomy for the authentication and account endpoints.

Every error carries the HTTP status it maps to; ``main`` registers a single
handler that renders them with the common error envelope.
"""
from __future__ import annotations

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class NoFieldsError(ValidationError):
    message = "No fields to update"


class ConflictError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Username or email already exists"


class AuthenticationError(AppError):
    """Wrong password (or wrong current password on change)."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Password incorrect"


class UnknownUserError(AuthenticationError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User does not exist"


class AuthorizationError(AppError):
    """Missing, malformed, expired or otherwise rejected token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid token"


class MissingCredentialError(AuthorizationError):
    message = "Access denied. No token provided."


class ForbiddenError(AuthorizationError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You can only modify your own account"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class ConfigurationError(AppError):
    """Required server configuration is missing (e.g. the signing key)."""

    message = "Server is not configured to issue tokens"


def _envelope(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    content = {
        "success": False,
        "message": message,
        "status_code": status_code,
        "path": str(request.url.path),
    }
    content.update(extra)
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message} - {request.url.path}")
    else:
        logger.info(f"HTTP {exc.status_code} {type(exc).__name__} - {request.url.path}")
    return _envelope(request, exc.status_code, exc.message)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 rather than FastAPI's 422."""

    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    logger.info(f"Validation error on {request.url.path}: {errors}")
    return _envelope(
        request, status.HTTP_400_BAD_REQUEST, "Validation error", errors=errors
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unexpected error - {request.url.path}")
    return _envelope(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
