"""Error taxonomy and the HTTP error boundary.

Every error raised on purpose by the service layer is an ``AppError`` carrying
a caller-safe ``message`` and the HTTP status it maps to. Messages must never
contain secrets, passwords or key material: they are returned to clients as is.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


class AppError(Exception):
    """Base class for errors translated into an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None) -> None:
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ConfigurationError(AppError):
    """Required secret material or configuration is missing or malformed."""

    default_message = "Server misconfiguration"


class ValidationError(AppError):
    """Request fields are missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(AppError):
    """Bad credentials, or a missing, invalid or expired token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    """Valid identity without the permission the operation requires."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class ConflictError(AppError):
    """A unique key (email, secret name + environment) already exists."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class SecretNotFoundError(NotFoundError):
    """No secret stored for the (name, environment) pair."""

    def __init__(self, name: str, environment: str) -> None:
        self.name = name
        self.environment = environment
        super().__init__(f'Secret "{name}" not found for environment "{environment}"')


class CryptoError(AppError):
    """Encryption or decryption failed. Message is always generic."""

    default_message = "Cryptographic operation failed"


class EncryptionError(CryptoError):
    default_message = "Encryption failed"


class DecryptionError(CryptoError):
    default_message = "Decryption failed"


def _error_body(message: str, **extra: object) -> dict[str, object]:
    return {"success": False, "message": message, **extra}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed with %s",
            type(exc).__name__,
            extra={"path": request.url.path, "status": exc.status_code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message),
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Only field locations are returned; input values (passwords) are never echoed.
    fields = sorted(
        {".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()}
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Invalid request body", fields=[f for f in fields if f]),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors in full server-side; redact details from prod responses."""
    if request.app.state.settings.is_production:
        logger.error(
            "Unhandled error in %s %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            extra={"error": str(exc), "stack": "REDACTED"},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(GENERIC_ERROR_MESSAGE),
        )
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            str(exc) or "Unknown error occurred",
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
