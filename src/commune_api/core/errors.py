"""Application error type and its translation to HTTP responses."""

from __future__ import annotations

import enum
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from commune_api.models.lifecycle import LifecycleError

logger = logging.getLogger(__name__)


class ErrorCode(str, enum.Enum):
    """Machine-readable error codes returned next to the message."""

    GENERAL = "GENERAL_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    ACCESS_DENIED = "ACCESS_DENIED"
    NOT_FOUND = "NOT_FOUND"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    SLUG_TAKEN = "SLUG_TAKEN"
    LOGIN_NAME_TAKEN = "LOGIN_NAME_TAKEN"
    ALREADY_SHARED = "ALREADY_SHARED"
    CONFLICT = "CONFLICT"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    INTERNAL = "INTERNAL_ERROR"


class AppError(Exception):
    """Error raised by services and dependencies; rendered as a JSON body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: ErrorCode = ErrorCode.GENERAL,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"AppError({self.status_code}, {self.code.value}, {self.message!r})"


def bad_request(message: str, code: ErrorCode = ErrorCode.VALIDATION) -> AppError:
    return AppError(status.HTTP_400_BAD_REQUEST, message, code)


def unauthorized(message: str = "Authentication required") -> AppError:
    return AppError(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


def forbidden(message: str, code: ErrorCode = ErrorCode.ACCESS_DENIED) -> AppError:
    return AppError(status.HTTP_403_FORBIDDEN, message, code)


def not_found(message: str) -> AppError:
    return AppError(status.HTTP_404_NOT_FOUND, message, ErrorCode.NOT_FOUND)


def conflict(message: str, code: ErrorCode = ErrorCode.CONFLICT) -> AppError:
    return AppError(status.HTTP_409_CONFLICT, message, code)


# Constraint and index names declared on the models, mapped to domain errors.
_CONSTRAINT_ERRORS: dict[str, tuple[int, ErrorCode, str]] = {
    "uq_profile_community_username": (
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.USERNAME_TAKEN,
        "Username is already taken in this community",
    ),
    "uq_profile_ownership_profile_user": (
        status.HTTP_409_CONFLICT,
        ErrorCode.ALREADY_SHARED,
        "Profile is already shared with this user",
    ),
    "uq_community_slug": (
        status.HTTP_409_CONFLICT,
        ErrorCode.SLUG_TAKEN,
        "Community slug already exists",
    ),
    "uq_community_custom_domain": (
        status.HTTP_409_CONFLICT,
        ErrorCode.SLUG_TAKEN,
        "Custom domain is already in use",
    ),
    "uq_user_block_blocker_blocked": (
        status.HTTP_409_CONFLICT,
        ErrorCode.CONFLICT,
        "User already blocked",
    ),
    "uq_user_login_name": (
        status.HTTP_409_CONFLICT,
        ErrorCode.LOGIN_NAME_TAKEN,
        "Login name already exists",
    ),
}

# SQLite reports the offending columns rather than the constraint name.
_SQLITE_COLUMN_HINTS: dict[str, str] = {
    "profile.community_id, profile.username": "uq_profile_community_username",
    "profile_ownership.profile_id, profile_ownership.user_id": "uq_profile_ownership_profile_user",
    "community.slug": "uq_community_slug",
    "community.custom_domain": "uq_community_custom_domain",
    "user.login_name": "uq_user_login_name",
    "user_block.blocker_id, user_block.blocked_id": "uq_user_block_blocker_blocked",
}


def translate_integrity_error(exc: IntegrityError) -> AppError:
    """Map a unique-constraint violation onto the matching domain error."""
    message = str(exc.orig)
    for name, (status_code, code, text) in _CONSTRAINT_ERRORS.items():
        if name in message:
            return AppError(status_code, text, code)
    for columns, name in _SQLITE_COLUMN_HINTS.items():
        if columns in message:
            status_code, code, text = _CONSTRAINT_ERRORS[name]
            return AppError(status_code, text, code)
    logger.warning("Unmapped integrity error: %s", message)
    return AppError(
        status.HTTP_400_BAD_REQUEST,
        "Request conflicts with existing data",
        ErrorCode.CONSTRAINT_VIOLATION,
    )


async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code.value},
    )


async def integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    return await app_error_handler(_request, translate_integrity_error(exc))


async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return await app_error_handler(_request, bad_request("; ".join(messages) or "Invalid request"))


async def lifecycle_error_handler(_request: Request, exc: LifecycleError) -> JSONResponse:
    return await app_error_handler(_request, bad_request(str(exc)))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": ErrorCode.INTERNAL.value},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the application error handlers to ``app``."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_error_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(LifecycleError, lifecycle_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
