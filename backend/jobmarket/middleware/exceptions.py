"""Custom exceptions and handlers for consistent error responses.

Access-layer denials are raised as typed exceptions and rendered here, so a
guard failure stops the request before the handler body runs. Every response
uses the same envelope:

    {"error": {"code": "...", "message": "...", "details": {...}}}
"""

import logging
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class JobMarketException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class InvalidRequestError(JobMarketException):
    """Missing or malformed input, e.g. no resolvable business id."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="INVALID_REQUEST",
        )


class UnauthenticatedError(JobMarketException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="UNAUTHENTICATED",
        )


class ResourceNotFoundError(JobMarketException):
    """Exception for resources not found."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(
            message=f"{resource} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class PermissionDeniedError(JobMarketException):
    """Caller is identified and the business exists, but access is refused.

    `reason` names the failed check: not_a_member, inactive, or
    insufficient_permissions.
    """

    NOT_A_MEMBER = "not_a_member"
    INACTIVE = "inactive"
    INSUFFICIENT_PERMISSIONS = "insufficient_permissions"

    def __init__(self, message: str = "Permission denied", reason: str = INSUFFICIENT_PERMISSIONS):
        self.reason = reason
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="PERMISSION_DENIED",
            details={"reason": reason},
        )


# ── Rendering ───────────────────────────────────────────────

# Unique constraints whose violation has a user-facing explanation
_CONSTRAINT_MESSAGES = {
    "uq_team_members_business_user": "User is already a team member of this business",
    "uq_team_members_business_email": "User is already a team member of this business",
    "ix_users_email": "Email already registered",
    "users.email": "Email already registered",
}


def error_response(
    status_code: int,
    message: str,
    code: str,
    details: dict | list | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def _request_extra(request: Request, **extra) -> dict:
    return {"path": request.url.path, "method": request.method, **extra}


# ── Handlers ────────────────────────────────────────────────

async def app_exception_handler(request: Request, exc: JobMarketException) -> JSONResponse:
    """Typed application errors. Access denials are routine and logged at INFO."""
    if exc.status_code >= 500:
        log = logger.error
    elif isinstance(exc, PermissionDeniedError):
        log = logger.info
    else:
        log = logger.warning
    log(
        "%s: %s",
        exc.error_code,
        exc.message,
        extra=_request_extra(request, error_code=exc.error_code),
    )
    return error_response(exc.status_code, exc.message, exc.error_code, exc.details)


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("HTTP %d: %s", exc.status_code, exc.detail, extra=_request_extra(request))
    return error_response(
        exc.status_code,
        str(exc.detail),
        f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("Validation error on %s", request.url.path, extra=_request_extra(request))
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        {"errors": errors},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Constraint violations that slipped past service-level checks (e.g. racing invites)."""
    raw = str(getattr(exc, "orig", exc))
    logger.warning("Integrity error on %s: %s", request.url.path, raw, extra=_request_extra(request))

    for constraint, message in _CONSTRAINT_MESSAGES.items():
        if constraint in raw:
            return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, message, "DUPLICATE_RECORD")

    lowered = raw.lower()
    if "unique" in lowered:
        message, code = "A record with this value already exists", "DUPLICATE_RECORD"
    elif "foreign key" in lowered:
        message, code = "Referenced record does not exist", "FOREIGN_KEY_VIOLATION"
    else:
        message, code = "Database constraint violation", "INTEGRITY_ERROR"
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, message, code)


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unavailable on %s: %s", request.url.path, exc, extra=_request_extra(request))
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        "DATABASE_UNAVAILABLE",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s", request.url.path, extra=_request_extra(request))
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_SERVER_ERROR",
    )


_HANDLERS = (
    (JobMarketException, app_exception_handler),
    (StarletteHTTPException, http_exception_handler),
    (RequestValidationError, validation_exception_handler),
    (IntegrityError, integrity_error_handler),
    (OperationalError, operational_error_handler),
    (Exception, unhandled_exception_handler),
)


def register_exception_handlers(app):
    """Install every handler above on `app`."""
    for exc_class, handler in _HANDLERS:
        app.add_exception_handler(exc_class, handler)
