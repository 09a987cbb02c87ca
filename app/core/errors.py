"""Domain errors for the sharing and access-control layer.

Every error raised to an API caller derives from ``ShareAccessError`` and
carries the HTTP status it maps to plus a short machine-readable ``reason``.
Store failures are not wrapped here; the exception handler turns them into a
generic 500 and keeps the details in the server log.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ShareAccessError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "error"

    def __init__(self, detail: str, reason: str = None):
        super().__init__(detail)
        self.detail = detail
        if reason is not None:
            self.reason = reason


class Unauthorized(ShareAccessError):
    """No trusted identity where one is required"""
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "sign_in_required"


class Forbidden(ShareAccessError):
    """Identity known but access was denied"""
    status_code = status.HTTP_403_FORBIDDEN
    reason = "forbidden"


class NotFound(ShareAccessError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"


class Conflict(ShareAccessError):
    status_code = status.HTTP_409_CONFLICT
    reason = "conflict"


class ValidationError(ShareAccessError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "invalid_request"


class RateLimited(ShareAccessError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    reason = "rate_limited"


class NotificationFailure(Exception):
    """Outbound notification could not be delivered. Never surfaced to API callers."""


async def share_access_error_handler(request: Request, exc: ShareAccessError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "reason": exc.reason},
        headers=headers,
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Store failure while handling %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "reason": "error"},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ShareAccessError, share_access_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
