"""Error normalization and handlers."""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.requests import Request

from payment_storage.core.logging import get_request_id

logger = logging.getLogger("payment_storage")


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, LookupError):
    code = "not_found"
    status_code = 404


class ConflictError(AppError):
    code = "conflict"
    status_code = 409


class UserNotFound(NotFoundError):
    """Raised when no record exists for a user (or customer) identity."""
    code = "user_not_found"

    def __init__(self, user_id: str):
        super().__init__(f"User with ID '{user_id}' not found.")
        self.user_id = user_id


class UserAlreadyExists(ConflictError):
    """Raised when creating a user identity that is already registered."""
    code = "user_already_exists"

    def __init__(self, user_id: str):
        super().__init__(f"User with ID '{user_id}' already exists.")
        self.user_id = user_id


class CustomerAlreadyLinked(ConflictError):
    """Raised when a billing customer is already linked to a different user."""
    code = "customer_already_linked"

    def __init__(self, customer_id: str, user_id: Optional[str] = None):
        super().__init__(f"Customer '{customer_id}' is already linked to another user.")
        self.customer_id = customer_id
        self.user_id = user_id


class VersionConflict(ConflictError):
    """Raised when an update lost the optimistic-concurrency race."""
    code = "version_conflict"

    def __init__(self, user_id: str):
        super().__init__(f"User with ID '{user_id}' was modified concurrently.")
        self.user_id = user_id


def _extract_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or uuid4().hex


def _error_response(rid: str, status_code: int, code: str, message: str) -> JSONResponse:
    """Normalized envelope shared by every handler; `detail` mirrors FastAPI's default key."""
    response = JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message, "request_id": rid},
            "detail": message,
        },
    )
    response.headers["x-request-id"] = rid
    return response


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    logger.log(
        logging.ERROR if exc.status_code >= 500 else logging.WARNING,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    return _error_response(rid, exc.status_code, exc.code, exc.message)


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    return _error_response(rid, exc.status_code, code, exc.detail or "HTTP error")


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger.error("unhandled.exception", exc_info=exc, extra={"request_id": rid, "error_code": "internal_error"})
    return _error_response(rid, 500, "internal_error", "Unexpected error")
