"""Error taxonomy and the JSON error envelope returned by every endpoint."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    message: str
    status: int
    timestamp: str


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    """Build a JSONResponse carrying the error envelope."""
    body = ErrorResponse(message=message, status=status_code, timestamp=_now_rfc3339())
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


class TodoKeeperError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TodoKeeperError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthErrorKind(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    REVOKED = "revoked"
    INVALID_USER = "invalid_user"


_AUTH_MESSAGES = {
    AuthErrorKind.MISSING: "Authorization header missing",
    AuthErrorKind.MALFORMED: "Invalid token",
    AuthErrorKind.BAD_SIGNATURE: "Invalid token signature",
    AuthErrorKind.EXPIRED: "Token has expired",
    AuthErrorKind.REVOKED: "Token has been revoked",
    AuthErrorKind.INVALID_USER: "Invalid user",
}


class AuthError(TodoKeeperError):
    """Missing, malformed, expired or revoked credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"

    def __init__(self, kind: AuthErrorKind, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or _AUTH_MESSAGES[kind])


class NotFoundError(TodoKeeperError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(TodoKeeperError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists"


class InternalError(TodoKeeperError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


def register_exception_handlers(app: FastAPI, logger) -> None:
    """Render every failure as the error envelope instead of FastAPI's default bodies."""

    async def _todokeeper_error(request: Request, exc: TodoKeeperError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error("Internal error", path=request.url.path, error=exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return error_response(exc.status_code, exc.message, headers=headers)

    async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.debug("Rejected request body", path=request.url.path, errors=str(exc.errors()))
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    async def _store_error(request: Request, exc: PyMongoError) -> JSONResponse:
        logger.error("Database error", path=request.url.path, error=str(exc))
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message)

    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", path=request.url.path)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message)

    app.add_exception_handler(TodoKeeperError, _todokeeper_error)
    app.add_exception_handler(HTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(PyMongoError, _store_error)
    app.add_exception_handler(Exception, _unhandled_error)
