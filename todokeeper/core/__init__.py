from .cache import ExpiringCache
from .errors import (
    AuthError,
    AuthErrorKind,
    ConflictError,
    ErrorResponse,
    InternalError,
    NotFoundError,
    TodoKeeperError,
    ValidationError,
)
from .security import TokenData, TokenIssuer, TokenResponse, hash_password, verify_password
from .settings import TodoKeeperSettings, get_settings, reset_settings

__all__ = [
    "TodoKeeperSettings",
    "get_settings",
    "reset_settings",
    "ExpiringCache",
    "TokenData",
    "TokenIssuer",
    "TokenResponse",
    "hash_password",
    "verify_password",
    "AuthError",
    "AuthErrorKind",
    "ConflictError",
    "ErrorResponse",
    "InternalError",
    "NotFoundError",
    "TodoKeeperError",
    "ValidationError",
]
