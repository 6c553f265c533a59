import base64
import hashlib
import hmac
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

import jwt
from pydantic import BaseModel, SecretStr

from .cache import ExpiringCache
from .errors import AuthError, AuthErrorKind, InternalError
from .settings import TodoKeeperSettings

_PBKDF2_ALGO = "sha256"
_PBKDF2_ITERATIONS = 100_000
_SALT_BYTES = 16

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


class TokenData(BaseModel):
    """Decoded JWT payload."""
    email: str
    type: str
    iat: int
    exp: int
    jti: Optional[str] = None


class TokenResponse(BaseModel):
    """Token pair handed out on login and refresh."""
    token: str
    refreshToken: str


def _pbkdf2_hash(password: str, salt: bytes) -> bytes:
    """Derive a key using PBKDF2-SHA256."""
    return hashlib.pbkdf2_hmac(
        _PBKDF2_ALGO,
        password.encode("utf-8"),
        salt,
        _PBKDF2_ITERATIONS,
    )


def hash_password(password: str) -> str:
    """Hash a plain-text password using PBKDF2-SHA256.

    Stored format: base64( salt || derived_key )
    """
    salt = os.urandom(_SALT_BYTES)
    dk = _pbkdf2_hash(password, salt)
    return base64.b64encode(salt + dk).decode("ascii")


def verify_password(plain_password: str, stored_hash: str) -> bool:
    """Verify a plain password against the stored PBKDF2 hash."""
    try:
        raw = base64.b64decode(stored_hash.encode("ascii"), validate=True)
    except (ValueError, UnicodeEncodeError):
        return False

    if len(raw) <= _SALT_BYTES:
        return False

    salt = raw[:_SALT_BYTES]
    stored_dk = raw[_SALT_BYTES:]
    new_dk = _pbkdf2_hash(plain_password, salt)

    return hmac.compare_digest(stored_dk, new_dk)


def _secret_value(secret: Union[str, SecretStr, None]) -> str:
    if isinstance(secret, SecretStr):
        return secret.get_secret_value()
    return secret or ""


class TokenIssuer:
    """Issues and validates access/refresh JWTs and tracks logged-off tokens.

    Access and refresh tokens carry the same claims ({email, iat, exp, type, jti}) but are signed with
    distinct secrets, so a leaked access token can never be replayed as a refresh token.
    Revoked tokens live in an ``ExpiringCache`` for ``revocation_ttl`` seconds, independent of the
    token's own expiry. Revocation is local to this process.

    Example:
        ```python
        issuer = TokenIssuer.from_settings(get_settings())
        pair = issuer.issue_token_pair("alice@example.com")
        issuer.validate_access_token(pair.token)  # "alice@example.com"
        issuer.revoke(pair.token)
        issuer.validate_access_token(pair.token)  # raises AuthError(REVOKED)
        ```
    """

    def __init__(
        self,
        *,
        access_secret: Union[str, SecretStr],
        refresh_secret: Union[str, SecretStr],
        algorithm: str = "HS256",
        access_ttl: int = 15 * 60,
        refresh_ttl: int = 60 * 60,
        revocation_ttl: int = 12 * 60 * 60,
        revoked: Optional[ExpiringCache] = None,
    ):
        self._access_secret = _secret_value(access_secret)
        self._refresh_secret = _secret_value(refresh_secret)
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.revocation_ttl = revocation_ttl
        self.revoked = revoked if revoked is not None else ExpiringCache(default_ttl=revocation_ttl)

    @classmethod
    def from_settings(cls, settings: TodoKeeperSettings, revoked: Optional[ExpiringCache] = None) -> "TokenIssuer":
        return cls(
            access_secret=settings.JWT_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=settings.JWT_EXPIRES_IN,
            refresh_ttl=settings.JWT_REFRESH_EXPIRES_IN,
            revocation_ttl=settings.REVOCATION_TTL,
            revoked=revoked,
        )

    # -------------------------------------------------------------------------
    # Issuing
    # -------------------------------------------------------------------------

    def _encode(self, email: str, token_type: str, secret: str, ttl: int) -> str:
        if not secret:
            raise InternalError(f"No signing secret configured for {token_type} tokens")

        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "email": email,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl)).timestamp()),
            # Unique per token so a fresh token never equals a revoked one.
            "jti": uuid.uuid4().hex,
        }
        try:
            return jwt.encode(payload, secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            raise InternalError(f"Could not sign {token_type} token: {e}") from e

    def issue_access_token(self, email: str) -> str:
        """Create a signed access token for the given email."""
        return self._encode(email, ACCESS_TOKEN, self._access_secret, self.access_ttl)

    def issue_refresh_token(self, email: str) -> str:
        """Create a signed refresh token for the given email."""
        return self._encode(email, REFRESH_TOKEN, self._refresh_secret, self.refresh_ttl)

    def issue_token_pair(self, email: str) -> TokenResponse:
        return TokenResponse(token=self.issue_access_token(email), refreshToken=self.issue_refresh_token(email))

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def decode(self, token: str, token_type: str = ACCESS_TOKEN) -> TokenData:
        """Decode and validate a JWT, returning a typed payload.

        Raises:
            AuthError: with kind REVOKED, EXPIRED, BAD_SIGNATURE or MALFORMED.
        """
        if not token:
            raise AuthError(AuthErrorKind.MALFORMED)
        if self.is_revoked(token):
            raise AuthError(AuthErrorKind.REVOKED)

        secret = self._access_secret if token_type == ACCESS_TOKEN else self._refresh_secret
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "email"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError(AuthErrorKind.EXPIRED)
        except jwt.InvalidSignatureError:
            raise AuthError(AuthErrorKind.BAD_SIGNATURE)
        except jwt.InvalidTokenError:
            raise AuthError(AuthErrorKind.MALFORMED)

        if payload.get("type", token_type) != token_type:
            raise AuthError(AuthErrorKind.MALFORMED)

        payload.setdefault("type", token_type)
        payload.setdefault("iat", 0)
        return TokenData(**payload)

    def validate_access_token(self, token: str) -> str:
        """Return the email bound to a valid access token."""
        return self.decode(token, ACCESS_TOKEN).email

    def validate_refresh_token(self, token: str) -> str:
        """Return the email bound to a valid refresh token."""
        return self.decode(token, REFRESH_TOKEN).email

    # -------------------------------------------------------------------------
    # Revocation
    # -------------------------------------------------------------------------

    def revoke(self, token: str) -> None:
        """Add the raw token to the logged-off set. Idempotent."""
        if token:
            self.revoked.set(token, True, ttl=self.revocation_ttl)

    def is_revoked(self, token: str) -> bool:
        return self.revoked.contains(token)


def strip_bearer(header_value: Optional[str]) -> Optional[str]:
    """Return the token from "Bearer <token>" (or a bare token), or None if empty."""
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    if len(parts) == 1 and parts[0].lower() != "bearer":
        return parts[0]
    return None
