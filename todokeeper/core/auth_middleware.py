"""Authentication middleware for todokeeper.

Validates the Bearer access token on every protected request and attaches the
resolved identity to ``request.state``. Handlers never read identity from the client.
"""

from typing import FrozenSet, Optional, Set, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .constants import AUTH_EXEMPT_PATHS, AUTH_EXEMPT_PREFIXES
from .errors import AuthError, AuthErrorKind, error_response
from .security import TokenIssuer


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware that validates the JWT access token and attaches the caller to request state.

    On success sets:
    - request.state.email: email claim of the access token
    - request.state.token: the raw access token (used by logout)

    On failure the request is short-circuited with a 401 error envelope.
    """

    def __init__(
        self,
        app,
        issuer: TokenIssuer,
        enabled: bool = True,
        bypass_paths: Optional[Set[str]] = None,
        bypass_routes: Optional[Set[Tuple[str, str]]] = None,
    ):
        """Initialize the AuthMiddleware.

        Args:
            app: The ASGI application
            issuer: TokenIssuer used to validate access tokens
            enabled: Whether to enable authentication checks
            bypass_paths: Paths that bypass authentication for every method
            bypass_routes: (method, path) pairs that bypass authentication, usually the
                service's ``public_routes``
        """
        super().__init__(app)
        self.issuer = issuer
        self.enabled = enabled
        self.bypass_paths: FrozenSet[str] = frozenset(bypass_paths if bypass_paths is not None else AUTH_EXEMPT_PATHS)
        self.bypass_routes: FrozenSet[Tuple[str, str]] = frozenset(bypass_routes or ())

    def is_exempt(self, method: str, path: str) -> bool:
        if method == "OPTIONS":
            return True
        path = path.rstrip("/") or "/"
        if path in self.bypass_paths or (method, path) in self.bypass_routes:
            return True
        return any(path.startswith(prefix) for prefix in AUTH_EXEMPT_PREFIXES)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled or self.is_exempt(request.method, request.url.path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return self._reject(AuthError(AuthErrorKind.MISSING))

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return self._reject(
                AuthError(AuthErrorKind.MALFORMED, "Invalid Authorization header format. Expected: Bearer <token>")
            )

        token = parts[1]
        try:
            email = self.issuer.validate_access_token(token)
        except AuthError as e:
            return self._reject(e)

        request.state.email = email
        request.state.token = token

        return await call_next(request)

    @staticmethod
    def _reject(error: AuthError) -> Response:
        return error_response(error.status_code, error.message, headers={"WWW-Authenticate": "Bearer"})
