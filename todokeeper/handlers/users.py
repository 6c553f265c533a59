"""User endpoints: registration, login, the caller's own profile and the session lifecycle."""

from fastapi import Request

from todokeeper.core.errors import AuthError, AuthErrorKind, NotFoundError, ValidationError
from todokeeper.core.logger import get_logger
from todokeeper.core.security import TokenIssuer, TokenResponse, hash_password, strip_bearer, verify_password
from todokeeper.core.validation import validate_name, validate_registration
from todokeeper.models import LoginPayload, MessageResponse, RegisterPayload, User, UserResponse, UserUpdatePayload
from todokeeper.repositories import UserRepository

REFRESH_HEADER = "Refresh"


class UserHandler:
    """Handles the ``/user``, ``/login``, ``/refresh`` and ``/logout`` routes.

    Identity for the self-service routes comes from ``request.state.email``, which the auth
    middleware sets after validating the access token.
    """

    def __init__(self, users: UserRepository, issuer: TokenIssuer, logger=None):
        self.users = users
        self.issuer = issuer
        self.logger = logger or get_logger("handlers.users")

    async def register(self, payload: RegisterPayload) -> UserResponse:
        """Register a new user."""
        name, email, password = validate_registration(
            payload.name, payload.email, payload.password, payload.confirm_password
        )
        user = await self.users.create(User(id=None, name=name, email=email, hashed_password=hash_password(password)))
        self.logger.info("User registered", user_id=user.id)
        return UserResponse.from_user(user)

    async def login(self, payload: LoginPayload) -> TokenResponse:
        """Exchange credentials for an access/refresh token pair."""
        user = await self.users.find_by_email(payload.email.strip())
        if user is None or not verify_password(payload.password, user.hashed_password):
            raise ValidationError("Invalid email or password")

        self.logger.info("User logged in", user_id=user.id)
        return self.issuer.issue_token_pair(user.email)

    async def get_self(self, request: Request) -> UserResponse:
        user = await self.users.get_by_email(request.state.email)
        return UserResponse.from_user(user)

    async def update_self(self, request: Request, payload: UserUpdatePayload) -> UserResponse:
        """Update the caller's display name. Email and password are not changed here."""
        user = await self.users.get_by_email(request.state.email)
        if payload.name is not None:
            user.name = validate_name(payload.name)
        user = await self.users.update(user)
        return UserResponse.from_user(user)

    async def delete_self(self, request: Request) -> MessageResponse:
        """Soft-delete the caller and revoke the token used for this request."""
        user = await self.users.soft_delete(request.state.email)
        self.issuer.revoke(request.state.token)
        self.logger.info("User deleted", user_id=user.id)
        return MessageResponse(message="User deleted successfully")

    async def refresh(self, request: Request) -> TokenResponse:
        """Exchange the presented tokens for a fresh access/refresh pair.

        Both the ``Authorization`` and ``Refresh`` headers are required. The access token may
        already be expired, so only the refresh token is validated. Both presented tokens are
        revoked once the new pair is issued.
        """
        old_access = strip_bearer(request.headers.get("Authorization"))
        if not old_access:
            raise AuthError(AuthErrorKind.MISSING)
        refresh_token = strip_bearer(request.headers.get(REFRESH_HEADER))
        if not refresh_token:
            raise AuthError(AuthErrorKind.MISSING, "Refresh header missing")

        email = self.issuer.validate_refresh_token(refresh_token)
        try:
            user = await self.users.get_by_email(email)
        except NotFoundError:
            raise AuthError(AuthErrorKind.INVALID_USER)

        pair = self.issuer.issue_token_pair(user.email)
        self.issuer.revoke(old_access)
        self.issuer.revoke(refresh_token)

        self.logger.info("Token pair refreshed", user_id=user.id)
        return pair

    async def logout(self, request: Request) -> MessageResponse:
        """Revoke the caller's access token and, when presented, its refresh token."""
        self.issuer.revoke(request.state.token)
        refresh_token = strip_bearer(request.headers.get(REFRESH_HEADER))
        if refresh_token:
            self.issuer.revoke(refresh_token)

        self.logger.info("User logged out", refresh_revoked=bool(refresh_token))
        return MessageResponse(message="Logged out successfully")
