"""TodoKeeper Service - todo CRUD REST API with JWT sessions and MongoDB storage."""

from typing import Any, Optional

from fastapi.middleware.cors import CORSMiddleware
from urllib3.util.url import parse_url

from todokeeper.core.auth_middleware import AuthMiddleware
from todokeeper.core.cache import ExpiringCache
from todokeeper.core.middleware import RequestLoggingMiddleware
from todokeeper.core.security import TokenIssuer, TokenResponse
from todokeeper.core.service import Service
from todokeeper.core.settings import TodoKeeperSettings, get_settings
from todokeeper.db import TodoKeeperDB
from todokeeper.handlers import HealthHandler, TodoHandler, UserHandler
from todokeeper.models import MessageResponse, TodoPage, TodoResponse, UserResponse
from todokeeper.repositories import TodoRepository, UserRepository


class TodoKeeperService(Service):
    """Todo service: user accounts, JWT login/refresh/logout and per-user todo lists.

    Example:
        ```python
        # Default settings (reads TODOKEEPER__* env vars)
        TodoKeeperService.launch()

        # In tests, without MongoDB
        service = TodoKeeperService(enable_db=False, user_repo=FakeUserRepo(), todo_repo=FakeTodoRepo())
        ```
    """

    name = "todokeeper"

    def __init__(
        self,
        *,
        url: Optional[str] = None,
        settings: Optional[TodoKeeperSettings] = None,
        enable_db: bool = True,
        enable_auth: bool = True,
        user_repo: Optional[UserRepository] = None,
        todo_repo: Optional[TodoRepository] = None,
        revoked: Optional[ExpiringCache] = None,
        **kwargs,
    ):
        """Initialize TodoKeeperService.

        Args:
            url: Service URL override. Defaults to settings.URL.
            settings: Settings object. Defaults to get_settings().
            enable_db: Create a MongoDB client. When False, both repositories must be injected.
            enable_auth: Enable the Bearer token gate.
            user_repo: Credential store override.
            todo_repo: Todo store override.
            revoked: Logged-off token set override.
            **kwargs: Passed to Service base class.
        """
        settings = settings if settings is not None else get_settings()
        super().__init__(
            url=url,
            settings=settings,
            summary="TodoKeeper Service",
            description="Todo CRUD API with JWT authentication and MongoDB storage.",
            **kwargs,
        )
        cfg = self.settings

        # Database + repositories
        self.db: Optional[TodoKeeperDB] = None
        if enable_db:
            self.db = TodoKeeperDB(uri=cfg.MONGO_URI, db_name=cfg.MONGO_DB, timeout_ms=cfg.MONGO_TIMEOUT_MS)
        if (user_repo is None or todo_repo is None) and self.db is None:
            raise ValueError("user_repo and todo_repo are required when enable_db is False")
        self.user_repo = user_repo if user_repo is not None else UserRepository(self.db)
        self.todo_repo = todo_repo if todo_repo is not None else TodoRepository(self.db)

        # Sessions
        self.revoked = revoked if revoked is not None else ExpiringCache(default_ttl=cfg.REVOCATION_TTL)
        self.issuer = TokenIssuer.from_settings(cfg, revoked=self.revoked)

        # Handlers
        self.users = UserHandler(self.user_repo, self.issuer, logger=self.logger)
        self.todos = TodoHandler(self.todo_repo, self.user_repo, logger=self.logger)
        self.health = HealthHandler(self.db, logger=self.logger)

        # Endpoints
        self._register_health_endpoints()
        self._register_user_endpoints()
        self._register_todo_endpoints()

        # Middleware (last added runs first). The gate lets through exactly the public endpoints.
        self.app.add_middleware(
            AuthMiddleware, issuer=self.issuer, enabled=enable_auth, bypass_routes=self.public_routes
        )
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self.app.add_middleware(
            RequestLoggingMiddleware,
            service_name=self.name,
            add_request_id_header=True,
            logger=self.logger,
        )

    @classmethod
    def default_url(cls) -> Any:
        """Return default URL from settings (respects TODOKEEPER__URL env var)."""
        return parse_url(get_settings().URL)

    # -------------------------------------------------------------------------
    # Endpoint registration
    # -------------------------------------------------------------------------

    def _register_health_endpoints(self) -> None:
        self.add_endpoint("/", self.health.root, methods=["GET"], tags=["health"], public=True)
        self.add_endpoint("/health", self.health.health, methods=["GET"], tags=["health"], public=True)

    def _register_user_endpoints(self) -> None:
        """Register account and session endpoints."""
        self.add_endpoint(
            "/user",
            self.users.register,
            methods=["POST"],
            status_code=201,
            response_model=UserResponse,
            summary="Register a new user",
            tags=["users"],
            public=True,
        )
        self.add_endpoint(
            "/login",
            self.users.login,
            methods=["POST"],
            response_model=TokenResponse,
            summary="Log in and receive a token pair",
            tags=["auth"],
            public=True,
        )
        self.add_endpoint(
            "/refresh",
            self.users.refresh,
            methods=["POST"],
            response_model=TokenResponse,
            summary="Exchange the presented tokens for a new token pair",
            tags=["auth"],
            public=True,
        )
        self.add_endpoint(
            "/logout",
            self.users.logout,
            methods=["POST"],
            response_model=MessageResponse,
            summary="Revoke the current session",
            tags=["auth"],
        )
        self.add_endpoint("/user", self.users.get_self, methods=["GET"], response_model=UserResponse, tags=["users"])
        self.add_endpoint("/user", self.users.update_self, methods=["PUT"], response_model=UserResponse, tags=["users"])
        self.add_endpoint(
            "/user", self.users.delete_self, methods=["DELETE"], response_model=MessageResponse, tags=["users"]
        )

    def _register_todo_endpoints(self) -> None:
        """Register todo endpoints. The static list routes go before ``/todo/{todo_id}``."""
        self.add_endpoint(
            "/todos",
            self.todos.list,
            methods=["GET"],
            response_model=TodoPage,
            summary="List todos with paging and search",
            tags=["todos"],
        )
        self.add_endpoint("/todo/pagination", self.todos.list, methods=["GET"], response_model=TodoPage, tags=["todos"])
        self.add_endpoint(
            "/todo",
            self.todos.create,
            methods=["POST"],
            status_code=201,
            response_model=TodoResponse,
            summary="Create a todo",
            tags=["todos"],
        )
        self.add_endpoint("/todo/{todo_id}", self.todos.get, methods=["GET"], response_model=TodoResponse, tags=["todos"])
        self.add_endpoint(
            "/todo/{todo_id}", self.todos.update, methods=["PUT"], response_model=TodoResponse, tags=["todos"]
        )
        self.add_endpoint(
            "/todo/{todo_id}", self.todos.delete, methods=["DELETE"], response_model=MessageResponse, tags=["todos"]
        )

    # -------------------------------------------------------------------------
    # Lifecycle hooks
    # -------------------------------------------------------------------------

    async def startup(self) -> None:
        """Connect to MongoDB, create indexes and start the revocation sweeper."""
        await super().startup()
        if self.db is not None:
            self.db.connect()
            await self.user_repo.ensure_indexes()
            await self.todo_repo.ensure_indexes()
        self.revoked.start_sweeper(self.settings.REVOCATION_SWEEP_INTERVAL)

    async def shutdown_cleanup(self) -> None:
        """Stop the sweeper and close the database connection."""
        self.revoked.stop_sweeper()
        if self.db is not None:
            await self.db.disconnect()
        await super().shutdown_cleanup()
