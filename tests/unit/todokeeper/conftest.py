"""Pytest fixtures for todokeeper unit tests."""

from dataclasses import replace
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from todokeeper.core.cache import ExpiringCache
from todokeeper.core.errors import ConflictError, NotFoundError
from todokeeper.core.security import TokenIssuer
from todokeeper.core.settings import TodoKeeperSettings, reset_settings
from todokeeper.models import Todo, User
from todokeeper.models.user import utcnow
from todokeeper.todokeeper import TodoKeeperService

# ---------------------------------------------------------------------------
# Fake repositories (pure in-memory, no Mongo)
# ---------------------------------------------------------------------------


class FakeUserRepository:
    """In-memory fake user repository for unit testing."""

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self.indexes_ensured = False

    def _active(self):
        return [u for u in self._users.values() if not u.removed]

    async def ensure_indexes(self) -> None:
        self.indexes_ensured = True

    async def create(self, user: User) -> User:
        if any(u.email == user.email for u in self._active()):
            raise ConflictError(f"User with email '{user.email}' already exists")
        user.id = str(ObjectId())
        self._users[user.id] = replace(user)
        return user

    async def get_by_id(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None or user.removed:
            raise NotFoundError("User not found")
        return replace(user)

    async def get_by_email(self, email: str) -> User:
        for user in self._active():
            if user.email == email:
                return replace(user)
        raise NotFoundError("User not found")

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            return await self.get_by_email(email)
        except NotFoundError:
            return None

    async def update(self, user: User) -> User:
        if user.id not in self._users:
            raise NotFoundError("User not found")
        user.updated_at = utcnow()
        self._users[user.id] = replace(user)
        return user

    async def soft_delete(self, email: str) -> User:
        user = await self.get_by_email(email)
        user.removed = True
        user.removed_at = utcnow()
        return await self.update(user)

    def count(self) -> int:
        return len(self._users)


class FakeTodoRepository:
    """In-memory fake todo repository for unit testing."""

    def __init__(self) -> None:
        self._todos: Dict[str, Todo] = {}
        self.indexes_ensured = False

    async def ensure_indexes(self) -> None:
        self.indexes_ensured = True

    def _owned(self, todo_id: str, owner_id: str) -> Todo:
        todo = self._todos.get(todo_id)
        if todo is None or todo.user_id != owner_id:
            raise NotFoundError("Todo not found")
        return todo

    async def create(self, todo: Todo) -> Todo:
        todo.id = str(ObjectId())
        # Keep creation order stable even when the clock does not advance between inserts.
        todo.created_at = utcnow() + timedelta(microseconds=len(self._todos))
        self._todos[todo.id] = replace(todo)
        return todo

    async def get(self, todo_id: str, owner_id: str) -> Todo:
        return replace(self._owned(todo_id, owner_id))

    async def list(
        self, owner_id: str, limit: int, offset: int, search: Optional[str] = None
    ) -> Tuple[List[Todo], int]:
        matches = [t for t in self._todos.values() if t.user_id == owner_id]
        if search:
            needle = search.lower()
            matches = [t for t in matches if needle in t.title.lower() or needle in t.description.lower()]
        matches.sort(key=lambda t: t.created_at, reverse=True)
        return [replace(t) for t in matches[offset : offset + limit]], len(matches)

    async def update(self, todo_id: str, owner_id: str, fields: Dict[str, Any]) -> Todo:
        todo = self._owned(todo_id, owner_id)
        updated = replace(todo, **fields, updated_at=utcnow())
        self._todos[todo_id] = updated
        return replace(updated)

    async def delete(self, todo_id: str, owner_id: str) -> None:
        self._owned(todo_id, owner_id)
        del self._todos[todo_id]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_cached_settings():
    """Reset cached settings before each test to ensure clean state."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> TodoKeeperSettings:
    return TodoKeeperSettings(
        URL="http://localhost:8080",
        MONGO_URI="mongodb://localhost:27017",
        MONGO_DB="todokeeper_test",
        JWT_SECRET="unit-test-access-secret-0123456789abcdef",
        JWT_REFRESH_SECRET="unit-test-refresh-secret-0123456789abcdef",
        LOG_LEVEL="DEBUG",
        LOG_DIR=None,
        LOG_JSON=False,
    )


@pytest.fixture
def revoked() -> ExpiringCache:
    return ExpiringCache()


@pytest.fixture
def issuer(settings, revoked) -> TokenIssuer:
    return TokenIssuer.from_settings(settings, revoked=revoked)


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def todo_repo() -> FakeTodoRepository:
    return FakeTodoRepository()


@pytest.fixture
def service(settings, user_repo, todo_repo, revoked) -> TodoKeeperService:
    return TodoKeeperService(
        settings=settings,
        enable_db=False,
        user_repo=user_repo,
        todo_repo=todo_repo,
        revoked=revoked,
    )


@pytest.fixture
def client(service):
    """TestClient running the service lifespan (sweeper start/stop)."""
    with TestClient(service.app) as test_client:
        yield test_client


@pytest.fixture
def mock_collection():
    """A motor collection double whose coroutine methods are AsyncMocks."""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)
    collection.create_index = AsyncMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.collection = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def make_request():
    """Build request doubles carrying the identity the auth middleware would attach."""

    def _make(email: Optional[str] = None, token: Optional[str] = None, headers: Optional[dict] = None):
        request = MagicMock()
        request.state.email = email
        request.state.token = token
        request.headers = headers or {}
        return request

    return _make
