"""Unit tests for the todo handler using fake repositories."""

import pytest
import pytest_asyncio

from todokeeper.core.errors import AuthError, AuthErrorKind, NotFoundError, ValidationError
from todokeeper.handlers import TodoHandler
from todokeeper.models import TodoCreatePayload, TodoUpdatePayload, User


@pytest.fixture
def handler(todo_repo, user_repo) -> TodoHandler:
    return TodoHandler(todo_repo, user_repo)


@pytest_asyncio.fixture
async def alice(user_repo) -> User:
    return await user_repo.create(User(id=None, name="Alice", email="alice@example.com", hashed_password="h"))


@pytest_asyncio.fixture
async def bob(user_repo) -> User:
    return await user_repo.create(User(id=None, name="Bob", email="bob@example.com", hashed_password="h"))


@pytest.fixture
def as_alice(alice, make_request):
    return make_request(email=alice.email)


@pytest.fixture
def as_bob(bob, make_request):
    return make_request(email=bob.email)


class TestTodoCreateAndGet:
    @pytest.mark.asyncio
    async def test_create_sets_owner_from_session(self, handler, alice, as_alice):
        todo = await handler.create(as_alice, TodoCreatePayload(title="Buy milk", description="2 liters"))

        assert todo.user_id == alice.id
        assert todo.completed is False
        assert todo.completed_at is None

        fetched = await handler.get(as_alice, todo.id)
        assert fetched.title == "Buy milk"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title,description", [(None, "d"), ("t", None), ("  ", "d"), ("t", "")])
    async def test_create_requires_title_and_description(self, handler, as_alice, title, description):
        with pytest.raises(ValidationError):
            await handler.create(as_alice, TodoCreatePayload(title=title, description=description))

    @pytest.mark.asyncio
    async def test_unknown_user_is_rejected(self, handler, make_request):
        with pytest.raises(AuthError) as exc:
            await handler.create(make_request(email="ghost@example.com"), TodoCreatePayload(title="t", description="d"))
        assert exc.value.kind == AuthErrorKind.INVALID_USER

    @pytest.mark.asyncio
    async def test_get_missing(self, handler, as_alice):
        with pytest.raises(NotFoundError):
            await handler.get(as_alice, "64b7f0c2a1b2c3d4e5f60718")


class TestTodoUpdate:
    @pytest.mark.asyncio
    async def test_partial_update_leaves_other_fields(self, handler, as_alice):
        todo = await handler.create(as_alice, TodoCreatePayload(title="Buy milk", description="2 liters"))

        updated = await handler.update(as_alice, todo.id, TodoUpdatePayload(title="Buy oat milk"))

        assert updated.title == "Buy oat milk"
        assert updated.description == "2 liters"

    @pytest.mark.asyncio
    async def test_completion_stamps_and_clears(self, handler, as_alice):
        todo = await handler.create(as_alice, TodoCreatePayload(title="Buy milk", description="2 liters"))

        done = await handler.update(as_alice, todo.id, TodoUpdatePayload(completed=True))
        assert done.completed is True
        assert done.completed_at is not None

        undone = await handler.update(as_alice, todo.id, TodoUpdatePayload(completed=False))
        assert undone.completed is False
        assert undone.completed_at is None

    @pytest.mark.asyncio
    async def test_null_title_is_ignored(self, handler, as_alice):
        todo = await handler.create(as_alice, TodoCreatePayload(title="Buy milk", description="2 liters"))

        updated = await handler.update(as_alice, todo.id, TodoUpdatePayload(title=None))

        assert updated.title == "Buy milk"

    @pytest.mark.asyncio
    async def test_blank_title_is_rejected(self, handler, as_alice):
        todo = await handler.create(as_alice, TodoCreatePayload(title="Buy milk", description="2 liters"))

        with pytest.raises(ValidationError):
            await handler.update(as_alice, todo.id, TodoUpdatePayload(title=" "))


class TestOwnershipIsolation:
    @pytest.mark.asyncio
    async def test_other_user_cannot_see_or_touch(self, handler, as_alice, as_bob):
        todo = await handler.create(as_alice, TodoCreatePayload(title="Private", description="mine"))

        with pytest.raises(NotFoundError):
            await handler.get(as_bob, todo.id)
        with pytest.raises(NotFoundError):
            await handler.update(as_bob, todo.id, TodoUpdatePayload(title="hijacked"))
        with pytest.raises(NotFoundError):
            await handler.delete(as_bob, todo.id)

        page = await handler.list(as_bob)
        assert page.total == 0

        still_there = await handler.get(as_alice, todo.id)
        assert still_there.title == "Private"

    @pytest.mark.asyncio
    async def test_delete_own(self, handler, as_alice):
        todo = await handler.create(as_alice, TodoCreatePayload(title="Buy milk", description="2 liters"))

        response = await handler.delete(as_alice, todo.id)

        assert response.success is True
        with pytest.raises(NotFoundError):
            await handler.get(as_alice, todo.id)


class TestTodoListing:
    @pytest_asyncio.fixture
    async def fifteen(self, handler, as_alice):
        for i in range(15):
            await handler.create(as_alice, TodoCreatePayload(title=f"Task {i}", description=f"Description {i}"))

    @pytest.mark.asyncio
    async def test_pages(self, handler, as_alice, fifteen):
        first = await handler.list(as_alice, limit="10", offset="0")
        second = await handler.list(as_alice, limit="10", offset="10")

        assert (first.count, first.total, first.total_pages) == (10, 15, 2)
        assert (second.count, second.total) == (5, 15)
        ids = {t.id for t in first.data} | {t.id for t in second.data}
        assert len(ids) == 15

    @pytest.mark.asyncio
    async def test_newest_first(self, handler, as_alice, fifteen):
        page = await handler.list(as_alice, limit="3")
        assert [t.title for t in page.data] == ["Task 14", "Task 13", "Task 12"]

    @pytest.mark.asyncio
    async def test_bad_params_fall_back_to_defaults(self, handler, as_alice, fifteen):
        page = await handler.list(as_alice, limit="abc", offset="-5")

        assert page.limit == 10
        assert page.offset == 0
        assert page.count == 10

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, handler, as_alice, fifteen):
        await handler.create(as_alice, TodoCreatePayload(title="Groceries", description="MILK and eggs"))

        page = await handler.list(as_alice, search="milk")

        assert page.total == 1
        assert page.data[0].title == "Groceries"

    @pytest.mark.asyncio
    async def test_search_keeps_surrounding_whitespace(self, handler, as_alice):
        await handler.create(as_alice, TodoCreatePayload(title="almilk task", description="d"))
        await handler.create(as_alice, TodoCreatePayload(title="oat milk", description="d"))

        page = await handler.list(as_alice, search=" milk")

        assert page.total == 1
        assert page.data[0].title == "oat milk"

    @pytest.mark.asyncio
    async def test_empty_search_lists_everything(self, handler, as_alice, fifteen):
        page = await handler.list(as_alice, search="")
        assert page.total == 15

    @pytest.mark.asyncio
    async def test_empty_list(self, handler, as_alice):
        page = await handler.list(as_alice)

        assert page.data == []
        assert (page.total, page.count, page.total_pages) == (0, 0, 0)

    @pytest.mark.asyncio
    async def test_total_pages_serialized_as_camel_case(self, handler, as_alice, fifteen):
        page = await handler.list(as_alice)
        assert page.model_dump(by_alias=True)["totalPages"] == 2
