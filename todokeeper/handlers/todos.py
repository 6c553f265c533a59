import math
from typing import Any, Dict, Optional

from fastapi import Request

from todokeeper.core.errors import AuthError, AuthErrorKind, NotFoundError
from todokeeper.core.logger import get_logger
from todokeeper.core.validation import parse_pagination, require_text
from todokeeper.models import MessageResponse, Todo, TodoCreatePayload, TodoPage, TodoResponse, TodoUpdatePayload
from todokeeper.models.user import utcnow
from todokeeper.repositories import TodoRepository, UserRepository

# Fields that may not be cleared by sending null.
_NON_NULLABLE = ("title", "description", "scheduled", "completed")


class TodoHandler:
    """Handles the ``/todo`` and ``/todos`` routes. Every operation is scoped to the caller."""

    def __init__(self, todos: TodoRepository, users: UserRepository, logger=None):
        self.todos = todos
        self.users = users
        self.logger = logger or get_logger("handlers.todos")

    async def _owner_id(self, request: Request) -> str:
        try:
            user = await self.users.get_by_email(request.state.email)
        except NotFoundError:
            raise AuthError(AuthErrorKind.INVALID_USER)
        return user.id

    async def create(self, request: Request, payload: TodoCreatePayload) -> TodoResponse:
        owner_id = await self._owner_id(request)
        todo = Todo(
            id=None,
            title=require_text(payload.title, "title"),
            description=require_text(payload.description, "description"),
            user_id=owner_id,
            scheduled=payload.scheduled,
            scheduled_to=payload.scheduled_to,
        )
        todo = await self.todos.create(todo)
        self.logger.debug("Todo created", todo_id=todo.id, user_id=owner_id)
        return TodoResponse.from_todo(todo)

    async def get(self, request: Request, todo_id: str) -> TodoResponse:
        owner_id = await self._owner_id(request)
        return TodoResponse.from_todo(await self.todos.get(todo_id, owner_id))

    async def update(self, request: Request, todo_id: str, payload: TodoUpdatePayload) -> TodoResponse:
        """Apply a partial update.

        Only fields present in the body are written. Marking a todo completed stamps
        ``completed_at``; un-completing it clears the stamp.
        """
        owner_id = await self._owner_id(request)
        fields: Dict[str, Any] = payload.model_dump(exclude_unset=True)
        for key in _NON_NULLABLE:
            if key in fields and fields[key] is None:
                del fields[key]

        if "title" in fields:
            fields["title"] = require_text(fields["title"], "title")
        if "description" in fields:
            fields["description"] = require_text(fields["description"], "description")
        if "completed" in fields:
            fields["completed_at"] = utcnow() if fields["completed"] else None

        todo = await self.todos.update(todo_id, owner_id, fields)
        return TodoResponse.from_todo(todo)

    async def delete(self, request: Request, todo_id: str) -> MessageResponse:
        owner_id = await self._owner_id(request)
        await self.todos.delete(todo_id, owner_id)
        self.logger.debug("Todo deleted", todo_id=todo_id, user_id=owner_id)
        return MessageResponse(message="Todo deleted successfully")

    async def list(
        self,
        request: Request,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
        search: Optional[str] = None,
    ) -> TodoPage:
        """List the caller's todos, newest first.

        ``limit`` and ``offset`` are read leniently: anything unusable falls back to the default
        page rather than failing the request. ``search`` is matched as given, whitespace included.
        """
        owner_id = await self._owner_id(request)
        page_limit, page_offset = parse_pagination(limit, offset)
        items, total = await self.todos.list(owner_id, page_limit, page_offset, search or None)
        return TodoPage(
            data=[TodoResponse.from_todo(todo) for todo in items],
            total=total,
            count=len(items),
            limit=page_limit,
            offset=page_offset,
            total_pages=math.ceil(total / page_limit),
        )
