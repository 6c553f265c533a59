from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .user import utcnow


@dataclass
class Todo:
    id: Optional[str]
    title: str
    description: str
    user_id: str
    scheduled: bool = False
    scheduled_to: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_mongo_dict(self) -> Dict[str, Any]:
        """Convert to a MongoDB document. ``user_id`` is converted to ObjectId by the repository."""
        return {
            "title": self.title,
            "description": self.description,
            "scheduled": self.scheduled,
            "scheduled_to": self.scheduled_to,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "user_id": self.user_id,
        }

    @classmethod
    def from_mongo_dict(cls, doc: Dict[str, Any]) -> "Todo":
        return cls(
            id=str(doc["_id"]),
            title=doc.get("title", ""),
            description=doc.get("description", ""),
            user_id=str(doc["user_id"]),
            scheduled=doc.get("scheduled", False),
            scheduled_to=doc.get("scheduled_to"),
            completed=doc.get("completed", False),
            completed_at=doc.get("completed_at"),
            created_at=doc.get("created_at") or utcnow(),
            updated_at=doc.get("updated_at") or utcnow(),
        )


class TodoCreatePayload(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled: bool = False
    scheduled_to: Optional[datetime] = None


class TodoUpdatePayload(BaseModel):
    """Partial update; fields left out of the body are not touched."""

    title: Optional[str] = None
    description: Optional[str] = None
    scheduled: Optional[bool] = None
    scheduled_to: Optional[datetime] = None
    completed: Optional[bool] = None


class TodoResponse(BaseModel):
    id: str
    title: str
    description: str
    scheduled: bool
    scheduled_to: Optional[datetime] = None
    completed: bool
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    user_id: str

    @classmethod
    def from_todo(cls, todo: Todo) -> "TodoResponse":
        return cls(
            id=todo.id,
            title=todo.title,
            description=todo.description,
            scheduled=todo.scheduled,
            scheduled_to=todo.scheduled_to,
            completed=todo.completed,
            completed_at=todo.completed_at,
            created_at=todo.created_at,
            updated_at=todo.updated_at,
            user_id=todo.user_id,
        )


class TodoPage(BaseModel):
    """One page of todos.

    ``total`` counts every matching todo, ``count`` only the ones in ``data``.
    """

    data: List[TodoResponse]
    total: int
    count: int
    limit: int
    offset: int
    total_pages: int = Field(..., serialization_alias="totalPages")
