import re
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from todokeeper.core.constants import TODOS_COLLECTION
from todokeeper.core.errors import NotFoundError
from todokeeper.db import TodoKeeperDB
from todokeeper.models.todo import Todo
from todokeeper.models.user import utcnow


def _object_id(value: str, what: str = "Todo") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(f"{what} not found")


class TodoRepository:
    """Todo store over the ``todos`` collection.

    Every read and write is scoped to the owning user: a todo belonging to someone else
    is reported as not found.
    """

    def __init__(self, db: TodoKeeperDB, collection_name: str = TODOS_COLLECTION) -> None:
        self._db = db
        self._collection_name = collection_name

    def _collection(self):
        return self._db.collection(self._collection_name)

    @staticmethod
    def _owned(todo_id: str, owner_id: str) -> Dict[str, Any]:
        return {"_id": _object_id(todo_id), "user_id": _object_id(owner_id, "User")}

    async def ensure_indexes(self) -> None:
        await self._collection().create_index(
            [("user_id", ASCENDING), ("created_at", DESCENDING)],
            name="user_created_at",
        )

    async def create(self, todo: Todo) -> Todo:
        data = todo.to_mongo_dict()
        data["user_id"] = _object_id(todo.user_id, "User")
        result = await self._collection().insert_one(data)
        todo.id = str(result.inserted_id)
        return todo

    async def get(self, todo_id: str, owner_id: str) -> Todo:
        doc = await self._collection().find_one(self._owned(todo_id, owner_id))
        if not doc:
            raise NotFoundError("Todo not found")
        return Todo.from_mongo_dict(doc)

    async def list(
        self,
        owner_id: str,
        limit: int,
        offset: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Todo], int]:
        """Return one page of the owner's todos (newest first) and the total match count.

        ``search`` is matched case-insensitively as a literal substring of title or description.
        """
        query: Dict[str, Any] = {"user_id": _object_id(owner_id, "User")}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"description": pattern}]

        cursor = self._collection().find(query).sort("created_at", DESCENDING).skip(offset).limit(limit)
        docs = await cursor.to_list(length=limit)
        total = await self._collection().count_documents(query)
        return [Todo.from_mongo_dict(doc) for doc in docs], total

    async def update(self, todo_id: str, owner_id: str, fields: Dict[str, Any]) -> Todo:
        changes = dict(fields)
        changes["updated_at"] = utcnow()
        doc = await self._collection().find_one_and_update(
            self._owned(todo_id, owner_id),
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("Todo not found")
        return Todo.from_mongo_dict(doc)

    async def delete(self, todo_id: str, owner_id: str) -> None:
        result = await self._collection().delete_one(self._owned(todo_id, owner_id))
        if result.deleted_count == 0:
            raise NotFoundError("Todo not found")
