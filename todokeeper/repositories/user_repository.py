from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from todokeeper.core.constants import USERS_COLLECTION
from todokeeper.core.errors import ConflictError, NotFoundError
from todokeeper.db import TodoKeeperDB
from todokeeper.models.user import User, utcnow

# Soft-deleted users are invisible to every lookup.
_ACTIVE = {"removed": {"$ne": True}}


class UserRepository:
    """Credential store over the ``users`` collection."""

    def __init__(self, db: TodoKeeperDB, collection_name: str = USERS_COLLECTION) -> None:
        self._db = db
        self._collection_name = collection_name

    def _collection(self):
        return self._db.collection(self._collection_name)

    async def ensure_indexes(self) -> None:
        """Unique email among users that are not soft-deleted."""
        await self._collection().create_index(
            [("email", ASCENDING)],
            name="email_unique_active",
            unique=True,
            partialFilterExpression={"removed": False},
        )

    async def create(self, user: User) -> User:
        """Insert a new user, refusing an email that an active user already holds."""
        existing = await self._collection().find_one({"email": user.email, **_ACTIVE})
        if existing:
            raise ConflictError(f"User with email '{user.email}' already exists")

        data = user.to_mongo_dict()
        try:
            result = await self._collection().insert_one(data)
        except DuplicateKeyError as e:
            # Lost a race against a concurrent registration.
            raise ConflictError(f"User with email '{user.email}' already exists") from e

        user.id = str(result.inserted_id)
        return user

    async def get_by_id(self, user_id: str) -> User:
        try:
            oid = ObjectId(user_id)
        except (InvalidId, TypeError):
            raise NotFoundError("User not found")

        doc = await self._collection().find_one({"_id": oid, **_ACTIVE})
        if not doc:
            raise NotFoundError("User not found")
        return User.from_mongo_dict(doc)

    async def get_by_email(self, email: str) -> User:
        doc = await self._collection().find_one({"email": email, **_ACTIVE})
        if not doc:
            raise NotFoundError("User not found")
        return User.from_mongo_dict(doc)

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            return await self.get_by_email(email)
        except NotFoundError:
            return None

    async def update(self, user: User) -> User:
        user.updated_at = utcnow()
        result = await self._collection().update_one(
            {"_id": ObjectId(user.id)},
            {"$set": user.to_mongo_dict()},
        )
        if result.matched_count == 0:
            raise NotFoundError("User not found")
        return user

    async def soft_delete(self, email: str) -> User:
        """Flag the user as removed. The document is kept."""
        user = await self.get_by_email(email)
        now = utcnow()
        user.removed = True
        user.removed_at = now
        return await self.update(user)
