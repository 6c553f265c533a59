from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    id: Optional[str]
    name: str
    email: str
    hashed_password: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    removed: bool = False
    removed_at: Optional[datetime] = None

    def to_mongo_dict(self) -> Dict[str, Any]:
        """Convert to a MongoDB document (``id`` is left to ``_id``)."""
        return {
            "name": self.name,
            "email": self.email,
            "hashed_password": self.hashed_password,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "removed": self.removed,
            "removed_at": self.removed_at,
        }

    @classmethod
    def from_mongo_dict(cls, doc: Dict[str, Any]) -> "User":
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            email=doc["email"],
            hashed_password=doc.get("hashed_password", ""),
            created_at=doc.get("created_at") or utcnow(),
            updated_at=doc.get("updated_at") or utcnow(),
            removed=doc.get("removed", False),
            removed_at=doc.get("removed_at"),
        )


class RegisterPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(default=None, alias="confirmPassword")


class LoginPayload(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserUpdatePayload(BaseModel):
    """Only the display name is mutable; other fields in the body are ignored."""

    name: Optional[str] = None


class UserResponse(BaseModel):
    """Public projection of a user. Never carries the password hash."""

    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email)
