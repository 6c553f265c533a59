from .common import MessageResponse
from .todo import Todo, TodoCreatePayload, TodoPage, TodoResponse, TodoUpdatePayload
from .user import LoginPayload, RegisterPayload, User, UserResponse, UserUpdatePayload

__all__ = [
    "MessageResponse",
    "Todo",
    "TodoCreatePayload",
    "TodoPage",
    "TodoResponse",
    "TodoUpdatePayload",
    "LoginPayload",
    "RegisterPayload",
    "User",
    "UserResponse",
    "UserUpdatePayload",
]
