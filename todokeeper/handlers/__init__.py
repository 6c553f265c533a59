from .health import HealthHandler
from .todos import TodoHandler
from .users import UserHandler

__all__ = ["HealthHandler", "TodoHandler", "UserHandler"]
