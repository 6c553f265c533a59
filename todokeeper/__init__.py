"""todokeeper: a todo CRUD REST API with JWT sessions backed by MongoDB."""

from todokeeper.core.settings import TodoKeeperSettings, get_settings
from todokeeper.db import TodoKeeperDB
from todokeeper.todokeeper import TodoKeeperService

__all__ = ["TodoKeeperDB", "TodoKeeperService", "TodoKeeperSettings", "get_settings"]
