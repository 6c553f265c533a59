"""Shared constants for todokeeper."""

import re
from typing import FrozenSet

# API documentation paths that bypass authentication. Public API routes are declared on
# the endpoints themselves (``add_endpoint(..., public=True)``).
AUTH_EXEMPT_PATHS: FrozenSet[str] = frozenset(
    {
        "/docs",
        "/redoc",
        "/openapi.json",
    }
)

AUTH_EXEMPT_PREFIXES: FrozenSet[str] = frozenset({"/docs/"})

# Registration rules
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
MIN_PASSWORD_LENGTH = 6

# Pagination settings
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_OFFSET = 0

# Collections
USERS_COLLECTION = "users"
TODOS_COLLECTION = "todos"
