"""Async MongoDB wrapper for the todokeeper service.

Provides a clean interface for MongoDB connections with proper resource management.
Uses motor (async pymongo driver) directly.
"""

from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase


class TodoKeeperDB:
    """Async MongoDB wrapper with proper resource management.

    A thin wrapper around motor that handles connection lifecycle. Every operation issued
    through the client is bounded by ``timeout_ms``; a slow or unreachable server surfaces
    as a pymongo error instead of blocking the request.

    Example:
        ```python
        async with TodoKeeperDB(uri="mongodb://localhost:27017", db_name="todokeeper") as db:
            users = db.collection("users")
            await users.insert_one({"name": "Alice"})
        ```
    """

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        db_name: str = "todokeeper",
        timeout_ms: int = 5000,
    ):
        """Initialize with connection parameters. No connection made until connect()."""
        self._uri = uri
        self._db_name = db_name
        self._timeout_ms = timeout_ms
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    @property
    def client(self) -> Optional[AsyncIOMotorClient]:
        """The MongoDB client (None if not connected)."""
        return self._client

    @property
    def db(self) -> Optional[AsyncIOMotorDatabase]:
        """The database instance (None if not connected)."""
        return self._db

    @property
    def is_connected(self) -> bool:
        """Whether the database is connected."""
        return self._client is not None

    def connect(self) -> "TodoKeeperDB":
        """Create the motor client. Returns self for chaining.

        Motor connects lazily, so this never blocks; the first operation opens the pool.
        """
        if self._client is not None:
            return self
        self._client = AsyncIOMotorClient(
            self._uri,
            serverSelectionTimeoutMS=self._timeout_ms,
            timeoutMS=self._timeout_ms,
            tz_aware=True,
        )
        self._db = self._client[self._db_name]
        return self

    def collection(self, name: str) -> AsyncIOMotorCollection:
        """Get a collection by name, connecting on first use."""
        if self._db is None:
            self.connect()
        return self._db[name]

    async def ping(self) -> Dict[str, Any]:
        """Round-trip to the server. Raises a pymongo error when it is unreachable."""
        if self._db is None:
            self.connect()
        return await self._db.command("ping")

    async def disconnect(self) -> None:
        """Disconnect and cleanup."""
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None

    async def close(self) -> None:
        """Alias for disconnect()."""
        await self.disconnect()

    async def __aenter__(self) -> "TodoKeeperDB":
        self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
