from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from todokeeper.core.logger import get_logger
from todokeeper.db import TodoKeeperDB


class HealthHandler:
    """Liveness (``GET /``) and database health (``GET /health``)."""

    def __init__(self, db: Optional[TodoKeeperDB], logger=None):
        self.db = db
        self.logger = logger or get_logger("handlers.health")

    async def root(self) -> dict:
        return {"message": "Hello World"}

    async def health(self) -> JSONResponse:
        if self.db is None:
            return JSONResponse({"status": "up", "database": "disabled"})

        try:
            await self.db.ping()
        except PyMongoError as e:
            self.logger.warning("Database health check failed", error=str(e))
            return JSONResponse(
                {"status": "down", "database": "unreachable", "error": str(e)},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return JSONResponse({"status": "up", "database": "up"})
