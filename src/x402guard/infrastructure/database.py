"""Redis connection management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Protocol, Union

import redis.asyncio as redis


class HasDatabaseSettings(Protocol):
    database_url: str


class DatabaseClient:
    """Async Redis client holding one pooled connection per process."""

    def __init__(self, settings: HasDatabaseSettings):
        self.settings = settings
        self._redis: Optional[redis.Redis] = None

    def initialize_database(self) -> None:
        # Expecting URL like: redis://host:port/0
        self._redis = redis.from_url(self.settings.database_url, decode_responses=True)

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[redis.Redis, None]:
        if self._redis is None:
            self.initialize_database()
        assert self._redis is not None
        yield self._redis

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


_db_client: Union[DatabaseClient, None] = None


def get_database_client(settings: HasDatabaseSettings) -> DatabaseClient:
    """Get or create database client singleton."""
    global _db_client
    if _db_client is None:
        _db_client = DatabaseClient(settings)
    return _db_client
