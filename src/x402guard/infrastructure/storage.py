"""Storage abstractions and Redis implementation for repositories."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from redis.exceptions import NoScriptError

from .database import DatabaseClient


class KeyValueStore(ABC):
    """Abstract key-value store with minimal operations used by repositories."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def incrby(self, key: str, amount: int) -> int:
        pass

    @abstractmethod
    async def delete(self, key: str) -> int:
        pass

    @abstractmethod
    async def register_script(self, name: str, script: str) -> str:
        """Load a Lua script and remember it under ``name``. Returns its SHA1."""
        pass

    @abstractmethod
    async def run_script(self, name: str, keys: list[str], args: list[str]) -> Any:
        pass


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed implementation of KeyValueStore."""

    def __init__(self, db_client: DatabaseClient):
        self._db_client = db_client
        self._script_shas: dict[str, str] = {}
        self._script_sources: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        async with self._db_client.get_connection() as conn:
            return await conn.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._db_client.get_connection() as conn:
            await conn.set(key, value)

    async def incrby(self, key: str, amount: int) -> int:
        async with self._db_client.get_connection() as conn:
            return await conn.incrby(key, amount)

    async def delete(self, key: str) -> int:
        async with self._db_client.get_connection() as conn:
            return await conn.delete(key)

    async def register_script(self, name: str, script: str) -> str:
        async with self._db_client.get_connection() as conn:
            sha = await conn.script_load(script)
        self._script_shas[name] = sha
        self._script_sources[name] = script
        return sha

    async def run_script(self, name: str, keys: list[str], args: list[str]) -> Any:
        if name not in self._script_sources:
            raise ValueError(f"Script '{name}' not registered")
        async with self._db_client.get_connection() as conn:
            try:
                return await conn.evalsha(
                    self._script_shas[name], len(keys), *keys, *args
                )
            except NoScriptError:
                # Script cache was flushed (e.g. Redis restart); reload and retry once
                sha = await conn.script_load(self._script_sources[name])
                self._script_shas[name] = sha
                return await conn.evalsha(sha, len(keys), *keys, *args)
