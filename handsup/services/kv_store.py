# handsup/services/kv_store.py
"""Flat key-value storage used to persist whole collections as one blob per key.

Two backends share the same async ``get``/``set`` API: a process-local dict
(development and tests) and Redis via ``redis.asyncio``.
"""
from typing import Dict, Optional, Protocol

import structlog
from redis.asyncio import Redis

logger = structlog.get_logger(__name__)


class PersistenceError(Exception):
    """Raised when the backing store cannot read or write a key."""


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, value: str) -> None: ...
    async def close(self) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.store: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str) -> None:
        self.store[key] = value

    async def close(self) -> None:
        pass


class RedisKeyValueStore:
    def __init__(self, url: Optional[str] = None, client: Optional[Redis] = None):
        if client is None:
            if not url:
                raise ValueError("REDIS_URL is not set in the environment")
            client = Redis.from_url(url, decode_responses=True)
        self._redis = client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(key)
        except Exception as e:
            logger.error("kv_get_error", key=key, error=str(e))
            raise PersistenceError(f"could not read {key}") from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(key, value)
        except Exception as e:
            logger.error("kv_set_error", key=key, error=str(e))
            raise PersistenceError(f"could not write {key}") from e

    async def close(self) -> None:
        await self._redis.aclose()
