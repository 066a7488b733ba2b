# This project was developed with assistance from AI tools.
"""Scratch storage for drafts and the assistant conversation cache.

A small async string key/value contract with an in-process backend (the
default) and a Redis backend for multi-process deployments. Callers treat
storage errors as best effort; see ``services.drafts``.
"""

import logging
from typing import Protocol

import redis.asyncio as aioredis

from ..core.config import settings

logger = logging.getLogger(__name__)


class ScratchStorage(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class InMemoryScratchStorage:
    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        self._data.clear()


class RedisScratchStorage:
    KEY_PREFIX = "relief:scratch:"

    def __init__(self, client: aioredis.Redis, ttl_seconds: int | None = None):
        self._client = client
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int | None = None) -> "RedisScratchStorage":
        client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, ttl_seconds)

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    async def get(self, key: str) -> str | None:
        return await self._client.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        if self._ttl:
            await self._client.setex(self._key(key), self._ttl, value)
        else:
            await self._client.set(self._key(key), value)

    async def remove(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def close(self) -> None:
        await self._client.aclose()


def build_scratch_storage(backend: str | None = None) -> InMemoryScratchStorage | RedisScratchStorage:
    backend = backend or settings.SCRATCH_BACKEND
    if backend == "redis":
        logger.info("Scratch storage: redis at %s", settings.REDIS_URL)
        return RedisScratchStorage.from_url(settings.REDIS_URL, settings.SCRATCH_TTL_SECONDS)
    logger.info("Scratch storage: in-memory")
    return InMemoryScratchStorage()
