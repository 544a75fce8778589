# src/lmsync/cache/redis_adapter.py
"""Redis-backed cache adapter (CACHE_BACKEND=redis).

Requires 'redis' package: pip install lmsync[redis].
Suitable for multi-instance deployments sharing one cache. Uses the
redis.asyncio client so cache I/O never blocks the event loop.
"""

from __future__ import annotations

import logging

from lmsync.cache.base_cache_adapter import BaseCacheAdapter

logger = logging.getLogger(__name__)

_KEY_PREFIX = "lmsync:cache:"
_INDEX_KEY = "lmsync:cache:__index__"


class RedisCacheAdapter(BaseCacheAdapter):
    """Redis cache adapter with an index set for prefix clears."""

    def __init__(self, redis_url: str) -> None:
        try:
            from redis import asyncio as aioredis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        # Connects lazily on the first command.
        self._client = aioredis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        return await self._client.get(f"{_KEY_PREFIX}{key}")

    async def set(self, key: str, value: str) -> None:
        await self._client.set(f"{_KEY_PREFIX}{key}", value)
        # Redis has no cheap prefix scan over our namespace; keep an index.
        await self._client.sadd(_INDEX_KEY, key)

    async def delete(self, key: str) -> None:
        await self._client.delete(f"{_KEY_PREFIX}{key}")
        await self._client.srem(_INDEX_KEY, key)

    async def has(self, key: str) -> bool:
        return bool(await self._client.exists(f"{_KEY_PREFIX}{key}"))

    async def clear(self, prefix: str | None = None) -> None:
        for key in await self.keys(prefix):
            await self.delete(key)

    async def keys(self, prefix: str | None = None) -> list[str]:
        members = await self._client.smembers(_INDEX_KEY)
        return sorted(k for k in members if not prefix or k.startswith(prefix))

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()
