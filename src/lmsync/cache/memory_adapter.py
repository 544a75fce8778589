# src/lmsync/cache/memory_adapter.py
"""In-process memory cache adapter (CACHE_BACKEND=memory).

Ephemeral store for short-lived or stateless processes. Supports an
optional per-entry time-to-live; expired entries behave as absent and are
evicted when next touched.
"""

from __future__ import annotations

import time
from typing import Callable

from lmsync.cache.base_cache_adapter import BaseCacheAdapter


class MemoryCacheAdapter(BaseCacheAdapter):
    """Dictionary-backed cache adapter."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, tuple[str, float | None]] = {}
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    async def get(self, key: str) -> str | None:
        entry = self._live_entry(key)
        return None if entry is None else entry[0]

    async def set(self, key: str, value: str) -> None:
        expires_at = None
        if self._ttl_seconds is not None:
            expires_at = self._clock() + self._ttl_seconds
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def clear(self, prefix: str | None = None) -> None:
        if not prefix:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    async def keys(self, prefix: str | None = None) -> list[str]:
        return [
            key
            for key in list(self._entries)
            if (not prefix or key.startswith(prefix))
            and self._live_entry(key) is not None
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def _live_entry(self, key: str) -> tuple[str, float | None] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return entry
