# src/lmsync/cache/base_cache_adapter.py
"""Abstract cache adapter interface.

Adapters are plain string key/value stores with prefix-scoped clearing.
Looking up an absent key is never an error; only genuine I/O failures
raise, and the CacheService turns those into misses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseCacheAdapter(ABC):
    """Unified interface for server-side cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under key, or None when absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is a no-op."""

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Return True if key currently maps to a value."""

    @abstractmethod
    async def clear(self, prefix: str | None = None) -> None:
        """Remove all keys starting with prefix, or everything if None."""

    @abstractmethod
    async def keys(self, prefix: str | None = None) -> list[str]:
        """List stored keys, optionally restricted to a prefix."""
