# src/lmsync/cache/adapter_factory.py
"""Factory for cache adapter instantiation.

Selection happens once per process from Settings.cache_backend.
"""

from __future__ import annotations

from lmsync.cache.base_cache_adapter import BaseCacheAdapter
from lmsync.config.settings import Settings


def create_cache_adapter(settings: Settings | None = None) -> BaseCacheAdapter:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseCacheAdapter implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from lmsync.cache.memory_adapter import MemoryCacheAdapter
        ttl = None if settings is None else settings.cache_ttl_seconds
        return MemoryCacheAdapter(ttl_seconds=ttl)

    if backend == "directory":
        from lmsync.cache.directory_adapter import DirectoryCacheAdapter
        return DirectoryCacheAdapter(cache_root=settings.cache_root)

    if backend == "redis":
        from lmsync.cache.redis_adapter import RedisCacheAdapter
        if not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheAdapter(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
