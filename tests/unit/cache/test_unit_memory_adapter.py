# tests/unit/cache/test_unit_memory_adapter.py
"""Tests for cache/memory_adapter.py."""

from __future__ import annotations

import pytest

from lmsync.cache.memory_adapter import MemoryCacheAdapter


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestMemoryCacheAdapter:
    @pytest.mark.asyncio
    async def test_set_get(self):
        adapter = MemoryCacheAdapter()
        await adapter.set("activity:abc", "<p>x</p>")
        assert await adapter.get("activity:abc") == "<p>x</p>"
        assert await adapter.has("activity:abc")

    @pytest.mark.asyncio
    async def test_miss(self):
        adapter = MemoryCacheAdapter()
        assert await adapter.get("nope") is None
        assert not await adapter.has("nope")

    @pytest.mark.asyncio
    async def test_overwrite(self):
        adapter = MemoryCacheAdapter()
        await adapter.set("k", "v1")
        await adapter.set("k", "v2")
        assert await adapter.get("k") == "v2"
        assert len(adapter) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self):
        adapter = MemoryCacheAdapter()
        await adapter.delete("missing")
        assert len(adapter) == 0

    @pytest.mark.asyncio
    async def test_clear_all(self):
        adapter = MemoryCacheAdapter()
        await adapter.set("activity:a", "1")
        await adapter.set("course:1", "{}")
        await adapter.clear()
        assert len(adapter) == 0

    @pytest.mark.asyncio
    async def test_clear_prefix(self):
        adapter = MemoryCacheAdapter()
        await adapter.set("activity:a", "1")
        await adapter.set("activity:b", "2")
        await adapter.set("course:1", "{}")
        await adapter.clear("activity:")
        assert not await adapter.has("activity:a")
        assert not await adapter.has("activity:b")
        assert await adapter.has("course:1")

    @pytest.mark.asyncio
    async def test_keys_with_prefix(self):
        adapter = MemoryCacheAdapter()
        await adapter.set("activity:a", "1")
        await adapter.set("course:7", "{}")
        assert await adapter.keys("course:") == ["course:7"]
        assert sorted(await adapter.keys()) == ["activity:a", "course:7"]


class TestMemoryTTL:
    @pytest.mark.asyncio
    async def test_entry_expires(self):
        clock = FakeClock()
        adapter = MemoryCacheAdapter(ttl_seconds=10, clock=clock)
        await adapter.set("k", "v")
        clock.now = 9.9
        assert await adapter.get("k") == "v"
        clock.now = 10.0
        assert await adapter.get("k") is None
        assert not await adapter.has("k")
        assert len(adapter) == 0

    @pytest.mark.asyncio
    async def test_expired_entries_hidden_from_keys(self):
        clock = FakeClock()
        adapter = MemoryCacheAdapter(ttl_seconds=5, clock=clock)
        await adapter.set("old", "v")
        clock.now = 3
        await adapter.set("new", "v")
        clock.now = 6
        assert await adapter.keys() == ["new"]

    @pytest.mark.asyncio
    async def test_rewrite_extends_lifetime(self):
        clock = FakeClock()
        adapter = MemoryCacheAdapter(ttl_seconds=5, clock=clock)
        await adapter.set("k", "v1")
        clock.now = 4
        await adapter.set("k", "v2")
        clock.now = 8
        assert await adapter.get("k") == "v2"
