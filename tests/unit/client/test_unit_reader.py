# tests/unit/client/test_unit_reader.py
"""Tests for client/reader.py."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock

import pytest

from lmsync.api.facade import ContentService
from lmsync.client.reader import ClientReader
from lmsync.client.store import ClientStore
from lmsync.origin.base_origin_client import OriginError

TOKEN = "secret-token"
URL = "https://lms.example/mod/book/view.php?id=1"


@pytest.fixture
def store():
    s = ClientStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def service(memory_cache, origin, settings):
    return ContentService(memory_cache, origin, settings=settings)


@pytest.fixture
def reader(store, service):
    return ClientReader(store, service, TOKEN, prefetch_delay_s=0.0)


def _lock(store: ClientStore) -> None:
    store._conn.close()
    conn = MagicMock()
    conn.execute.side_effect = sqlite3.OperationalError("database is locked")
    store._conn = conn


class TestRead:
    @pytest.mark.asyncio
    async def test_fetch_persists_to_store(self, reader, store, origin):
        result = await reader.read(URL)
        assert result.success
        assert result.source == "origin"
        assert await store.get_activity(URL) == result.content

        again = await reader.read(URL)
        assert again.source == "cache"
        assert origin.fetch_calls == [URL]

    @pytest.mark.asyncio
    async def test_failure_not_stored(self, store, memory_cache, fake_origin_cls, settings):
        origin = fake_origin_cls(failures={URL: OriginError("gone", errorcode="invalidrecord")})
        reader = ClientReader(store, ContentService(memory_cache, origin, settings=settings), TOKEN)
        result = await reader.read(URL)
        assert not result.success
        assert not await store.has_activity(URL)

    @pytest.mark.asyncio
    async def test_hover_prefetch_fills_store(self, reader, store):
        task = reader.prefetcher.on_enter(URL)
        await task
        assert await store.has_activity(URL)

    @pytest.mark.asyncio
    async def test_locked_store_falls_back_to_server(self, reader, store, origin):
        _lock(store)
        result = await reader.read(URL)
        assert result.success
        assert result.source == "origin"
        assert result.content
        assert origin.fetch_calls == [URL]


class TestReadCourse:
    @pytest.mark.asyncio
    async def test_store_first(self, reader, store, origin, sample_course):
        origin.courses[101] = sample_course
        assert await reader.read_course(101) == sample_course
        assert await store.get_course(101) == sample_course
        origin.courses.clear()
        assert await reader.read_course(101) == sample_course
        assert origin.course_calls == [101]

    @pytest.mark.asyncio
    async def test_missing_course(self, reader):
        assert await reader.read_course(5) is None

    @pytest.mark.asyncio
    async def test_locked_store_falls_back_to_server(self, reader, store, origin, sample_course):
        origin.courses[101] = sample_course
        _lock(store)
        assert await reader.read_course(101) == sample_course
        assert origin.course_calls == [101]


class TestBulkPrefetch:
    @pytest.mark.asyncio
    async def test_stores_fetched_and_server_cached(self, reader, store, memory_cache, origin, locators_for):
        locators = locators_for(6)
        await memory_cache.save_activity_content(locators[0], "<p>server copy</p>")
        await store.save_activity(locators[1], "<p>client copy</p>")

        result = await reader.bulk_prefetch(locators)

        assert result.success
        assert result.stats.total == 5
        assert result.stats.cached == 1
        assert origin.fetch_calls == locators[2:]
        assert await store.count_activities() == 6
        assert await store.get_activity(locators[0]) == "<p>server copy</p>"
        assert await store.get_activity(locators[1]) == "<p>client copy</p>"

    @pytest.mark.asyncio
    async def test_nothing_missing(self, reader, store, origin):
        await store.save_activity(URL, "x")
        result = await reader.bulk_prefetch([URL])
        assert result.success
        assert result.stats.total == 0
        assert origin.fetch_calls == []

    @pytest.mark.asyncio
    async def test_failed_items_not_stored(self, store, memory_cache, fake_origin_cls, settings, locators_for):
        locators = locators_for(3)
        origin = fake_origin_cls(failures={locators[1]: OriginError("gone", errorcode="invalidrecord")})
        reader = ClientReader(store, ContentService(memory_cache, origin, settings=settings), TOKEN)
        result = await reader.bulk_prefetch(locators)
        assert result.stats.failed == 1
        assert not await store.has_activity(locators[1])
        assert await store.count_activities() == 2

    @pytest.mark.asyncio
    async def test_progress_forwarded(self, reader, locators_for):
        progress = []
        await reader.bulk_prefetch(locators_for(5), on_progress=progress.append)
        assert [p.current for p in progress] == [4, 5, 5]

    @pytest.mark.asyncio
    async def test_locked_store(self, reader, store, origin, locators_for):
        locators = locators_for(3)
        _lock(store)
        result = await reader.bulk_prefetch(locators)
        assert result.success
        assert origin.fetch_calls == locators


class TestClear:
    @pytest.mark.asyncio
    async def test_clears_both_tiers(self, reader, store, memory_cache):
        await reader.read(URL)
        status = await reader.clear()
        assert status.success
        assert await store.count_activities() == 0
        assert not await memory_cache.is_activity_cached(URL)

    @pytest.mark.asyncio
    async def test_locked_store(self, reader, store, memory_cache):
        await reader.read(URL)
        _lock(store)
        status = await reader.clear()
        assert not status.success
        assert not await memory_cache.is_activity_cached(URL)
