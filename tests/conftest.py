# tests/conftest.py
"""Shared test fixtures for unit and integration tests.

Provides a scripted origin client that records every call, sample course
structures and ready-wired cache services. No network I/O.
"""

from __future__ import annotations

import asyncio

import pytest

from lmsync.cache.cache_service import CacheService
from lmsync.cache.memory_adapter import MemoryCacheAdapter
from lmsync.config.settings import Settings
from lmsync.core.models import Activity, CourseStructure, CourseSummary, Section
from lmsync.origin.base_origin_client import BaseOriginClient, OriginError
from lmsync.origin.retry import RetryPolicy

FAST_RETRY = RetryPolicy(max_retries=2, base_delay_s=0.0, jitter=False)


class FakeOriginClient(BaseOriginClient):
    """Scripted origin: serves `pages`, fails for `failures`, records calls.

    Args:
        pages: locator -> raw HTML. Unknown locators get a generated page.
        failures: locator -> exception raised on every fetch.
        on_fetch: Optional coroutine run inside each fetch (e.g. to cancel).
    """

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        failures: dict[str, Exception] | None = None,
        on_fetch=None,
    ) -> None:
        self.pages = pages or {}
        self.failures = failures or {}
        self.on_fetch = on_fetch
        self.fetch_calls: list[str] = []
        self.course_calls: list[int] = []
        self.courses: dict[int, CourseStructure] = {}

    async def fetch_content(self, locator: str, credential: str) -> str:
        self.fetch_calls.append(locator)
        if self.on_fetch is not None:
            await self.on_fetch(locator)
        await asyncio.sleep(0)
        if locator in self.failures:
            raise self.failures[locator]
        return self.pages.get(
            locator, f"<html><body><p>Content of {locator}</p><script>x()</script></body></html>"
        )

    async def list_course_structure(self, course_id: int, credential: str) -> CourseStructure:
        self.course_calls.append(course_id)
        if course_id not in self.courses:
            raise OriginError("Course not found", errorcode="invalidrecord")
        return self.courses[course_id]

    async def list_enrolled_courses(self, credential: str) -> list[CourseSummary]:
        return [
            CourseSummary(id=cid, fullname=c.title) for cid, c in sorted(self.courses.items())
        ]


def make_locators(n: int, prefix: str = "https://lms.example/mod/book/view.php?id=") -> list[str]:
    return [f"{prefix}{i}" for i in range(1, n + 1)]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        cache_backend="memory",
        sync_batch_size=4,
        retry_max_retries=2,
        retry_base_delay_s=0.0,
        retry_jitter=False,
        client_store_path=tmp_path / "client.db",
    )


@pytest.fixture
def memory_cache() -> CacheService:
    return CacheService(MemoryCacheAdapter())


@pytest.fixture
def origin() -> FakeOriginClient:
    return FakeOriginClient()


@pytest.fixture
def sample_course() -> CourseStructure:
    return CourseStructure(
        id=101,
        title="Introduction to Accounting",
        sections=[
            Section(
                id=1,
                name="Week 1",
                activities=[
                    Activity(id=11, name="Chapter 1", url="https://lms.example/mod/book/view.php?id=11", type="book"),
                    Activity(id=12, name="Quiz 1", url="https://lms.example/mod/quiz/view.php?id=12", type="quiz", completed=False),
                ],
            ),
            Section(
                id=2,
                name="Week 2",
                activities=[
                    Activity(id=21, name="Chapter 2", url="https://lms.example/mod/book/view.php?id=21", type="book", completed=True),
                ],
            ),
        ],
    )


@pytest.fixture
def fake_origin_cls() -> type[FakeOriginClient]:
    return FakeOriginClient


@pytest.fixture
def locators_for():
    return make_locators


@pytest.fixture
def fast_retry() -> RetryPolicy:
    return FAST_RETRY
