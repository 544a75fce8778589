# src/lmsync/api/facade.py
"""Public API facade used by the presentation layer.

Usage:
    from lmsync.api.facade import build_service
    service = build_service(settings, origin_client)
    result = await service.get_or_fetch(url, token)

Nothing here raises into the caller: every operation returns a result or
status model.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from lmsync.api.models import ContentResult
from lmsync.cache.adapter_factory import create_cache_adapter
from lmsync.cache.cache_service import CacheService
from lmsync.config.settings import Settings
from lmsync.content.rules import DEFAULT_RULES, CleaningRules
from lmsync.core.models import ActionStatus, CourseStructure, CourseSummary
from lmsync.origin.retry import RetryPolicy, with_retry
from lmsync.sync.cancellation import CancellationToken
from lmsync.sync.models import SyncResult
from lmsync.sync.orchestrator import ProgressCallback, SyncOrchestrator

if TYPE_CHECKING:
    from lmsync.origin.base_origin_client import BaseOriginClient

logger = logging.getLogger(__name__)


class ContentService:
    """Cache-first access to cleaned LMS content.

    Args:
        cache: Server-side cache service.
        origin: LMS origin client.
        settings: Application settings. Loaded from .env if None.
        rules: Cleaner rule table.
    """

    def __init__(
        self,
        cache: CacheService,
        origin: BaseOriginClient,
        settings: Settings | None = None,
        rules: CleaningRules = DEFAULT_RULES,
    ) -> None:
        self._settings = settings or Settings()
        self._cache = cache
        self._origin = origin
        self._retry_policy = RetryPolicy.from_settings(self._settings)
        self._orchestrator = SyncOrchestrator(
            cache=cache,
            origin=origin,
            batch_size=self._settings.sync_batch_size,
            retry_policy=self._retry_policy,
            rules=rules,
        )
        self._active_token: CancellationToken | None = None

    @property
    def cache(self) -> CacheService:
        return self._cache

    async def get_or_fetch(self, locator: str, credential: str | None) -> ContentResult:
        """Return cleaned content, from cache when possible."""
        cached = await self._cache.get_activity_content(locator)
        if cached is not None:
            logger.debug("Cache hit for %s", locator)
            return ContentResult(success=True, content=cached, source="cache")

        if not credential:
            logger.error("No credential, cannot fetch %s", locator)
            return ContentResult(success=False, error="Not authenticated")

        logger.info("Fetching content for %s", locator)
        try:
            content = await self._orchestrator.fetch_one(locator, credential)
        except Exception as e:
            logger.error("Fetch failed for %s: %s", locator, e)
            return ContentResult(success=False, error="Failed to fetch content")
        return ContentResult(success=True, content=content, source="origin")

    async def sync_many(
        self,
        locators: Iterable[str],
        credential: str | None,
        on_progress: ProgressCallback | None = None,
    ) -> SyncResult:
        """Bulk-resolve locators; cancel() stops the job between batches."""
        if self._orchestrator.is_running:
            return SyncResult(success=False, error="A sync is already running")

        token = CancellationToken()
        self._active_token = token
        try:
            return await self._orchestrator.sync_many(
                locators,
                credential,
                on_progress=on_progress,
                cancel_token=token,
                purge_on_cancel=self._settings.sync_purge_on_cancel,
            )
        finally:
            if self._active_token is token:
                self._active_token = None

    async def cancel(self) -> ActionStatus:
        """Request cancellation of the running sync.

        Also sets the process-wide marker so a job driven by another process
        sharing a durable cache stops at its next batch boundary.
        """
        if self._active_token is not None:
            self._active_token.cancel()
        await self._cache.set_cancel_flag()
        logger.info("Sync cancellation requested")
        return ActionStatus(success=True, message="Sync cancellation requested")

    async def clear_cache(self) -> ActionStatus:
        return await self._cache.clear_all()

    async def is_cached(self, locator: str) -> bool:
        return await self._cache.is_activity_cached(locator)

    async def get_course_structure(
        self, course_id: int, credential: str | None, refresh: bool = False
    ) -> CourseStructure | None:
        """Return a course snapshot, cache-first unless refresh is set."""
        if not refresh:
            cached = await self._cache.get_course_structure(course_id)
            if cached is not None:
                return cached

        if not credential:
            logger.error("No credential, cannot load course %s", course_id)
            return None

        try:
            snapshot = await with_retry(
                self._origin.list_course_structure,
                course_id,
                credential,
                policy=self._retry_policy,
                label=f"course {course_id}",
            )
        except Exception as e:
            logger.error("Failed to load course %s: %s", course_id, e)
            return None

        await self._cache.save_course_structure(course_id, snapshot)
        return snapshot

    async def list_enrolled_courses(self, credential: str | None) -> list[CourseSummary]:
        if not credential:
            return []
        try:
            return await with_retry(
                self._origin.list_enrolled_courses,
                credential,
                policy=self._retry_policy,
                label="enrolled courses",
            )
        except Exception as e:
            logger.error("Failed to list enrolled courses: %s", e)
            return []


def build_service(
    settings: Settings,
    origin: BaseOriginClient,
    rules: CleaningRules = DEFAULT_RULES,
) -> ContentService:
    """Wire the configured adapter, cache service and facade together."""
    adapter = create_cache_adapter(settings)
    logger.info("Using %s cache backend", settings.cache_backend)
    return ContentService(
        cache=CacheService(adapter), origin=origin, settings=settings, rules=rules
    )
