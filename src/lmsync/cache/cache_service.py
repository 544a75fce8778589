# src/lmsync/cache/cache_service.py
"""Domain-level facade over a cache adapter.

The CacheService owns key derivation (fingerprints, prefixes) and is the
only component that writes cache keys. Every method is a coroutine; adapter
failures are logged and degrade to a miss or a no-op so they never reach the
orchestrator or the UI.
"""

from __future__ import annotations

import logging
import time

from pydantic import ValidationError

from lmsync.cache.base_cache_adapter import BaseCacheAdapter
from lmsync.cache.fingerprint import (
    ACTIVITY_PREFIX,
    CANCEL_FLAG_KEY,
    COURSE_PREFIX,
    activity_key,
    compute_fingerprint,
    course_key,
)
from lmsync.core.models import ActionStatus, CourseStructure

logger = logging.getLogger(__name__)


class CacheService:
    """Typed cache operations for activity content and course structures.

    Args:
        adapter: Storage backend chosen at process start.
    """

    def __init__(self, adapter: BaseCacheAdapter) -> None:
        self._adapter = adapter

    @property
    def adapter(self) -> BaseCacheAdapter:
        return self._adapter

    @staticmethod
    def fingerprint(locator: str) -> str:
        """Stable content fingerprint for a locator."""
        return compute_fingerprint(locator)

    # ------------------------------------------------------------------
    # Activity content
    # ------------------------------------------------------------------

    async def save_activity_content(self, locator: str, html: str) -> bool:
        """Store cleaned HTML for a locator. Returns False on I/O failure."""
        try:
            await self._adapter.set(activity_key(locator), html)
            return True
        except Exception as e:
            logger.warning("Failed to save activity %s: %s", locator, e)
            return False

    async def get_activity_content(self, locator: str) -> str | None:
        """Return cached HTML for a locator, or None on miss or failure."""
        try:
            return await self._adapter.get(activity_key(locator))
        except Exception as e:
            logger.warning("Failed to read activity %s: %s", locator, e)
            return None

    async def is_activity_cached(self, locator: str) -> bool:
        try:
            return await self._adapter.has(activity_key(locator))
        except Exception as e:
            logger.warning("Failed to check activity %s: %s", locator, e)
            return False

    async def delete_activity_content(self, locator: str) -> None:
        try:
            await self._adapter.delete(activity_key(locator))
        except Exception as e:
            logger.warning("Failed to delete activity %s: %s", locator, e)

    # ------------------------------------------------------------------
    # Course structure
    # ------------------------------------------------------------------

    async def save_course_structure(
        self, course_id: int, snapshot: CourseStructure
    ) -> bool:
        """Replace the cached snapshot for a course wholesale."""
        try:
            await self._adapter.set(
                course_key(course_id), snapshot.model_dump_json(indent=2)
            )
            return True
        except Exception as e:
            logger.warning("Failed to save course structure %s: %s", course_id, e)
            return False

    async def get_course_structure(self, course_id: int) -> CourseStructure | None:
        try:
            raw = await self._adapter.get(course_key(course_id))
        except Exception as e:
            logger.warning("Failed to read course structure %s: %s", course_id, e)
            return None
        if raw is None:
            return None
        try:
            return CourseStructure.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable course structure %s: %s", course_id, e)
            return None

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    async def clear_all(self) -> ActionStatus:
        """Clear every cached activity, course and marker."""
        logger.info("Clearing server cache")
        try:
            await self._adapter.clear()
        except Exception as e:
            logger.error("Failed to clear cache: %s", e)
            return ActionStatus(success=False, message="Failed to clear cache")
        return ActionStatus(success=True, message="Cache cleared successfully")

    async def clear_activities(self) -> ActionStatus:
        try:
            await self._adapter.clear(ACTIVITY_PREFIX)
        except Exception as e:
            logger.error("Failed to clear activities: %s", e)
            return ActionStatus(success=False, message="Failed to clear activities")
        return ActionStatus(success=True, message="Activity cache cleared")

    async def clear_course(self, course_id: int) -> ActionStatus:
        try:
            await self._adapter.delete(course_key(course_id))
        except Exception as e:
            logger.error("Failed to clear course %s: %s", course_id, e)
            return ActionStatus(success=False, message="Failed to clear cache")
        return ActionStatus(success=True, message="Course cache cleared")

    async def cached_course_ids(self) -> list[str]:
        try:
            keys = await self._adapter.keys(COURSE_PREFIX)
        except Exception as e:
            logger.warning("Failed to list cached courses: %s", e)
            return []
        return [k[len(COURSE_PREFIX):] for k in keys]

    # ------------------------------------------------------------------
    # Process-wide cancellation marker
    # ------------------------------------------------------------------

    async def set_cancel_flag(self) -> None:
        try:
            await self._adapter.set(CANCEL_FLAG_KEY, str(int(time.time() * 1000)))
        except Exception as e:
            logger.error("Failed to set cancel flag: %s", e)

    async def check_cancel_flag(self) -> bool:
        try:
            return await self._adapter.has(CANCEL_FLAG_KEY)
        except Exception as e:
            logger.warning("Failed to check cancel flag: %s", e)
            return False

    async def clear_cancel_flag(self) -> None:
        try:
            await self._adapter.delete(CANCEL_FLAG_KEY)
        except Exception as e:
            logger.warning("Failed to clear cancel flag: %s", e)
