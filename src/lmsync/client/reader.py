# src/lmsync/client/reader.py
"""Reader-side coordinator over the client store and the server facade.

Reads consult the client store first, fall back to the server, and persist
whatever the server returns. Bulk prefetch asks the server orchestrator to
resolve many items at once and stores each result locally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from lmsync.api.models import ContentResult
from lmsync.client.prefetch import DEFAULT_PREFETCH_DELAY_S, HoverPrefetcher
from lmsync.core.models import ActionStatus, CourseStructure
from lmsync.sync.models import SyncResult

if TYPE_CHECKING:
    from lmsync.api.facade import ContentService
    from lmsync.client.store import ClientStore
    from lmsync.sync.orchestrator import ProgressCallback

logger = logging.getLogger(__name__)


class ClientReader:
    """Client-side entry point for reading and prefetching content.

    Args:
        store: Durable client store.
        service: Server facade.
        credential: Origin credential held by the client session.
        prefetch_delay_s: Hover debounce delay.
    """

    def __init__(
        self,
        store: ClientStore,
        service: ContentService,
        credential: str | None,
        prefetch_delay_s: float = DEFAULT_PREFETCH_DELAY_S,
    ) -> None:
        self._store = store
        self._service = service
        self._credential = credential
        self.prefetcher = HoverPrefetcher(self.read, delay_s=prefetch_delay_s)

    async def read(self, locator: str) -> ContentResult:
        """Return content for a locator, client store first."""
        stored = await self._store.get_activity(locator)
        if stored is not None:
            logger.debug("Client store hit: %s", locator)
            return ContentResult(success=True, content=stored, source="cache")

        result = await self._service.get_or_fetch(locator, self._credential)
        if result.success and result.content is not None:
            await self._store.save_activity(locator, result.content)
        return result

    async def read_course(
        self, course_id: int, refresh: bool = False
    ) -> CourseStructure | None:
        """Return a course snapshot, client store first unless refresh is set."""
        if not refresh:
            stored = await self._store.get_course(course_id)
            if stored is not None:
                return stored

        snapshot = await self._service.get_course_structure(
            course_id, self._credential, refresh=refresh
        )
        if snapshot is not None:
            await self._store.save_course(course_id, snapshot)
        return snapshot

    async def bulk_prefetch(
        self,
        locators: Iterable[str],
        on_progress: ProgressCallback | None = None,
    ) -> SyncResult:
        """Resolve every locator missing from the client store via the server.

        Items the server already had cached are read back through the
        facade so the client store ends up holding all of them.
        """
        locators = list(locators)
        missing = [loc for loc in locators if not await self._store.has_activity(loc)]
        if not missing:
            logger.info("All %d items already in client store", len(locators))
            return SyncResult(success=True)

        result = await self._service.sync_many(missing, self._credential, on_progress)

        fetched = set()
        for item in result.items:
            await self._store.save_activity(item.locator, item.content)
            fetched.add(item.locator)

        if result.success:
            failed = {failure.locator for failure in result.failures}
            for locator in missing:
                if locator in fetched or locator in failed:
                    continue
                content = await self._service.cache.get_activity_content(locator)
                if content is not None:
                    await self._store.save_activity(locator, content)

        logger.info(
            "Prefetch stored %d fetched items (of %d requested)",
            len(fetched), len(missing),
        )
        return result

    async def clear(self) -> ActionStatus:
        """Clear the client store and the server cache."""
        store_cleared = await self._store.clear()
        status = await self._service.clear_cache()
        if not store_cleared:
            return ActionStatus(success=False, message="Failed to clear client store")
        return status
