# src/lmsync/sync/orchestrator.py
"""Synchronization orchestrator: cache-first batch fetching.

Given N locators, produce cleaned content for each:

  1. clear any stale process-wide cancellation marker
  2. split locators into cached (counted as success, no I/O) and uncached
  3. fetch + clean + cache uncached locators in fixed-size batches, every
     item of a batch concurrently, batches strictly one after another
  4. before each batch, stop if the job's token or the marker is set
  5. after each batch, emit a progress snapshot
  6. clear the marker and return final statistics

One item failing never aborts the job. Only cancellation or a missing
credential does, the latter before any batch starts.

Precondition: one job at a time per orchestrator. The process-wide marker
is shared state, so concurrent jobs would race on it; a second concurrent
sync_many() call is rejected.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Literal

from lmsync.content.cleaner import clean
from lmsync.content.rules import DEFAULT_RULES, CleaningRules
from lmsync.logging.context import (
    clear_context,
    set_batch_context,
    set_item_context,
    set_job_context,
)
from lmsync.origin.base_origin_client import OriginError
from lmsync.origin.retry import RetryPolicy, with_retry
from lmsync.sync.cancellation import CancellationToken
from lmsync.sync.models import (
    SyncedItem,
    SyncFailure,
    SyncProgress,
    SyncResult,
    SyncStats,
)
from lmsync.sync.progress import ProgressTracker

if TYPE_CHECKING:
    from lmsync.cache.cache_service import CacheService
    from lmsync.origin.base_origin_client import BaseOriginClient

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5

PurgePolicy = Literal["none", "job", "all"]
ProgressCallback = Callable[[SyncProgress], Any | Awaitable[Any]]


class SyncOrchestrator:
    """Fetch, clean and cache content for many locators.

    Args:
        cache: Server-side cache service.
        origin: LMS origin client.
        batch_size: Items fetched concurrently per batch.
        retry_policy: Backoff policy for origin fetches.
        rules: Cleaner rule table.
        clock: Monotonic clock used for throughput (injectable for tests).
    """

    def __init__(
        self,
        cache: CacheService,
        origin: BaseOriginClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_policy: RetryPolicy | None = None,
        rules: CleaningRules = DEFAULT_RULES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._cache = cache
        self._origin = origin
        self._batch_size = batch_size
        self._retry_policy = retry_policy or RetryPolicy()
        self._rules = rules
        self._clock = clock
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def fetch_one(self, locator: str, credential: str) -> str:
        """Fetch, clean and cache a single locator.

        Returns:
            The cleaned HTML.

        Raises:
            OriginError: If the origin returned no content.
            RetryExhausted: If transient failures outlasted the retry budget.
        """
        raw = await with_retry(
            self._origin.fetch_content,
            locator,
            credential,
            policy=self._retry_policy,
            label=locator,
        )
        if not raw:
            raise OriginError("No HTML content available for this activity")

        cleaned = clean(raw, self._rules)
        await self._cache.save_activity_content(locator, cleaned)
        return cleaned

    async def sync_many(
        self,
        locators: Iterable[str],
        credential: str | None,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
        purge_on_cancel: PurgePolicy = "none",
    ) -> SyncResult:
        """Resolve every locator through the cache or the origin.

        Args:
            locators: Content locators to synchronize.
            credential: Origin credential. Missing means nothing is attempted.
            on_progress: Called (or awaited) with a snapshot after each batch.
            cancel_token: Caller-held token checked before every batch.
            purge_on_cancel: What to drop from the cache when cancelled:
                "none" keeps everything, "job" removes entries written by
                this job, "all" clears the whole cache.

        Returns:
            SyncResult; cancelled results carry partial statistics.
        """
        locators = list(locators)
        if not credential:
            logger.error("Sync refused: no credential")
            return SyncResult(success=False, error="Not authenticated")
        if self._running:
            raise RuntimeError("A sync job is already running on this orchestrator")

        self._running = True
        job_id = uuid.uuid4().hex[:8]
        set_job_context(job_id)
        token = cancel_token or CancellationToken()
        try:
            return await self._run(
                locators, credential, on_progress, token, purge_on_cancel
            )
        except Exception:
            logger.exception("Sync job %s failed", job_id)
            return SyncResult(success=False, error="Sync failed")
        finally:
            await self._cache.clear_cancel_flag()
            self._running = False
            clear_context()

    async def _run(
        self,
        locators: list[str],
        credential: str,
        on_progress: ProgressCallback | None,
        token: CancellationToken,
        purge_on_cancel: PurgePolicy,
    ) -> SyncResult:
        await self._cache.clear_cancel_flag()

        cached_flags = await asyncio.gather(
            *(self._cache.is_activity_cached(locator) for locator in locators)
        )
        uncached = [loc for loc, hit in zip(locators, cached_flags) if not hit]
        cached_count = len(locators) - len(uncached)
        logger.info(
            "Starting sync: %d locators, %d already cached, %d to fetch",
            len(locators), cached_count, len(uncached),
        )

        tracker = ProgressTracker(len(locators), clock=self._clock)
        tracker.start(cached_count)
        items: list[SyncedItem] = []
        failures: list[SyncFailure] = []

        batches = [
            uncached[i : i + self._batch_size]
            for i in range(0, len(uncached), self._batch_size)
        ]

        for index, batch in enumerate(batches, start=1):
            if token.cancelled or await self._cache.check_cancel_flag():
                logger.info(
                    "Sync cancelled before batch %d/%d", index, len(batches)
                )
                await self._purge(purge_on_cancel, items)
                return SyncResult(
                    success=False,
                    cancelled=True,
                    error=token.reason or "Cancelled by user",
                    stats=_stats(cached_count, items, failures),
                    items=tuple(items),
                    failures=tuple(failures),
                )

            set_batch_context(f"{index}/{len(batches)}")
            logger.info("Processing batch %d/%d (%d items)", index, len(batches), len(batch))
            outcomes = await asyncio.gather(
                *(self._sync_item(locator, credential) for locator in batch)
            )
            for outcome in outcomes:
                if isinstance(outcome, SyncedItem):
                    items.append(outcome)
                else:
                    failures.append(outcome)

            completed = cached_count + len(items) + len(failures)
            await _emit(on_progress, tracker.snapshot(completed))

        set_batch_context(None)
        logger.info(
            "Sync complete: %d fetched, %d failed, %d cached",
            len(items), len(failures), cached_count,
        )
        await _emit(on_progress, tracker.complete())
        return SyncResult(
            success=True,
            stats=_stats(cached_count, items, failures),
            items=tuple(items),
            failures=tuple(failures),
        )

    async def _sync_item(
        self, locator: str, credential: str
    ) -> SyncedItem | SyncFailure:
        set_item_context(locator)
        try:
            content = await self.fetch_one(locator, credential)
        except Exception as e:
            logger.warning("Failed to sync %s: %s", locator, e)
            return SyncFailure(locator=locator, error=str(e) or type(e).__name__)
        return SyncedItem(locator=locator, content=content)

    async def _purge(self, policy: PurgePolicy, items: list[SyncedItem]) -> None:
        if policy == "all":
            logger.info("Purging whole cache after cancellation")
            await self._cache.clear_all()
        elif policy == "job":
            logger.info("Purging %d entries written by the cancelled job", len(items))
            for item in items:
                await self._cache.delete_activity_content(item.locator)


def _stats(
    cached_count: int, items: list[SyncedItem], failures: list[SyncFailure]
) -> SyncStats:
    return SyncStats(
        total=cached_count + len(items) + len(failures),
        success=cached_count + len(items),
        failed=len(failures),
        cached=cached_count,
        fetched=len(items),
    )


async def _emit(callback: ProgressCallback | None, progress: SyncProgress) -> None:
    if callback is None:
        return
    try:
        result = callback(progress)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.warning("Progress callback failed", exc_info=True)
