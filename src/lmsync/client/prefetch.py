# src/lmsync/client/prefetch.py
"""Hover-triggered prefetch with debounce.

Pointer enter schedules a fetch after a short delay; leaving before the
delay elapses cancels it. Each locator is prefetched at most once per
session, whether or not the fetch succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_PREFETCH_DELAY_S = 0.2


class HoverPrefetcher:
    """Debounced, once-per-session prefetch scheduler.

    Args:
        fetch: Coroutine function resolving one locator.
        delay_s: Debounce delay before firing.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[object]],
        delay_s: float = DEFAULT_PREFETCH_DELAY_S,
    ) -> None:
        self._fetch = fetch
        self._delay_s = delay_s
        self._pending: dict[str, asyncio.Task[None]] = {}
        self._fired: set[str] = set()

    def on_enter(self, locator: str) -> asyncio.Task[None] | None:
        """Schedule a prefetch; no-op if already pending or fired."""
        if locator in self._fired or locator in self._pending:
            return None
        task = asyncio.get_running_loop().create_task(self._delayed(locator))
        self._pending[locator] = task
        return task

    def on_leave(self, locator: str) -> None:
        """Cancel a prefetch whose delay has not yet elapsed."""
        task = self._pending.get(locator)
        if task is not None and locator not in self._fired:
            task.cancel()
            self._pending.pop(locator, None)

    def has_fired(self, locator: str) -> bool:
        return locator in self._fired

    def reset(self) -> None:
        """Start a new session: cancel pending work and forget fired items."""
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
        self._fired.clear()

    async def _delayed(self, locator: str) -> None:
        try:
            await asyncio.sleep(self._delay_s)
        except asyncio.CancelledError:
            logger.debug("Prefetch cancelled before firing: %s", locator)
            raise

        self._fired.add(locator)
        try:
            await self._fetch(locator)
        except Exception as e:
            logger.warning("Prefetch failed for %s: %s", locator, e)
        finally:
            self._pending.pop(locator, None)
