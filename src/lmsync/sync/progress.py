# src/lmsync/sync/progress.py
"""Progress, throughput and ETA tracking for sync jobs.

Speed is measured over the items completed since the previous emission,
not since the job started, so it reflects recent throughput.
"""

from __future__ import annotations

import time
from typing import Callable

from lmsync.sync.models import SyncProgress


class ProgressTracker:
    """Compute SyncProgress snapshots for a job of known size.

    Args:
        total: Number of locators in the job, cached ones included.
        clock: Monotonic clock in seconds (injectable for tests).
    """

    def __init__(
        self, total: int, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._total = total
        self._clock = clock
        self._last_time = clock()
        self._last_completed = 0

    def start(self, completed: int) -> None:
        """Reset the throughput window, e.g. after counting cached items."""
        self._last_time = self._clock()
        self._last_completed = completed

    def snapshot(self, completed: int) -> SyncProgress:
        """Build the snapshot for `completed` finished items."""
        now = self._clock()
        elapsed = now - self._last_time
        since_last = completed - self._last_completed

        speed: float | None = None
        eta: float | None = None
        if elapsed > 0 and since_last > 0:
            speed = since_last / elapsed
            remaining = max(self._total - completed, 0)
            eta = remaining / speed if remaining else None
            self._last_time = now
            self._last_completed = completed

        return SyncProgress(
            current=completed,
            total=self._total,
            percentage=_percentage(completed, self._total),
            speed_items_per_sec=speed,
            eta_seconds=eta,
            status=f"Downloading {completed}/{self._total}...",
        )

    def complete(self) -> SyncProgress:
        return SyncProgress(
            current=self._total,
            total=self._total,
            percentage=100,
            status="Complete",
        )


def _percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 100
    return round(completed / total * 100)
