# src/lmsync/sync/cancellation.py
"""Per-job cooperative cancellation token."""

from __future__ import annotations


class CancellationToken:
    """Held by the caller, passed into a sync job, checked between batches.

    Cancelling never interrupts an in-flight batch; the job stops before
    starting the next one.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None

    def cancel(self, reason: str = "Cancelled by user") -> None:
        self._cancelled = True
        self._reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
