# src/lmsync/logging/context.py
"""Contextual logging support: attach job_id, batch and locator to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per sync job.
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_batch: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch", default=None
)
_locator: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "locator", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    job_id: str | None = None
    batch: str | None = None
    locator: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        job_id=_job_id.get(),
        batch=_batch.get(),
        locator=_locator.get(),
    )


def set_job_context(job_id: str) -> None:
    """Set job-level context (called once per sync job)."""
    _job_id.set(job_id)
    _batch.set(None)


def set_batch_context(batch: str | None) -> None:
    """Set the batch label, e.g. "2/5"."""
    _batch.set(batch)


def set_item_context(locator: str | None) -> None:
    """Set item-level context.

    Each gathered task runs in a copy of the caller's context, so setting
    this inside a task does not leak into sibling items.
    """
    _locator.set(locator)


def clear_context() -> None:
    """Reset all context variables."""
    _job_id.set(None)
    _batch.set(None)
    _locator.set(None)
