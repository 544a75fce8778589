# src/lmsync/sync/models.py
"""Synchronization models: SyncProgress, SyncStats, SyncResult."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SyncProgress(BaseModel):
    """Progress snapshot emitted after every batch. Never persisted."""

    current: int
    total: int
    percentage: int
    speed_items_per_sec: float | None = None
    eta_seconds: float | None = None
    status: str = ""


class SyncStats(BaseModel):
    """Counters for one sync job. success + failed == total."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    success: int = 0
    failed: int = 0
    cached: int = 0
    fetched: int = 0


class SyncedItem(BaseModel):
    """Freshly fetched and cleaned content for one locator."""

    model_config = ConfigDict(frozen=True)

    locator: str
    content: str


class SyncFailure(BaseModel):
    """A locator that could not be fetched or cleaned."""

    model_config = ConfigDict(frozen=True)

    locator: str
    error: str


class SyncResult(BaseModel):
    """Final outcome of one orchestrator invocation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    cancelled: bool = False
    error: str | None = None
    stats: SyncStats = Field(default_factory=SyncStats)
    items: tuple[SyncedItem, ...] = ()
    failures: tuple[SyncFailure, ...] = ()
