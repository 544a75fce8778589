# src/lmsync/origin/retry.py
"""Retry policy with exponential backoff for origin calls.

Errors are classified before retrying: authentication and invalid-id
failures surface immediately, everything else is treated as transient and
retried up to the policy's budget.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from lmsync.origin.base_origin_client import NotAuthenticated

logger = logging.getLogger(__name__)

NON_RETRYABLE_CODES = frozenset({"invalidrecord", "invalidtoken"})
NON_RETRYABLE_MARKERS = ("external_functions", "Invalid token")


class RetryExhausted(Exception):
    """All retries exhausted for a transient failure."""

    def __init__(self, label: str, attempts: int, last_error: Exception):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"'{label}' failed after {attempts} attempts: {last_error}"
        )


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff configuration for transient errors."""

    max_retries: int = 3
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0
    jitter: bool = True

    @classmethod
    def from_settings(cls, settings: Any) -> RetryPolicy:
        return cls(
            max_retries=settings.retry_max_retries,
            base_delay_s=settings.retry_base_delay_s,
            backoff_factor=settings.retry_backoff_factor,
            jitter=settings.retry_jitter,
        )


NO_RETRY = RetryPolicy(max_retries=0, base_delay_s=0.0, jitter=False)


def classify_error(error: Exception) -> str:
    """Classify an exception as "non_retryable" or "transient"."""
    if isinstance(error, NotAuthenticated):
        return "non_retryable"
    if getattr(error, "errorcode", None) in NON_RETRYABLE_CODES:
        return "non_retryable"
    msg = str(error)
    if any(marker in msg for marker in NON_RETRYABLE_MARKERS):
        return "non_retryable"
    return "transient"


def _compute_delay(policy: RetryPolicy, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = policy.base_delay_s * (policy.backoff_factor ** attempt)
    if policy.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    policy: RetryPolicy | None = None,
    label: str = "origin call",
    classifier: Callable[[Exception], str] = classify_error,
    **kwargs: Any,
) -> Any:
    """Execute an async function with retry logic.

    Raises:
        Exception: The original error when it is classified non-retryable.
        RetryExhausted: If a transient error persists past the budget.
    """
    policy = policy or RetryPolicy()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            attempts += 1
            if classifier(e) == "non_retryable":
                logger.warning("'%s' failed with non-retryable error: %s", label, e)
                raise

            if attempts > policy.max_retries:
                raise RetryExhausted(label, attempts, e) from e

            delay = _compute_delay(policy, attempts - 1)
            logger.warning(
                "'%s' transient failure (attempt %d/%d), retrying in %.1fs: %s",
                label, attempts, policy.max_retries, delay, e,
            )
            await asyncio.sleep(delay)
