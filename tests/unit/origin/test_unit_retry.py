# tests/unit/origin/test_unit_retry.py
"""Tests for origin/retry.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from lmsync.origin.base_origin_client import NotAuthenticated, OriginError
from lmsync.origin.retry import (
    NO_RETRY,
    RetryExhausted,
    RetryPolicy,
    _compute_delay,
    classify_error,
    with_retry,
)

ZERO_DELAY = RetryPolicy(max_retries=3, base_delay_s=0.0, jitter=False)


class TestClassifyError:
    def test_not_authenticated(self):
        assert classify_error(NotAuthenticated()) == "non_retryable"

    def test_error_codes(self):
        assert classify_error(OriginError("x", errorcode="invalidrecord")) == "non_retryable"
        assert classify_error(OriginError("x", errorcode="invalidtoken")) == "non_retryable"

    def test_message_markers(self):
        assert classify_error(RuntimeError("Invalid token - token expired")) == "non_retryable"
        assert classify_error(RuntimeError("Access to external_functions denied")) == "non_retryable"

    def test_transient(self):
        assert classify_error(ConnectionError("reset by peer")) == "transient"
        assert classify_error(OriginError("HTTP 503", errorcode="servererror")) == "transient"


class TestComputeDelay:
    def test_exponential(self):
        policy = RetryPolicy(base_delay_s=1.0, backoff_factor=2.0, jitter=False)
        assert [_compute_delay(policy, a) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_jitter_bounds(self):
        policy = RetryPolicy(base_delay_s=2.0, jitter=True)
        for _ in range(20):
            assert 1.0 <= _compute_delay(policy, 0) <= 3.0


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fn = AsyncMock(return_value="ok")
        assert await with_retry(fn, "a", policy=ZERO_DELAY, flag=True) == "ok"
        fn.assert_awaited_once_with("a", flag=True)

    @pytest.mark.asyncio
    async def test_transient_then_success(self):
        fn = AsyncMock(side_effect=[ConnectionError("boom"), ConnectionError("boom"), "ok"])
        assert await with_retry(fn, policy=ZERO_DELAY) == "ok"
        assert fn.await_count == 3

    @pytest.mark.asyncio
    async def test_exhausted(self):
        fn = AsyncMock(side_effect=ConnectionError("down"))
        with pytest.raises(RetryExhausted) as exc_info:
            await with_retry(fn, policy=ZERO_DELAY, label="fetch")
        assert fn.await_count == 4
        assert exc_info.value.attempts == 4
        assert isinstance(exc_info.value.last_error, ConnectionError)
        assert "fetch" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self):
        fn = AsyncMock(side_effect=NotAuthenticated("Invalid token"))
        with pytest.raises(NotAuthenticated):
            await with_retry(fn, policy=ZERO_DELAY)
        fn.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_retry_policy(self):
        fn = AsyncMock(side_effect=ConnectionError("down"))
        with pytest.raises(RetryExhausted):
            await with_retry(fn, policy=NO_RETRY)
        fn.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_backoff_sleeps(self):
        fn = AsyncMock(side_effect=[ConnectionError("a"), ConnectionError("b"), "ok"])
        policy = RetryPolicy(max_retries=3, base_delay_s=1.0, backoff_factor=2.0, jitter=False)
        with patch("lmsync.origin.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await with_retry(fn, policy=policy) == "ok"
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_custom_classifier(self):
        fn = AsyncMock(side_effect=ValueError("bad"))
        with pytest.raises(ValueError):
            await with_retry(fn, policy=ZERO_DELAY, classifier=lambda e: "non_retryable")
        fn.assert_awaited_once()


class TestRetryPolicy:
    def test_from_settings(self, settings):
        policy = RetryPolicy.from_settings(settings)
        assert policy.max_retries == 2
        assert policy.base_delay_s == 0.0
        assert policy.jitter is False
