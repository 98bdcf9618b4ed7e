"""Tests for retry strategies and retry_async_operation."""

import asyncio
import time
from unittest.mock import MagicMock

import pytest
import structlog

from closurekit.core.errors import ConfigError
from closurekit.execution.retry import (
    ConstantBackoff,
    ExponentialBackoff,
    RetryContext,
    retry_async_operation,
    with_retry,
)


class Flaky:
    """Zero-argument async operation failing a scripted number of times."""

    def __init__(self, failures, result="success"):
        self.failures = failures
        self.result = result
        self.attempts = 0
        self.attempt_times = []

    async def __call__(self):
        self.attempts += 1
        self.attempt_times.append(time.monotonic())
        await asyncio.sleep(0)
        if self.attempts <= self.failures:
            raise RuntimeError(f"failed attempt {self.attempts}")
        return self.result


class TestConstantBackoff:
    def test_allows_exactly_max_retries(self):
        """Test should_retry allows max_retries retries and no more."""
        strategy = ConstantBackoff(max_retries=3, delay=0.5)
        assert [strategy.should_retry(n) for n in (1, 2, 3, 4)] == [True, True, True, False]
        assert strategy.next_delay(0) == 0.5

    def test_invalid_configuration(self):
        """Test negative counts and delays raise ConfigError."""
        with pytest.raises(ConfigError):
            ConstantBackoff(max_retries=-1)
        with pytest.raises(ConfigError):
            ConstantBackoff(delay=-0.1)


class TestExponentialBackoff:
    def test_delay_no_jitter(self):
        """Test exponential delays without jitter."""
        strategy = ExponentialBackoff(base_delay=1.0, multiplier=2.0, jitter=False)
        assert [strategy.next_delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_delay_capped(self):
        """Test delays never exceed max_delay."""
        strategy = ExponentialBackoff(base_delay=10.0, max_delay=30.0, jitter=False)
        assert strategy.next_delay(5) == 30.0

    def test_jitter_stays_in_range(self):
        """Test jittered delays stay within jitter_range."""
        strategy = ExponentialBackoff(base_delay=1.0, jitter=True, jitter_range=0.5)
        assert all(1.0 <= strategy.next_delay(1) <= 3.0 for _ in range(20))

    def test_retryable_errors_filter(self):
        """Test only listed error types are retried."""
        strategy = ExponentialBackoff(max_retries=3, retryable_errors=(ConnectionError,))
        assert strategy.should_retry(1, ConnectionError()) is True
        assert strategy.should_retry(1, ValueError()) is False
        assert strategy.should_retry(4, ConnectionError()) is False


class TestRetryContextSync:
    def test_succeeds_after_failures(self):
        """Test run returns once a retry succeeds."""
        func = MagicMock(side_effect=[ValueError("1"), ValueError("2"), "ok"])
        ctx = RetryContext(ConstantBackoff(max_retries=3, delay=0))
        assert ctx.run(func) == "ok"
        assert ctx.attempts == 3
        assert len(ctx.errors) == 2

    def test_raises_last_error(self):
        """Test the last error is raised when retries run out."""
        func = MagicMock(side_effect=[ValueError("1"), KeyError("2")])
        ctx = RetryContext(ConstantBackoff(max_retries=1, delay=0))
        with pytest.raises(KeyError):
            ctx.run(func)
        assert func.call_count == 2

    def test_on_retry_callback(self):
        """Test on_retry receives attempt, error and delay."""
        on_retry = MagicMock()
        func = MagicMock(side_effect=[ValueError("x"), "ok"])
        RetryContext(ConstantBackoff(max_retries=1, delay=0), on_retry=on_retry).run(func)
        attempt, error, delay = on_retry.call_args.args
        assert attempt == 1
        assert isinstance(error, ValueError)
        assert delay == 0


class TestRetryAsyncOperation:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """Test a successful first attempt is returned directly."""
        op = Flaky(failures=0)
        assert await retry_async_operation(op, 3, 0.01) == "success"
        assert op.attempts == 1

    @pytest.mark.asyncio
    async def test_succeeds_on_last_allowed_attempt(self):
        """Test success on the final permitted attempt."""
        op = Flaky(failures=3)
        assert await retry_async_operation(op, 3, 0) == "success"
        assert op.attempts == 4

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self):
        """Test the final attempt's error propagates."""
        op = Flaky(failures=10)
        with pytest.raises(RuntimeError, match="failed attempt 4"):
            await retry_async_operation(op, 3, 0)
        assert op.attempts == 4

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self):
        """Test retry_count=0 makes exactly one attempt."""
        op = Flaky(failures=1)
        with pytest.raises(RuntimeError, match="failed attempt 1"):
            await retry_async_operation(op, 0, 0)
        assert op.attempts == 1

    @pytest.mark.asyncio
    async def test_waits_delay_between_attempts(self):
        """Test the delay is awaited between attempts."""
        op = Flaky(failures=2)
        await retry_async_operation(op, 2, 0.05)
        gaps = [b - a for a, b in zip(op.attempt_times, op.attempt_times[1:])]
        assert len(gaps) == 2
        assert all(gap >= 0.04 for gap in gaps)

    @pytest.mark.asyncio
    async def test_no_retry_after_success(self):
        """Test the operation is not called again after success."""
        op = Flaky(failures=1)
        await retry_async_operation(op, 5, 0)
        await asyncio.sleep(0.01)
        assert op.attempts == 2

    @pytest.mark.asyncio
    async def test_intermediate_failures_are_logged(self):
        """Test each retried failure logs retry_scheduled."""
        op = Flaky(failures=1)
        with structlog.testing.capture_logs() as logs:
            await retry_async_operation(op, 2, 0)
        events = [entry["event"] for entry in logs]
        assert events == ["retry_scheduled"]
        assert logs[0]["attempt"] == 1

    @pytest.mark.asyncio
    async def test_rejects_prestarted_coroutine(self):
        """Test an already-created coroutine is rejected."""
        coro = Flaky(failures=0)()
        with pytest.raises(ConfigError):
            await retry_async_operation(coro, 3, 0)
        coro.close()

    @pytest.mark.asyncio
    async def test_invalid_counts(self):
        """Test invalid retry_count or delay raises ConfigError."""
        with pytest.raises(ConfigError):
            await retry_async_operation(Flaky(0), -1, 0)
        with pytest.raises(ConfigError):
            await retry_async_operation(Flaky(0), 1, -5)


class TestWithRetry:
    def test_sync_function(self):
        """Test with_retry wraps a plain function."""
        func = MagicMock(side_effect=[ValueError(), "ok"])
        wrapped = with_retry(ConstantBackoff(max_retries=1, delay=0))(func)
        assert wrapped() == "ok"

    @pytest.mark.asyncio
    async def test_async_function(self):
        """Test with_retry wraps a coroutine function."""
        calls = []

        @with_retry(ConstantBackoff(max_retries=2, delay=0))
        async def fetch(value):
            calls.append(value)
            if len(calls) < 3:
                raise ConnectionError("down")
            return value

        assert await fetch("data") == "data"
        assert calls == ["data", "data", "data"]
        assert fetch.__name__ == "fetch"
