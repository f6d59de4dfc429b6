"""
Integration tests for core/resilience.py

Tests the circuit breaker and retry with backoff around backend calls.
"""
import pytest
from unittest.mock import AsyncMock, patch

from core.exceptions import RowSourceAPIError, RowSourceConnectionError, RowSourceDataError
from core.observability import metrics
from core.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    CircuitOpenError,
    RetryConfig,
    retry_with_backoff,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _breaker(threshold: int = 1, recovery: float = 10.0):
    clock = FakeClock()
    breaker = CircuitBreaker(
        name="test_backend",
        config=CircuitBreakerConfig(failure_threshold=threshold, recovery_timeout=recovery),
        clock=clock,
    )
    return breaker, clock


class TestCircuitBreaker:
    """Tests for CircuitBreaker class."""

    @pytest.mark.asyncio
    async def test_initial_state_closed(self):
        """Circuit breaker starts in closed state."""
        cb = CircuitBreaker()
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0
        assert await cb.can_execute()

    @pytest.mark.asyncio
    async def test_success_resets_failures(self):
        cb, _ = _breaker(threshold=5)
        await cb.record_failure()
        await cb.record_failure()
        assert cb.failure_count == 2

        await cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_threshold_failures(self):
        cb, _ = _breaker(threshold=3)

        for _ in range(3):
            await cb.record_failure()

        assert cb.is_open
        assert not await cb.can_execute()
        assert metrics.get_stats()["errors"]["circuit_open:test_backend"] == 1

    @pytest.mark.asyncio
    async def test_half_open_after_recovery_timeout(self):
        cb, clock = _breaker(recovery=10.0)
        await cb.record_failure()

        clock.advance(9.9)
        assert not await cb.can_execute()

        clock.advance(0.2)
        assert await cb.can_execute()
        assert cb.state == CircuitState.HALF_OPEN

    @pytest.mark.asyncio
    async def test_half_open_allows_one_probe(self):
        cb, clock = _breaker()
        await cb.record_failure()
        clock.advance(11)

        assert await cb.can_execute()
        assert not await cb.can_execute()

    @pytest.mark.asyncio
    async def test_closes_after_successful_probe(self):
        cb, clock = _breaker()
        await cb.record_failure()
        clock.advance(11)

        await cb.can_execute()
        await cb.record_success()

        assert cb.state == CircuitState.CLOSED
        assert await cb.can_execute()

    @pytest.mark.asyncio
    async def test_reopens_after_failed_probe(self):
        cb, clock = _breaker()
        await cb.record_failure()
        clock.advance(11)

        await cb.can_execute()
        await cb.record_failure()

        assert cb.is_open
        assert not await cb.can_execute()

    @pytest.mark.asyncio
    async def test_status(self):
        cb, clock = _breaker(recovery=10.0)
        await cb.record_failure()
        clock.advance(4)

        assert cb.status() == {
            "name": "test_backend",
            "state": "open",
            "failures": 1,
            "retry_in": 6.0,
        }


class TestCircuitBreakerCall:
    """Tests for CircuitBreaker.call."""

    @pytest.mark.asyncio
    async def test_passes_result_through(self):
        cb, _ = _breaker()
        func = AsyncMock(return_value=["row"])

        assert await cb.call(func, 10, offset=0) == ["row"]
        func.assert_awaited_once_with(10, offset=0)

    @pytest.mark.asyncio
    async def test_rejects_when_open(self):
        cb, _ = _breaker(recovery=30.0)
        await cb.record_failure()
        func = AsyncMock()

        with pytest.raises(CircuitOpenError) as exc_info:
            await cb.call(func)

        assert exc_info.value.name == "test_backend"
        assert exc_info.value.retry_in == pytest.approx(30.0)
        func.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_exceptions_count(self):
        cb, _ = _breaker(threshold=2)
        func = AsyncMock(side_effect=RowSourceAPIError("Backend returned 500", status_code=500))

        for _ in range(2):
            with pytest.raises(RowSourceAPIError):
                await cb.call(func, failure_exceptions=(RowSourceAPIError,))

        assert cb.is_open

    @pytest.mark.asyncio
    async def test_other_exceptions_do_not_count(self):
        cb, clock = _breaker()
        await cb.record_failure()
        clock.advance(11)
        func = AsyncMock(side_effect=RowSourceDataError("Bad payload"))

        with pytest.raises(RowSourceDataError):
            await cb.call(func, failure_exceptions=(RowSourceConnectionError,))

        # A malformed answer still proves the backend is up
        assert cb.state == CircuitState.CLOSED


class TestRetryWithBackoff:
    """Tests for retry_with_backoff function."""

    @pytest.mark.asyncio
    async def test_succeeds_first_try(self):
        """Returns result if first attempt succeeds."""
        async def my_func():
            return "success"

        result = await retry_with_backoff(
            my_func,
            config=RetryConfig(max_attempts=3, base_delay=0.01)
        )
        assert result == "success"

    @pytest.mark.asyncio
    async def test_retries_on_failure(self):
        """Retries on exception up to max_attempts."""
        call_count = 0

        async def fetch_rows():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise RowSourceConnectionError("Network error")
            return "success"

        with patch("core.resilience.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await retry_with_backoff(
                fetch_rows,
                config=RetryConfig(max_attempts=3, base_delay=1.0, jitter=0)
            )

        assert result == "success"
        assert call_count == 3
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]
        assert metrics.get_stats()["calls"]["retry:fetch_rows"] == 2

    @pytest.mark.asyncio
    async def test_raises_after_max_attempts(self):
        """Raises exception after all attempts exhausted."""
        async def my_func():
            raise RowSourceConnectionError("Always fails")

        with pytest.raises(RowSourceConnectionError):
            await retry_with_backoff(
                my_func,
                config=RetryConfig(max_attempts=2, base_delay=0.01)
            )

    @pytest.mark.asyncio
    async def test_respects_retryable_exceptions(self):
        """Only retries on specified exception types."""
        func = AsyncMock(side_effect=RowSourceAPIError("Backend returned 400", status_code=400))

        with pytest.raises(RowSourceAPIError):
            await retry_with_backoff(
                func,
                config=RetryConfig(max_attempts=3, base_delay=0.01),
                retryable_exceptions=(RowSourceConnectionError,)
            )
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_passes_arguments(self):
        """Positional and keyword arguments reach the wrapped function."""
        async def my_func(limit, offset=0):
            return (limit, offset)

        result = await retry_with_backoff(
            my_func, 100,
            offset=200,
            config=RetryConfig(max_attempts=1, base_delay=0.01)
        )
        assert result == (100, 200)


class TestRetryConfig:
    """Tests for RetryConfig backoff delays."""

    def test_exponential_delays(self):
        config = RetryConfig(base_delay=1.0, exponential_base=2.0, max_delay=30.0)
        assert [config.delay_for(attempt) for attempt in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_capped_at_max_delay(self):
        config = RetryConfig(base_delay=1.0, exponential_base=10.0, max_delay=5.0)
        assert config.delay_for(4) == 5.0
