"""
Failure handling for calls to the ads backend.

Provides:
- RetryConfig / retry_with_backoff: exponential backoff for transient errors
- CircuitBreaker: stop hammering a backend that keeps failing

The aggregation core never retries anything; only row fetches and inserts
go through these helpers.
"""
import asyncio
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type

from core.observability import get_logger, metrics

logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"      # Failing, reject requests
    HALF_OPEN = "half_open"  # Probing recovery


class CircuitOpenError(Exception):
    """Raised instead of calling a backend whose circuit is open."""

    def __init__(self, name: str, retry_in: float = 0.0):
        self.name = name
        self.retry_in = retry_in
        super().__init__(f"Circuit '{name}' is open, retry in {retry_in:.0f}s")


@dataclass(frozen=True)
class RetryConfig:
    """How often and how patiently to retry a failed call."""
    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    jitter: float = 0.1  # up to +10% of the delay

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after a failed attempt (1-based), without jitter."""
        return min(self.base_delay * (self.exponential_base ** (attempt - 1)), self.max_delay)


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """When a circuit opens and how it recovers."""
    failure_threshold: int = 5  # consecutive failures before opening
    recovery_timeout: float = 60.0  # seconds before a probe is allowed
    half_open_requests: int = 1  # probes allowed while half-open


@dataclass
class CircuitBreaker:
    """
    Circuit breaker for one backend.

    States:
    - CLOSED: calls pass through; consecutive failures are counted
    - OPEN: calls are rejected with CircuitOpenError until recovery_timeout passes
    - HALF_OPEN: a limited number of probe calls decide whether to close again

    `clock` is injectable so tests can move time without sleeping.
    """
    name: str = "ads_backend"
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    clock: Callable[[], float] = time.monotonic
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    opened_at: float = 0.0
    probes_in_flight: int = 0

    def __post_init__(self):
        self._lock = asyncio.Lock()

    def _retry_in(self) -> float:
        return max(0.0, self.config.recovery_timeout - (self.clock() - self.opened_at))

    def _open(self) -> None:
        self.state = CircuitState.OPEN
        self.opened_at = self.clock()
        self.probes_in_flight = 0
        metrics.record_error(f"circuit_open:{self.name}")

    async def can_execute(self) -> bool:
        """Whether a call may go out now (reserves a probe when half-open)."""
        async with self._lock:
            if self.state == CircuitState.OPEN:
                if self._retry_in() > 0:
                    return False
                logger.info(f"Circuit '{self.name}' half-open, probing backend")
                self.state = CircuitState.HALF_OPEN
                self.probes_in_flight = 0

            if self.state == CircuitState.HALF_OPEN:
                if self.probes_in_flight >= self.config.half_open_requests:
                    return False
                self.probes_in_flight += 1

            return True

    async def record_success(self) -> None:
        async with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info(f"Circuit '{self.name}' closed after successful probe")
                self.state = CircuitState.CLOSED
                self.probes_in_flight = 0
            self.failure_count = 0

    async def record_failure(self) -> None:
        async with self._lock:
            self.failure_count += 1

            if self.state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit '{self.name}' re-opened after failed probe")
                self._open()
            elif self.state == CircuitState.CLOSED and self.failure_count >= self.config.failure_threshold:
                logger.warning(
                    f"Circuit '{self.name}' opened after {self.failure_count} failures",
                    extra={"recovery_timeout": self.config.recovery_timeout}
                )
                self._open()

    async def call(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        failure_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
        **kwargs
    ) -> Any:
        """
        Run `func` through the breaker.

        Only `failure_exceptions` count against the backend. Any other
        exception means the backend answered, so it counts as a success
        before propagating.

        Raises:
            CircuitOpenError: If the circuit rejects the call
        """
        if not await self.can_execute():
            raise CircuitOpenError(self.name, self._retry_in())

        try:
            result = await func(*args, **kwargs)
        except failure_exceptions:
            await self.record_failure()
            raise
        except Exception:
            await self.record_success()
            raise

        await self.record_success()
        return result

    @property
    def is_open(self) -> bool:
        """Check if circuit is open (rejecting requests)."""
        return self.state == CircuitState.OPEN

    def status(self) -> Dict[str, Any]:
        """Current breaker state for health output."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failures": self.failure_count,
            "retry_in": round(self._retry_in(), 1) if self.is_open else 0.0,
        }


async def retry_with_backoff(
    func: Callable[..., Awaitable[Any]],
    *args,
    config: Optional[RetryConfig] = None,
    retryable_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    operation: Optional[str] = None,
    **kwargs
) -> Any:
    """
    Await `func` until it succeeds or attempts run out.

    Args:
        func: Async callable to execute
        *args: Positional arguments for func
        config: Retry configuration (default: RetryConfig())
        retryable_exceptions: Exceptions worth another attempt
        operation: Name used in logs and retry metrics (default: func name)
        **kwargs: Keyword arguments for func

    Returns:
        Result of func

    Raises:
        The last exception once every attempt failed; non-retryable
        exceptions propagate immediately
    """
    config = config or RetryConfig()
    operation = operation or getattr(func, "__name__", "call")

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt == config.max_attempts:
                logger.error(
                    f"{operation} failed after {attempt} attempts",
                    extra={"error": str(e)}
                )
                raise

            delay = config.delay_for(attempt)
            delay += delay * config.jitter * random.random()
            metrics.record_call(f"retry:{operation}")

            logger.warning(
                f"{operation} attempt {attempt} failed, retrying in {delay:.2f}s",
                extra={"attempt": attempt, "delay": round(delay, 2), "error": str(e)}
            )
            await asyncio.sleep(delay)
