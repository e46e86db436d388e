"""Retry policy for outbound provider calls.

Implements bounded retries with exponential backoff and jitter, an optional
per-attempt timeout, and a tuple of exceptions that are never retried (for
example provider authentication failures). Every attempt is counted in the
metrics registry; the final outcome is recorded exactly once.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from leadintel.core.exceptions import AIServiceError, AITimeoutError, ProviderError
from leadintel.domain.events.api_events import (
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    EventHandler,
    RetryScheduled,
    log_event,
)
from leadintel.infrastructure.monitoring.metrics import MetricsRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF_S = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_MAX_BACKOFF_S = 30.0
DEFAULT_JITTER_S = 0.1

OperationFactory = Callable[[], Awaitable[Any]]


class RetryPolicy:
    """Executes a coroutine factory with retries and exponential backoff."""

    def __init__(
        self,
        metrics: Optional[MetricsRegistry] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_S,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        max_backoff_s: float = DEFAULT_MAX_BACKOFF_S,
        jitter_s: float = DEFAULT_JITTER_S,
        non_retryable_exceptions: Tuple[Type[BaseException], ...] = (),
        provider_name: str = "unknown",
        event_handler: EventHandler = log_event,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        failure_log_level: int = logging.ERROR,
    ):
        """Initializes the RetryPolicy.

        Args:
            metrics: Registry receiving attempt and outcome metrics.
            max_retries: Retries after the first attempt (total attempts is max_retries + 1).
            initial_backoff_s: Delay in seconds before the first retry.
            backoff_factor: Multiplier applied per attempt.
            max_backoff_s: Upper bound of the exponential part of the delay.
            jitter_s: Upper bound of the random delay added to each backoff.
            non_retryable_exceptions: Errors that end the call immediately.
            provider_name: Name of the provider (for logging/events).
            event_handler: Receives the domain events of each call.
            sleep: Awaitable sleep function, replaceable in tests.
            failure_log_level: Level used to log definitive failures.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.metrics = metrics
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self.max_backoff_s = max_backoff_s
        self.jitter_s = jitter_s
        self.non_retryable_exceptions = tuple(non_retryable_exceptions)
        self.provider_name = provider_name
        self.event_handler = event_handler
        self._sleep = sleep
        self.failure_log_level = failure_log_level

        logger.info(
            f"RetryPolicy initialized: max_retries={max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}, "
            f"max_backoff={max_backoff_s}s, provider='{provider_name}'"
        )
        logger.debug(f"Non-retryable exceptions: {self.non_retryable_exceptions}")

    def backoff(self, attempt: int) -> float:
        """Exponential part of the delay after the zero-based ``attempt``."""
        return min(self.max_backoff_s, self.initial_backoff_s * self.backoff_factor ** attempt)

    def _delay(self, attempt: int, previous: float) -> float:
        jitter = random.uniform(0, self.jitter_s) if self.jitter_s > 0 else 0.0
        return max(previous, self.backoff(attempt) + jitter)

    async def execute(
        self,
        operation_factory: OperationFactory,
        operation: str = "unknown",
        timeout: Optional[float] = None,
    ) -> Any:
        """Runs ``operation_factory()`` until it succeeds or attempts run out.

        Args:
            operation_factory: Zero-argument callable returning a fresh awaitable per attempt.
            operation: Operation name used for metrics, logs and events.
            timeout: Optional per-attempt timeout in seconds.

        Returns:
            The result of the first successful attempt.

        Raises:
            AITimeoutError: If the last attempt timed out.
            ProviderError: If the last attempt failed otherwise (the cause is chained).
        """
        start_time = time.perf_counter()
        last_exception: Optional[BaseException] = None
        previous_delay = 0.0
        attempts = 0

        for attempt in range(self.max_retries + 1):
            attempts = attempt + 1
            if self.metrics:
                self.metrics.record_attempt(operation)
            self.event_handler(ApiCallInitiated(provider=self.provider_name, operation=operation, attempt_number=attempts))
            try:
                if timeout is not None:
                    result = await asyncio.wait_for(operation_factory(), timeout=timeout)
                else:
                    result = await operation_factory()
            except self.non_retryable_exceptions as e:
                last_exception = e
                logger.log(
                    self.failure_log_level,
                    f"Non-retryable error calling {self.provider_name}.{operation} on attempt {attempts}: {e}",
                )
                break
            except asyncio.TimeoutError as e:
                last_exception = e
                logger.warning(
                    f"Attempt {attempts}/{self.max_retries + 1} for {self.provider_name}.{operation} "
                    f"timed out after {timeout}s"
                )
            except Exception as e:
                last_exception = e
                logger.warning(
                    f"Error calling {self.provider_name}.{operation} on attempt "
                    f"{attempts}/{self.max_retries + 1}: {type(e).__name__}: {e}"
                )
            else:
                latency_ms = (time.perf_counter() - start_time) * 1000
                if self.metrics:
                    self.metrics.record_success(operation, latency_ms)
                self.event_handler(ApiCallSucceeded(
                    provider=self.provider_name, operation=operation, latency_ms=latency_ms, attempts=attempts,
                ))
                return result

            if attempt < self.max_retries:
                delay = self._delay(attempt, previous_delay)
                previous_delay = delay
                self.event_handler(RetryScheduled(
                    provider=self.provider_name,
                    operation=operation,
                    attempt_number=attempts,
                    delay_seconds=delay,
                    error_type=type(last_exception).__name__,
                ))
                logger.debug(f"Retrying {self.provider_name}.{operation} in {delay:.2f}s")
                await self._sleep(delay)

        error = self._final_error(last_exception, attempts, timeout)
        latency_ms = (time.perf_counter() - start_time) * 1000
        if self.metrics:
            self.metrics.record_failure(operation, error, latency_ms)
        self.event_handler(ApiCallFailed(
            provider=self.provider_name,
            operation=operation,
            error_type=type(last_exception).__name__,
            error_message=str(last_exception),
            attempts=attempts,
        ))
        logger.log(
            self.failure_log_level,
            f"{self.provider_name}.{operation} failed after {attempts} attempt(s): {last_exception}",
        )
        if error is last_exception:
            raise error
        raise error from last_exception

    def _final_error(self, last_exception: Optional[BaseException], attempts: int, timeout: Optional[float]) -> AIServiceError:
        if isinstance(last_exception, asyncio.TimeoutError):
            return AITimeoutError(timeout, attempts)
        if isinstance(last_exception, ProviderError):
            last_exception.attempts = attempts
            return last_exception
        if isinstance(last_exception, AIServiceError):
            return last_exception
        return ProviderError(
            f"{self.provider_name} call failed after {attempts} attempt(s): {last_exception}", attempts
        )
