"""Implementation of a rate limiter.

Controls the frequency and token volume of outgoing requests using a single
fixed window that carries both a request counter and a token counter. The
limiter never queues: a rejected admission reports how long until the window
rolls over and the caller decides whether to wait.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

DEFAULT_REQUESTS_PER_MINUTE = 60
DEFAULT_TOKENS_PER_MINUTE = 50000
DEFAULT_WINDOW_SECONDS = 60.0


@dataclass
class RateWindow:
    """The live accounting window."""
    window_start: float
    request_count: int = 0
    token_count: int = 0


@dataclass(frozen=True)
class Admission:
    """Outcome of an admission check."""
    admitted: bool
    retry_after: float = 0.0


class RateLimiter:
    """Fixed-window limiter on requests and tokens per window."""

    def __init__(
        self,
        requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
        tokens_per_minute: int = DEFAULT_TOKENS_PER_MINUTE,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the rate limiter.

        Args:
            requests_per_minute: Maximum number of requests admitted per window.
            tokens_per_minute: Maximum number of estimated tokens admitted per window.
            window_seconds: Length of the window in seconds.
            clock: Monotonic time source, replaceable in tests.
        """
        if requests_per_minute < 1 or tokens_per_minute < 1 or window_seconds <= 0:
            raise ValueError("Rate limits and window size must be positive")
        self.requests_per_minute = requests_per_minute
        self.tokens_per_minute = tokens_per_minute
        self.window_seconds = window_seconds
        self._clock = clock
        self._window = RateWindow(window_start=clock())
        self._lock = asyncio.Lock()
        logger.info(
            f"RateLimiter initialized: {requests_per_minute} requests and "
            f"{tokens_per_minute} tokens / {window_seconds} seconds"
        )

    def _expired(self, now: float) -> bool:
        return now - self._window.window_start >= self.window_seconds

    def _retry_after(self, now: float) -> float:
        return max(0.0, self.window_seconds - (now - self._window.window_start))

    def _fits(self, request_count: int, token_count: int, tokens: int) -> bool:
        return (
            request_count + 1 <= self.requests_per_minute
            and token_count + tokens <= self.tokens_per_minute
        )

    async def admit(self, estimated_tokens: int = 0) -> Admission:
        """Admits one request costing ``estimated_tokens`` if both budgets allow it.

        Args:
            estimated_tokens: Token cost charged against the window on admission.

        Returns:
            The admission decision; ``retry_after`` is set when rejected.
        """
        tokens = max(0, int(estimated_tokens))
        async with self._lock:
            now = self._clock()
            if self._expired(now):
                self._window = RateWindow(window_start=now)
            window = self._window
            if self._fits(window.request_count, window.token_count, tokens):
                window.request_count += 1
                window.token_count += tokens
                return Admission(admitted=True)
            retry_after = self._retry_after(now)
        logger.debug(
            f"Rate limit reached ({window.request_count} requests, {window.token_count} tokens). "
            f"Retry after {retry_after:.2f}s."
        )
        return Admission(admitted=False, retry_after=retry_after)

    def is_saturated(self) -> bool:
        """Whether an admission of one request with no tokens would be rejected now."""
        now = self._clock()
        if self._expired(now):
            return False
        return not self._fits(self._window.request_count, self._window.token_count, 0)

    def status(self) -> Dict[str, Any]:
        """Reports the live window without mutating it.

        An expired window is reported as empty, as it would be after reset.
        """
        now = self._clock()
        if self._expired(now):
            request_count, token_count, window_start = 0, 0, now
        else:
            request_count = self._window.request_count
            token_count = self._window.token_count
            window_start = self._window.window_start
        is_limited = not self._fits(request_count, token_count, 0)
        return {
            "request_count": request_count,
            "token_count": token_count,
            "window_start": window_start,
            "is_limited": is_limited,
            "requests_per_minute": self.requests_per_minute,
            "tokens_per_minute": self.tokens_per_minute,
            "retry_after": self._retry_after(now) if is_limited else 0.0,
        }
