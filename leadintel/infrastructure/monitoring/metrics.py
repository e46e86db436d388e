"""Prometheus-backed metrics for the AI service.

Every registry owns a private ``CollectorRegistry`` so several orchestrators
(and tests) never share counters. Counters are labelled by operation kind and
follow Prometheus naming conventions (``_total`` suffix for counters,
``_seconds`` for durations).

Besides the Prometheus collectors the registry keeps two bounded rings used by
``snapshot()`` and the health check: recent latencies (for percentiles) and
recent final outcomes.
"""

import logging
import math
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)

DEFAULT_LATENCY_SAMPLES = 1000
DEFAULT_OUTCOME_WINDOW = 50
LATENCY_BUCKETS = [0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the service metrics."""
    total_requests: int
    successful_requests: int
    failed_requests: int
    cache_hits: int
    cache_misses: int
    rate_limited_requests: int
    tokens_used: int
    average_response_time_ms: float
    p50_latency_ms: float
    p95_latency_ms: float
    cache_hit_rate: float
    error_rate: float
    consecutive_failures: int
    last_error: Optional[str]


def _percentile(sorted_samples: List[float], fraction: float) -> float:
    """Nearest-rank percentile of an ascending list; 0.0 when empty."""
    if not sorted_samples:
        return 0.0
    rank = max(1, math.ceil(fraction * len(sorted_samples)))
    return sorted_samples[min(rank, len(sorted_samples)) - 1]


def _counter_total(counter: Counter) -> int:
    """Sum of a labelled counter across all label values."""
    return int(sum(
        sample.value
        for metric in counter.collect()
        for sample in metric.samples
        if sample.name.endswith("_total")
    ))


class MetricsRegistry:
    """Collects request, cache, rate-limit, token and latency metrics."""

    def __init__(
        self,
        namespace: str = "leadintel",
        latency_samples: int = DEFAULT_LATENCY_SAMPLES,
        outcome_window: int = DEFAULT_OUTCOME_WINDOW,
    ):
        self.registry = CollectorRegistry()
        labels = ["operation"]

        self.requests_total = Counter(
            f"{namespace}_ai_requests", "Outbound call attempts", labels, registry=self.registry
        )
        self.successful_total = Counter(
            f"{namespace}_ai_requests_successful", "Requests that succeeded", labels, registry=self.registry
        )
        self.failed_total = Counter(
            f"{namespace}_ai_requests_failed", "Requests that failed after retries", labels, registry=self.registry
        )
        self.cache_hits_total = Counter(
            f"{namespace}_cache_hits", "Response cache hits", labels, registry=self.registry
        )
        self.cache_misses_total = Counter(
            f"{namespace}_cache_misses", "Response cache misses", labels, registry=self.registry
        )
        self.rate_limited_total = Counter(
            f"{namespace}_rate_limited_requests", "Requests rejected by the rate limiter", labels,
            registry=self.registry,
        )
        self.tokens_total = Counter(
            f"{namespace}_tokens_used", "Estimated tokens consumed", labels, registry=self.registry
        )
        self.latency_seconds = Histogram(
            f"{namespace}_ai_request_latency_seconds",
            "Latency of completed requests in seconds",
            labels,
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )

        self._lock = threading.Lock()
        self._latencies_ms: Deque[float] = deque(maxlen=latency_samples)
        self._outcomes: Deque[bool] = deque(maxlen=outcome_window)
        self._latency_sum_ms = 0.0
        self._latency_count = 0
        self._consecutive_failures = 0
        self._last_error: Optional[str] = None

    # --- Recording ---

    def record_attempt(self, operation: str) -> None:
        self.requests_total.labels(operation=operation).inc()

    def record_success(self, operation: str, latency_ms: float) -> None:
        self.successful_total.labels(operation=operation).inc()
        self._observe_latency(operation, latency_ms)
        with self._lock:
            self._outcomes.append(True)
            self._consecutive_failures = 0

    def record_failure(self, operation: str, error: BaseException, latency_ms: Optional[float] = None) -> None:
        self.failed_total.labels(operation=operation).inc()
        if latency_ms is not None:
            self._observe_latency(operation, latency_ms)
        with self._lock:
            self._outcomes.append(False)
            self._consecutive_failures += 1
            self._last_error = f"{type(error).__name__}: {error}"

    def record_cache_hit(self, operation: str) -> None:
        self.cache_hits_total.labels(operation=operation).inc()

    def record_cache_miss(self, operation: str) -> None:
        self.cache_misses_total.labels(operation=operation).inc()

    def record_rate_limited(self, operation: str) -> None:
        self.rate_limited_total.labels(operation=operation).inc()

    def record_tokens(self, operation: str, tokens: int) -> None:
        if tokens > 0:
            self.tokens_total.labels(operation=operation).inc(tokens)

    def _observe_latency(self, operation: str, latency_ms: float) -> None:
        latency_ms = max(0.0, latency_ms)
        self.latency_seconds.labels(operation=operation).observe(latency_ms / 1000.0)
        with self._lock:
            self._latencies_ms.append(latency_ms)
            self._latency_sum_ms += latency_ms
            self._latency_count += 1

    # --- Reading ---

    def recent_outcomes(self) -> List[bool]:
        """Final outcomes (True for success), oldest first."""
        with self._lock:
            return list(self._outcomes)

    def recent_failure_rate(self) -> float:
        outcomes = self.recent_outcomes()
        if not outcomes:
            return 0.0
        return outcomes.count(False) / len(outcomes)

    def snapshot(self) -> MetricsSnapshot:
        """Returns a consistent copy of all metrics. Never mutates state."""
        successful = _counter_total(self.successful_total)
        failed = _counter_total(self.failed_total)
        hits = _counter_total(self.cache_hits_total)
        misses = _counter_total(self.cache_misses_total)
        with self._lock:
            samples = sorted(self._latencies_ms)
            average = self._latency_sum_ms / self._latency_count if self._latency_count else 0.0
            consecutive = self._consecutive_failures
            last_error = self._last_error
        completed = successful + failed
        return MetricsSnapshot(
            total_requests=_counter_total(self.requests_total),
            successful_requests=successful,
            failed_requests=failed,
            cache_hits=hits,
            cache_misses=misses,
            rate_limited_requests=_counter_total(self.rate_limited_total),
            tokens_used=_counter_total(self.tokens_total),
            average_response_time_ms=average,
            p50_latency_ms=_percentile(samples, 0.50),
            p95_latency_ms=_percentile(samples, 0.95),
            cache_hit_rate=hits / (hits + misses) if hits + misses else 0.0,
            error_rate=failed / completed if completed else 0.0,
            consecutive_failures=consecutive,
            last_error=last_error,
        )

    def export(self) -> bytes:
        """Renders the metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)
