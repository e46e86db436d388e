import pytest

from leadintel.infrastructure.monitoring.metrics import MetricsRegistry


def test_empty_snapshot():
    snapshot = MetricsRegistry().snapshot()
    assert snapshot.total_requests == 0
    assert snapshot.average_response_time_ms == 0.0
    assert snapshot.p95_latency_ms == 0.0
    assert snapshot.cache_hit_rate == 0.0
    assert snapshot.error_rate == 0.0
    assert snapshot.last_error is None


def test_counters_and_rates():
    metrics = MetricsRegistry()
    for _ in range(3):
        metrics.record_attempt("lead_scoring")
    metrics.record_attempt("voice_command")
    metrics.record_success("lead_scoring", 100.0)
    metrics.record_success("voice_command", 300.0)
    metrics.record_failure("lead_scoring", ValueError("boom"))
    metrics.record_cache_hit("lead_scoring")
    metrics.record_cache_miss("lead_scoring")
    metrics.record_cache_miss("voice_command")
    metrics.record_cache_miss("voice_command")
    metrics.record_rate_limited("voice_command")
    metrics.record_tokens("lead_scoring", 250)
    metrics.record_tokens("lead_scoring", 0)

    snapshot = metrics.snapshot()
    assert snapshot.total_requests == 4
    assert snapshot.successful_requests == 2
    assert snapshot.failed_requests == 1
    assert snapshot.rate_limited_requests == 1
    assert snapshot.tokens_used == 250
    assert snapshot.cache_hit_rate == pytest.approx(0.25)
    assert snapshot.error_rate == pytest.approx(1 / 3)
    assert snapshot.average_response_time_ms == pytest.approx(200.0)
    assert snapshot.last_error == "ValueError: boom"


def test_latency_percentiles():
    metrics = MetricsRegistry()
    for latency in range(1, 101):
        metrics.record_success("lead_scoring", float(latency))
    snapshot = metrics.snapshot()
    assert snapshot.p50_latency_ms == 50.0
    assert 95.0 <= snapshot.p95_latency_ms <= 96.0


def test_consecutive_failures_reset_on_success():
    metrics = MetricsRegistry()
    metrics.record_failure("lead_scoring", RuntimeError("one"))
    metrics.record_failure("lead_scoring", RuntimeError("two"))
    assert metrics.snapshot().consecutive_failures == 2
    metrics.record_success("lead_scoring", 10.0)
    assert metrics.snapshot().consecutive_failures == 0
    assert metrics.recent_outcomes() == [False, False, True]
    assert metrics.recent_failure_rate() == pytest.approx(2 / 3)


def test_outcome_window_is_bounded():
    metrics = MetricsRegistry(outcome_window=3)
    for _ in range(5):
        metrics.record_failure("lead_scoring", RuntimeError("x"))
    metrics.record_success("lead_scoring", 1.0)
    assert metrics.recent_outcomes() == [False, False, True]


def test_snapshot_does_not_mutate():
    metrics = MetricsRegistry()
    metrics.record_attempt("lead_scoring")
    assert metrics.snapshot() == metrics.snapshot()


def test_registries_are_independent():
    first = MetricsRegistry()
    second = MetricsRegistry()
    first.record_attempt("lead_scoring")
    assert second.snapshot().total_requests == 0


def test_prometheus_export():
    metrics = MetricsRegistry()
    metrics.record_attempt("lead_scoring")
    metrics.record_success("lead_scoring", 120.0)
    exported = metrics.export().decode("utf-8")
    assert 'leadintel_ai_requests_total{operation="lead_scoring"} 1.0' in exported
    assert "leadintel_ai_request_latency_seconds_bucket" in exported
