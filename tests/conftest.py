import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from typer.testing import CliRunner

import leadintel.main
from leadintel.core.orchestrator import AIServiceOrchestrator
from leadintel.domain.interfaces.outbound_caller import OutboundCaller
from leadintel.domain.models.common import OperationKind
from leadintel.infrastructure.cache.caching_service import ResponseCache
from leadintel.infrastructure.config.settings import (
    AIServiceConfig,
    CacheSettings,
    RateLimitSettings,
    RetrySettings,
    clear_test_config,
)
from leadintel.infrastructure.monitoring.metrics import MetricsRegistry
from leadintel.infrastructure.optimization.token_estimator import TokenEstimator
from leadintel.infrastructure.resilience.rate_limiter import RateLimiter


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


class FakeOutboundCaller(OutboundCaller):
    """Returns queued replies (or raises queued exceptions) one call at a time.

    Once the queue is exhausted the last item is repeated.
    """

    provider_name = "fake"
    model = "fake-model"

    def __init__(self, *replies: Any, handler: Optional[Callable[[OperationKind, Dict[str, Any]], Any]] = None):
        self.replies = list(replies)
        self.handler = handler
        self.calls: List[Tuple[OperationKind, Dict[str, Any]]] = []

    async def call(self, kind: OperationKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((kind, payload))
        if self.handler is not None:
            reply = self.handler(kind, payload)
            if asyncio.iscoroutine(reply):
                reply = await reply
        else:
            index = min(len(self.calls), len(self.replies)) - 1
            reply = self.replies[index]
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_caller():
    """The FakeOutboundCaller class, for building scripted callers in tests."""
    return FakeOutboundCaller


@pytest.fixture
def token_estimator() -> TokenEstimator:
    # Character approximation: no tokenizer download during tests
    return TokenEstimator(approximate=True)


@pytest.fixture
def test_config() -> AIServiceConfig:
    return AIServiceConfig(
        max_retries=2,
        timeout=5.0,
        rate_limits=RateLimitSettings(requests_per_minute=10, tokens_per_minute=100000, window_seconds=60.0),
        caching=CacheSettings(enabled=True, ttl=300.0, max_items=50),
        retry=RetrySettings(initial_backoff=0.5, backoff_factor=2.0, max_backoff=4.0, jitter=0.0),
    )


@pytest.fixture
def events() -> List[Any]:
    return []


@pytest.fixture
def make_orchestrator(clock, token_estimator, test_config, events):
    """Factory building an orchestrator on the manual clock around a caller."""

    def _make(caller: OutboundCaller, config: Optional[AIServiceConfig] = None, **overrides: Any) -> AIServiceOrchestrator:
        config = config or test_config
        kwargs: Dict[str, Any] = dict(
            outbound_caller=caller,
            config=config,
            cache=ResponseCache(
                max_items=config.caching.max_items, default_ttl=config.caching.ttl, clock=clock,
            ),
            rate_limiter=RateLimiter(
                requests_per_minute=config.rate_limits.requests_per_minute,
                tokens_per_minute=config.rate_limits.tokens_per_minute,
                window_seconds=config.rate_limits.window_seconds,
                clock=clock,
            ),
            metrics=MetricsRegistry(),
            token_estimator=token_estimator,
            event_handler=events.append,
            sleep=clock.sleep,
        )
        kwargs.update(overrides)
        return AIServiceOrchestrator(**kwargs)

    return _make


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keeps real API keys and earlier CLI state out of every test."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    leadintel.main._dependencies.clear()
    yield
    clear_test_config()
    leadintel.main._dependencies.clear()
