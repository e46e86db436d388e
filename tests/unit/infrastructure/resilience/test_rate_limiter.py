import asyncio

import pytest

from leadintel.infrastructure.resilience.rate_limiter import RateLimiter


@pytest.fixture
def limiter(clock):
    return RateLimiter(requests_per_minute=3, tokens_per_minute=100, window_seconds=60.0, clock=clock)


@pytest.mark.asyncio
async def test_admits_up_to_request_limit(limiter, clock):
    for _ in range(3):
        assert (await limiter.admit(10)).admitted

    clock.advance(15)
    rejected = await limiter.admit(10)
    assert not rejected.admitted
    assert rejected.retry_after == pytest.approx(45.0)


@pytest.mark.asyncio
async def test_token_budget(limiter):
    assert (await limiter.admit(60)).admitted
    assert not (await limiter.admit(50)).admitted
    # A rejected admission charges nothing, so a smaller request still fits.
    assert (await limiter.admit(40)).admitted
    status = limiter.status()
    assert status["request_count"] == 2
    assert status["token_count"] == 100


@pytest.mark.asyncio
async def test_window_rolls_over(limiter, clock):
    for _ in range(3):
        await limiter.admit()
    assert limiter.is_saturated()

    clock.advance(60)
    assert not limiter.is_saturated()
    assert limiter.status()["request_count"] == 0
    assert (await limiter.admit(5)).admitted
    assert limiter.status()["request_count"] == 1


@pytest.mark.asyncio
async def test_status_does_not_mutate(limiter, clock):
    await limiter.admit(20)
    first = limiter.status()
    second = limiter.status()
    assert first == second
    assert first["is_limited"] is False
    assert first["retry_after"] == 0.0
    assert first["window_start"] == clock()


@pytest.mark.asyncio
async def test_status_reports_limit(limiter, clock):
    for _ in range(3):
        await limiter.admit()
    clock.advance(20)
    status = limiter.status()
    assert status["is_limited"] is True
    assert status["retry_after"] == pytest.approx(40.0)
    assert status["requests_per_minute"] == 3
    assert status["tokens_per_minute"] == 100


@pytest.mark.asyncio
async def test_negative_token_estimate_counts_as_zero(limiter):
    assert (await limiter.admit(-50)).admitted
    assert limiter.status()["token_count"] == 0


@pytest.mark.asyncio
async def test_concurrent_admissions_never_exceed_limit(clock):
    limiter = RateLimiter(requests_per_minute=5, tokens_per_minute=10000, clock=clock)
    results = await asyncio.gather(*(limiter.admit(1) for _ in range(20)))
    assert sum(1 for result in results if result.admitted) == 5
    assert limiter.status()["request_count"] == 5


@pytest.mark.parametrize("kwargs", [
    {"requests_per_minute": 0},
    {"tokens_per_minute": 0},
    {"window_seconds": 0},
])
def test_invalid_limits(kwargs):
    with pytest.raises(ValueError):
        RateLimiter(**kwargs)
