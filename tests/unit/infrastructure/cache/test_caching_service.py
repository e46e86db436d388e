import pytest

from leadintel.domain.models.ai import AIResponse
from leadintel.domain.models.common import Fingerprint, OperationKind
from leadintel.infrastructure.cache.caching_service import ResponseCache


def response(value="v"):
    return AIResponse(kind=OperationKind.VOICE_COMMAND, payload={"intent": value}, confidence=0.9)


@pytest.fixture
def cache(clock):
    return ResponseCache(max_items=3, default_ttl=10.0, clock=clock)


@pytest.mark.asyncio
async def test_put_and_get(cache):
    stored = response()
    await cache.put(Fingerprint("a"), stored)
    assert await cache.get(Fingerprint("a")) is stored
    assert await cache.get(Fingerprint("missing")) is None
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.5


@pytest.mark.asyncio
async def test_entry_expires_after_ttl(cache, clock):
    await cache.put(Fingerprint("a"), response(), ttl=5.0)
    clock.advance(5.0)
    # Still valid exactly at the expiry instant.
    assert await cache.get(Fingerprint("a")) is not None
    clock.advance(0.1)
    assert await cache.get(Fingerprint("a")) is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_default_ttl_applies(cache, clock):
    await cache.put(Fingerprint("a"), response())
    clock.advance(10.5)
    assert await cache.get(Fingerprint("a")) is None


@pytest.mark.asyncio
async def test_evicts_oldest_entry_when_full(cache):
    for key in ("a", "b", "c", "d"):
        await cache.put(Fingerprint(key), response(key))
    assert len(cache) == 3
    assert await cache.get(Fingerprint("a")) is None
    assert await cache.get(Fingerprint("d")) is not None
    assert cache.stats()["evictions"] == 1


@pytest.mark.asyncio
async def test_reinserting_moves_entry_to_the_end(cache):
    for key in ("a", "b", "c"):
        await cache.put(Fingerprint(key), response(key))
    await cache.put(Fingerprint("a"), response("a2"))
    await cache.put(Fingerprint("d"), response("d"))
    assert await cache.get(Fingerprint("b")) is None
    cached = await cache.get(Fingerprint("a"))
    assert cached.payload == {"intent": "a2"}


@pytest.mark.asyncio
async def test_delete_and_clear(cache):
    await cache.put(Fingerprint("a"), response())
    await cache.put(Fingerprint("b"), response())
    await cache.delete(Fingerprint("a"))
    await cache.delete(Fingerprint("never-stored"))
    assert len(cache) == 1
    await cache.clear()
    assert len(cache) == 0
    assert cache.stats()["size"] == 0


@pytest.mark.asyncio
async def test_purge_expired(cache, clock):
    await cache.put(Fingerprint("short"), response(), ttl=1.0)
    await cache.put(Fingerprint("long"), response(), ttl=100.0)
    clock.advance(2.0)
    assert await cache.purge_expired() == 1
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_non_positive_ttl_rejected(cache):
    with pytest.raises(ValueError):
        await cache.put(Fingerprint("a"), response(), ttl=0)


def test_invalid_construction():
    with pytest.raises(ValueError):
        ResponseCache(max_items=0)
    with pytest.raises(ValueError):
        ResponseCache(default_ttl=0)
