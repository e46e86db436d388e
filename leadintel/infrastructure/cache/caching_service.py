"""Concrete implementation of the response cache.

Keeps provider responses in memory keyed by request fingerprint, each with its
own expiry time. Capacity pressure evicts the earliest inserted entry (dict
insertion order), and expired entries are dropped lazily on access or in bulk
with ``purge_expired``.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from leadintel.domain.interfaces.cache import CacheService
from leadintel.domain.models.ai import AIResponse
from leadintel.domain.models.common import Fingerprint

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 500
DEFAULT_TTL_SECONDS = 300.0


@dataclass
class CacheEntry:
    """Internal representation of a cache entry with expiry."""
    fingerprint: Fingerprint
    response: AIResponse
    inserted_at: float
    expires_at: float


class ResponseCache(CacheService):
    """Bounded in-memory cache of AI responses with per-entry TTL."""

    def __init__(
        self,
        max_items: int = DEFAULT_MAX_ITEMS,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the cache.

        Args:
            max_items: Maximum number of entries held at once.
            default_ttl: TTL in seconds used when ``put`` gets none.
            clock: Monotonic time source, replaceable in tests.
        """
        if max_items < 1:
            raise ValueError("max_items must be >= 1")
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        self.max_items = max_items
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[Fingerprint, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        logger.info(f"ResponseCache initialized (ttl={default_ttl}s, max={max_items})")

    async def get(self, key: Fingerprint) -> Optional[AIResponse]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache miss for key: {key[:12]}")
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Cache entry expired for key: {key[:12]}")
                return None
            self._hits += 1
            logger.debug(f"Cache hit for key: {key[:12]}")
            return entry.response

    async def put(self, key: Fingerprint, value: AIResponse, ttl: Optional[float] = None) -> None:
        effective_ttl = self.default_ttl if ttl is None else ttl
        if effective_ttl <= 0:
            raise ValueError("ttl must be > 0")
        async with self._lock:
            now = self._clock()
            # Re-inserting moves the key to the end of the eviction order.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(
                fingerprint=key, response=value, inserted_at=now, expires_at=now + effective_ttl,
            )
            while len(self._entries) > self.max_items:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                self._evictions += 1
                logger.debug(f"Evicted oldest cache entry: {oldest_key[:12]}")
        logger.debug(f"Stored response in cache: key={key[:12]}, ttl={effective_ttl}s")

    async def delete(self, key: Fingerprint) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
        logger.info("Response cache cleared")

    async def purge_expired(self) -> int:
        """Removes every expired entry and returns how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_items": self.max_items,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }
