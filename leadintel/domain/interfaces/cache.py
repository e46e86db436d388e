"""Interface for the response cache.

Defines the contract for storing, retrieving and evicting provider responses
keyed by request fingerprint, with per-entry TTLs.
"""

import abc
from typing import Any, Dict, Optional

from ..models.ai import AIResponse
from ..models.common import Fingerprint


class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def get(self, key: Fingerprint) -> Optional[AIResponse]:
        """Retrieves a cached response asynchronously.

        Args:
            key: The request fingerprint to look up.

        Returns:
            The cached response if present and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def put(self, key: Fingerprint, value: AIResponse, ttl: Optional[float] = None) -> None:
        """Stores a response asynchronously.

        Args:
            key: The request fingerprint to store the response under.
            value: The response to store.
            ttl: Time-to-live in seconds (uses the cache default if None).
        """
        pass

    @abc.abstractmethod
    async def delete(self, key: Fingerprint) -> None:
        """Deletes an entry if present."""
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Removes every entry."""
        pass

    @abc.abstractmethod
    def stats(self) -> Dict[str, Any]:
        """Returns size and hit/miss counters without mutating the cache."""
        pass
