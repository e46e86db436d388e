"""Response cache implementation.

Provides an in-memory implementation of the CacheService interface with
per-entry TTLs and insertion-order eviction.
Bounded Context: Cache Management
"""
