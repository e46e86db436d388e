"""leadintel: AI orchestration and conversation intelligence for lead management.

Mediates calls to an external language-model provider (rate limiting, caching,
retries, metrics) and ships a deterministic rule-based text analysis engine
used as an offline fallback and as an enrichment layer around model calls.
"""

__version__ = "0.3.0"
