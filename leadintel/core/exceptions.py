"""Exceptions raised by the AI service core.

Every error that crosses the orchestrator boundary derives from
AIServiceError, so callers can handle the whole family with one clause.
"""

from typing import Optional


class AIServiceError(Exception):
    """Base class for all AI service errors."""


class ConfigurationError(AIServiceError):
    """Raised when configuration values are missing or invalid."""


class ValidationError(AIServiceError):
    """Raised when a request payload is malformed.

    Raised before any cache, rate-limiter or provider interaction and never
    counted in metrics.
    """


class RateLimitedError(AIServiceError):
    """Raised when the rate limiter rejects a request."""

    def __init__(self, retry_after: float, message: Optional[str] = None):
        self.retry_after = max(0.0, retry_after)
        super().__init__(message or f"Rate limit exceeded. Retry after {self.retry_after:.2f}s")


class ProviderError(AIServiceError):
    """Raised when the outbound call failed after the retry policy gave up.

    The underlying error is available as ``__cause__``.
    """

    def __init__(self, message: str, attempts: int = 1):
        self.attempts = attempts
        super().__init__(message)


class ProviderResponseError(ProviderError):
    """Raised when the provider returned a payload that could not be parsed."""


class UnsupportedOperationError(ProviderError):
    """Raised when an outbound caller cannot serve the requested operation."""


class AITimeoutError(AIServiceError):
    """Raised when the last attempt exceeded its timeout."""

    def __init__(self, timeout: Optional[float], attempts: int = 1):
        self.timeout = timeout
        self.attempts = attempts
        super().__init__(f"AI call timed out after {timeout}s ({attempts} attempt(s))")
