"""Domain Events related to AI service calls and resilience.

Examples include events for when calls are deferred by the rate limiter,
retried, fail, succeed, or are answered from the cache.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


EventHandler = Callable[[DomainEvent], None]


def log_event(event: DomainEvent) -> None:
    """Default event handler: logs the event at DEBUG level."""
    logger.debug(f"EVENT: {event}")


# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a provider call attempt is about to be made."""
    provider: str
    operation: str
    attempt_number: int = 1
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a provider call succeeds."""
    provider: str
    operation: str
    latency_ms: float
    attempts: int = 1
    request_id: Optional[str] = None
    response_summary: Optional[Any] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a provider call fails definitively (after retries)."""
    provider: str
    operation: str
    error_type: str
    error_message: str
    attempts: int = 1
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when a call waits once for the rate-limit window to roll over."""
    provider: str
    operation: str
    wait_time_seconds: float
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed attempt."""
    provider: str
    operation: str
    attempt_number: int
    delay_seconds: float
    error_type: str = ""
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheHitRecorded(DomainEvent):
    """Event triggered when a request is answered from the response cache."""
    operation: str
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
