"""Domain models related to AI interactions.

An AIRequest is immutable once built and carries a fingerprint derived from
its operation kind and normalised payload; the fingerprint is the cache key.
An AIResponse is what the cache stores after a successful outbound call.
"""

import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, TypedDict

from .common import Fingerprint, OperationKind, TokenUsage, clamp

_WHITESPACE_RE = re.compile(r"\s+")


class ChatMessage(TypedDict):
    """Represents a message structure expected by chat completion APIs."""
    role: str
    content: str


def normalize_payload(value: Any) -> Any:
    """Returns a JSON-compatible copy of ``value`` with strings normalised.

    Strings are stripped and inner whitespace runs collapse to one space, so
    two requests that differ only in formatting share a fingerprint.
    """
    if isinstance(value, str):
        return _WHITESPACE_RE.sub(" ", value).strip()
    if isinstance(value, Mapping):
        return {str(key): normalize_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_payload(item) for item in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def compute_fingerprint(kind: OperationKind, payload: Dict[str, Any]) -> Fingerprint:
    """Stable hash of an operation kind and an already normalised payload."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    digest = hashlib.sha256(f"{kind.value}\n{canonical}".encode("utf-8")).hexdigest()
    return Fingerprint(digest)


@dataclass(frozen=True)
class AIRequest:
    """A typed request to the provider. The payload is normalised on creation."""
    kind: OperationKind
    payload: Dict[str, Any]
    fingerprint: Fingerprint = field(init=False)

    def __post_init__(self) -> None:
        normalized = normalize_payload(self.payload)
        object.__setattr__(self, "payload", normalized)
        object.__setattr__(self, "fingerprint", compute_fingerprint(self.kind, normalized))


@dataclass(frozen=True)
class AIResponse:
    """Successful provider output for one request, as stored in the cache."""
    kind: OperationKind
    payload: Dict[str, Any]
    confidence: float
    produced_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    model_name: Optional[str] = None
    token_usage: Optional[TokenUsage] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp(self.confidence))
