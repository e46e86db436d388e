"""Defines common Value Objects used across different domain contexts.

These objects represent simple values such as fingerprints, token counts and
identifiers, ensuring consistency and type safety.
"""

from enum import Enum
from typing import NewType, TypedDict

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
Fingerprint = NewType("Fingerprint", str)  # SHA-256 hex of a normalised request
LeadId = NewType("LeadId", str)
UserId = NewType("UserId", str)

# === Token Management ===
TokenCount = NewType("TokenCount", int)


class TokenUsage(TypedDict):
    """Represents token usage information from an AI call."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class OperationKind(str, Enum):
    """The kinds of request the orchestrator accepts."""

    LEAD_SCORING = "lead_scoring"
    CONVERSATION_ANALYSIS = "conversation_analysis"
    VOICE_COMMAND = "voice_command"
    SOCIAL_RESEARCH = "social_research"
    PREDICTIVE_ANALYTICS = "predictive_analytics"


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Restricts ``value`` to the closed interval [low, high]."""
    return max(low, min(high, float(value)))
