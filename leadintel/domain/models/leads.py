"""Result types for the lead-centric operations.

Each type parses the camelCase JSON the provider is asked to return and
exposes ``to_dict`` for serialisation. Parsing raises KeyError, TypeError or
ValueError on malformed input; the orchestrator turns these into
ProviderResponseError.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .analysis import str_tuple
from .common import LeadId, clamp


def grade_for_score(score: float) -> str:
    """Letter grade for a 0-100 lead score."""
    if score >= 80:
        return "A"
    if score >= 60:
        return "B"
    if score >= 40:
        return "C"
    return "D"


@dataclass(frozen=True)
class ScoredLead:
    lead_id: LeadId
    score: float
    confidence: float
    grade: str = ""
    factors: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        score = clamp(self.score, 0.0, 100.0)
        object.__setattr__(self, "score", score)
        object.__setattr__(self, "confidence", clamp(self.confidence))
        if not self.grade:
            object.__setattr__(self, "grade", grade_for_score(score))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoredLead":
        return cls(
            lead_id=LeadId(str(data["leadId"])),
            score=float(data["score"]),
            confidence=float(data.get("confidence", 0.5)),
            grade=str(data.get("grade") or ""),
            factors=str_tuple(data.get("factors", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leadId": self.lead_id,
            "score": self.score,
            "grade": self.grade,
            "confidence": self.confidence,
            "factors": list(self.factors),
        }


@dataclass(frozen=True)
class VoiceCommandResult:
    intent: str
    entities: Dict[str, str] = field(default_factory=dict)
    confidence: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp(self.confidence))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VoiceCommandResult":
        entities = data.get("entities") or {}
        if not isinstance(entities, Mapping):
            raise TypeError("entities must be an object")
        return cls(
            intent=str(data["intent"]),
            entities={str(key): str(value) for key, value in entities.items() if value is not None},
            confidence=float(data.get("confidence", 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "entities": dict(self.entities), "confidence": self.confidence}


@dataclass(frozen=True)
class SocialResearchResult:
    profiles: Tuple[Dict[str, Any], ...] = ()
    interests: Tuple[str, ...] = ()
    opportunities: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SocialResearchResult":
        profiles = data.get("profiles", [])
        if not isinstance(profiles, list) or not all(isinstance(p, Mapping) for p in profiles):
            raise TypeError("profiles must be a list of objects")
        return cls(
            profiles=tuple(dict(profile) for profile in profiles),
            interests=str_tuple(data.get("interests", [])),
            opportunities=str_tuple(data.get("opportunities", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profiles": [dict(profile) for profile in self.profiles],
            "interests": list(self.interests),
            "opportunities": list(self.opportunities),
        }


@dataclass(frozen=True)
class LeadPrediction:
    conversion_probability: float
    expected_value: float
    time_to_close_days: Optional[float]
    confidence: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "conversion_probability", clamp(self.conversion_probability))
        object.__setattr__(self, "confidence", clamp(self.confidence))
        if self.expected_value < 0:
            raise ValueError("expected_value must not be negative")
        if self.time_to_close_days is not None and self.time_to_close_days < 0:
            raise ValueError("time_to_close_days must not be negative")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LeadPrediction":
        time_to_close = data.get("timeToClose")
        return cls(
            conversion_probability=float(data["conversionProbability"]),
            expected_value=float(data.get("expectedValue", 0.0)),
            time_to_close_days=float(time_to_close) if time_to_close is not None else None,
            confidence=float(data.get("confidence", 0.5)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversionProbability": self.conversion_probability,
            "expectedValue": self.expected_value,
            "timeToClose": self.time_to_close_days,
            "confidence": self.confidence,
        }
