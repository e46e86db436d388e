"""Domain models produced by conversation analysis.

A ConversationAnalysis is a pure derived value: it has no identity and is
recomputed per call. Sequences are tuples and are never None, so callers can
iterate every field of an analysis of empty text.

``to_dict``/``from_dict`` use the camelCase keys of the upstream JSON contract
(``buyingSignals``, ``riskFlags``, ...), which is also the shape requested
from the provider.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Tuple

from .common import clamp

SENTIMENT_LABELS = ("positive", "negative", "neutral")
URGENCY_LEVELS = ("low", "medium", "high")
BUYING_SIGNAL_TYPES = (
    "budget_mentioned",
    "timeline_discussed",
    "decision_maker_involved",
    "competitor_comparison",
    "pain_point_expressed",
)


def str_tuple(values: Iterable[Any]) -> Tuple[str, ...]:
    """Converts a list of strings to a tuple, rejecting non-string items."""
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise TypeError(f"Expected a list of strings, got {type(values).__name__}")
    items = tuple(values)
    for item in items:
        if not isinstance(item, str):
            raise TypeError(f"Expected a string, got {type(item).__name__}")
    return items


@dataclass(frozen=True)
class SentimentAnalysis:
    overall: str
    score: float
    confidence: float

    def __post_init__(self) -> None:
        if self.overall not in SENTIMENT_LABELS:
            raise ValueError(f"Unknown sentiment label: {self.overall!r}")
        score = clamp(self.score, -1.0, 1.0)
        # The sign of the score must agree with a non-neutral label.
        if (self.overall == "positive" and score <= 0) or (self.overall == "negative" and score >= 0):
            raise ValueError(f"Sentiment score {score} contradicts label {self.overall!r}")
        object.__setattr__(self, "score", score)
        object.__setattr__(self, "confidence", clamp(self.confidence))


@dataclass(frozen=True)
class IntentAnalysis:
    primary_intent: str
    confidence: float
    urgency: str = "low"

    def __post_init__(self) -> None:
        if not self.primary_intent:
            raise ValueError("primary_intent must be a non-empty string")
        if self.urgency not in URGENCY_LEVELS:
            raise ValueError(f"Unknown urgency level: {self.urgency!r}")
        object.__setattr__(self, "confidence", clamp(self.confidence))


@dataclass(frozen=True)
class BuyingSignal:
    type: str
    confidence: float
    evidence: str

    def __post_init__(self) -> None:
        if self.type not in BUYING_SIGNAL_TYPES:
            raise ValueError(f"Unknown buying signal type: {self.type!r}")
        object.__setattr__(self, "confidence", clamp(self.confidence))


@dataclass(frozen=True)
class EntityExtraction:
    people: Tuple[str, ...] = ()
    organizations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TopicExtraction:
    main_topics: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    entities: EntityExtraction = field(default_factory=EntityExtraction)


@dataclass(frozen=True)
class ConversationAnalysis:
    """Structured result of analysing one piece of conversation text."""
    sentiment: SentimentAnalysis
    intent: IntentAnalysis
    buying_signals: Tuple[BuyingSignal, ...] = ()
    topics: TopicExtraction = field(default_factory=TopicExtraction)
    recommendations: Tuple[str, ...] = ()
    risk_flags: Tuple[str, ...] = ()
    next_best_actions: Tuple[str, ...] = ()

    @property
    def signal_types(self) -> Tuple[str, ...]:
        """Distinct buying-signal types, in order of first appearance."""
        return tuple(dict.fromkeys(signal.type for signal in self.buying_signals))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": {
                "overall": self.sentiment.overall,
                "score": self.sentiment.score,
                "confidence": self.sentiment.confidence,
            },
            "intent": {
                "primaryIntent": self.intent.primary_intent,
                "confidence": self.intent.confidence,
                "urgency": self.intent.urgency,
            },
            "buyingSignals": [
                {"type": s.type, "confidence": s.confidence, "evidence": s.evidence}
                for s in self.buying_signals
            ],
            "topics": {
                "mainTopics": list(self.topics.main_topics),
                "keywords": list(self.topics.keywords),
                "entities": {
                    "people": list(self.topics.entities.people),
                    "organizations": list(self.topics.entities.organizations),
                },
            },
            "recommendations": list(self.recommendations),
            "riskFlags": list(self.risk_flags),
            "nextBestActions": list(self.next_best_actions),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversationAnalysis":
        """Builds an analysis from its camelCase dict form.

        Raises:
            KeyError, TypeError, ValueError: If the dict is malformed.
        """
        sentiment = data["sentiment"]
        intent = data["intent"]
        topics = data.get("topics") or {}
        entities = topics.get("entities") or {}
        return cls(
            sentiment=SentimentAnalysis(
                overall=sentiment["overall"],
                score=float(sentiment["score"]),
                confidence=float(sentiment.get("confidence", 0.0)),
            ),
            intent=IntentAnalysis(
                primary_intent=intent["primaryIntent"],
                confidence=float(intent.get("confidence", 0.0)),
                urgency=intent.get("urgency", "low"),
            ),
            buying_signals=tuple(
                BuyingSignal(
                    type=signal["type"],
                    confidence=float(signal["confidence"]),
                    evidence=str(signal.get("evidence", "")),
                )
                for signal in data.get("buyingSignals", [])
            ),
            topics=TopicExtraction(
                main_topics=str_tuple(topics.get("mainTopics", [])),
                keywords=str_tuple(topics.get("keywords", [])),
                entities=EntityExtraction(
                    people=str_tuple(entities.get("people", [])),
                    organizations=str_tuple(entities.get("organizations", [])),
                ),
            ),
            recommendations=str_tuple(data.get("recommendations", [])),
            risk_flags=str_tuple(data.get("riskFlags", [])),
            next_best_actions=str_tuple(data.get("nextBestActions", [])),
        )
