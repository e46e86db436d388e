"""Rule table producing recommendations, risk flags and next-best actions.

Each rule pairs a predicate over the analysis state with the messages it
contributes. Rules are evaluated independently; every firing rule
contributes, duplicates are dropped and declaration order is kept.
"""

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, NamedTuple, Tuple

from leadintel.domain.models.analysis import IntentAnalysis, SentimentAnalysis

RECOMMENDATION = "recommendation"
RISK_FLAG = "risk_flag"
NEXT_BEST_ACTION = "next_best_action"


@dataclass(frozen=True)
class AnalysisState:
    """The facts the rules are evaluated over."""
    sentiment: SentimentAnalysis
    intent: IntentAnalysis
    signal_types: FrozenSet[str]

    def has(self, signal_type: str) -> bool:
        return signal_type in self.signal_types


class Rule(NamedTuple):
    kind: str
    predicate: Callable[[AnalysisState], bool]
    messages: Tuple[str, ...]


def _intent_is(*names: str) -> Callable[[AnalysisState], bool]:
    return lambda s: s.intent.primary_intent in names


RULES: Tuple[Rule, ...] = (
    # Recommendations
    Rule(RECOMMENDATION, lambda s: s.sentiment.overall == "negative", (
        "Address concerns and objections proactively",
        "Schedule a call to discuss issues in detail",
    )),
    Rule(RECOMMENDATION, lambda s: s.sentiment.overall == "positive", (
        "Strike while the iron is hot and accelerate the engagement",
        "Prepare a proposal and outline next steps",
    )),
    Rule(RECOMMENDATION, _intent_is("purchase"), (
        "Prepare contract and pricing information",
        "Schedule an implementation planning call",
    )),
    Rule(RECOMMENDATION, _intent_is("demo"), (
        "Schedule a personalized demo session",
        "Prepare use cases relevant to their business",
    )),
    Rule(RECOMMENDATION, _intent_is("pricing"), (
        "Prepare a pricing proposal",
        "Highlight ROI and value to justify the investment",
    )),
    Rule(RECOMMENDATION, lambda s: s.has("budget_mentioned"), (
        "Align the proposal with their stated budget",
    )),
    Rule(RECOMMENDATION, lambda s: s.has("timeline_discussed"), (
        "Confirm their timeline and map out implementation milestones",
    )),
    Rule(RECOMMENDATION, lambda s: s.has("decision_maker_involved"), (
        "Prepare material for the decision makers involved",
    )),
    Rule(RECOMMENDATION, lambda s: s.has("pain_point_expressed"), (
        "Tie the solution directly to the pain points they described",
    )),

    # Risk flags
    Rule(RISK_FLAG, lambda s: s.sentiment.overall == "negative" and s.sentiment.confidence >= 0.7, (
        "High negative sentiment detected",
    )),
    Rule(RISK_FLAG, lambda s: s.intent.primary_intent == "objection" and s.intent.confidence > 0.6, (
        "Strong objections raised",
    )),
    Rule(RISK_FLAG, lambda s: s.has("competitor_comparison"), (
        "Actively comparing with competitors",
    )),
    Rule(RISK_FLAG, lambda s: s.intent.urgency == "low" and len(s.signal_types) < 2, (
        "Low engagement and buying intent",
    )),

    # Next best actions
    Rule(NEXT_BEST_ACTION, lambda s: s.intent.primary_intent == "purchase" and s.has("budget_mentioned"), (
        "Send contract and close the deal",
        "Schedule implementation kickoff",
    )),
    Rule(NEXT_BEST_ACTION, lambda s: s.intent.primary_intent == "purchase" and not s.has("budget_mentioned"), (
        "Send a tailored proposal and confirm budget",
    )),
    Rule(NEXT_BEST_ACTION, lambda s: len(s.signal_types) >= 3, (
        "Send contract and close the deal",
    )),
    Rule(NEXT_BEST_ACTION, _intent_is("demo", "evaluate"), (
        "Schedule a product demo",
        "Send relevant case studies",
    )),
    Rule(NEXT_BEST_ACTION, _intent_is("pricing"), (
        "Prepare a customized pricing proposal",
    )),
    Rule(NEXT_BEST_ACTION, lambda s: len(s.signal_types) < 2, (
        "Send educational content",
        "Schedule a discovery call",
    )),
    Rule(NEXT_BEST_ACTION, lambda s: s.sentiment.overall == "negative", (
        "Address concerns immediately",
        "Schedule a problem-solving session",
    )),
)


def apply_rules(state: AnalysisState, rules: Tuple[Rule, ...] = RULES) -> Dict[str, Tuple[str, ...]]:
    """Evaluates every rule and collects messages per kind, deduplicated in order."""
    collected: Dict[str, Dict[str, None]] = {
        RECOMMENDATION: {},
        RISK_FLAG: {},
        NEXT_BEST_ACTION: {},
    }
    for rule in rules:
        if rule.predicate(state):
            bucket = collected.setdefault(rule.kind, {})
            for message in rule.messages:
                bucket.setdefault(message, None)
    return {kind: tuple(messages) for kind, messages in collected.items()}
