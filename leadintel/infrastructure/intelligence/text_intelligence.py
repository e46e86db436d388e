"""Rule-based conversation analysis.

``TextIntelligenceEngine.analyze`` is a pure, deterministic function from raw
text to a ConversationAnalysis: sentiment, intent and urgency, buying
signals, keywords and named entities, then recommendations, risk flags and
next-best actions from the rule table. It makes no external calls and holds
no mutable state, so one instance can be shared freely.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Tuple

from leadintel.domain.models.analysis import (
    BuyingSignal,
    ConversationAnalysis,
    EntityExtraction,
    IntentAnalysis,
    SentimentAnalysis,
    TopicExtraction,
)

from . import lexicons
from .rules import NEXT_BEST_ACTION, RECOMMENDATION, RISK_FLAG, AnalysisState, apply_rules

logger = logging.getLogger(__name__)

POLARITY_THRESHOLD = 0.2
MAX_KEYWORDS = 10
MAX_MAIN_TOPICS = 5
_SPACE_RE = re.compile(r"\s+")


def _normalize_phrase(text: str) -> str:
    return _SPACE_RE.sub(" ", text.strip().lower())


class TextIntelligenceEngine:
    """Deterministic analyzer for sales conversation text."""

    def analyze(self, text: str) -> ConversationAnalysis:
        """Runs the full analysis pipeline over ``text``."""
        text = text or ""
        sentiment = self.analyze_sentiment(text)
        intent = self.analyze_intent(text)
        signals = self.extract_buying_signals(text)
        topics = self.extract_topics(text)

        state = AnalysisState(
            sentiment=sentiment,
            intent=intent,
            signal_types=frozenset(signal.type for signal in signals),
        )
        derived = apply_rules(state)
        logger.debug(
            f"Analyzed {len(text)} chars: sentiment={sentiment.overall}, "
            f"intent={intent.primary_intent}, signals={len(signals)}"
        )
        return ConversationAnalysis(
            sentiment=sentiment,
            intent=intent,
            buying_signals=signals,
            topics=topics,
            recommendations=derived[RECOMMENDATION],
            risk_flags=derived[RISK_FLAG],
            next_best_actions=derived[NEXT_BEST_ACTION],
        )

    def analyze_sentiment(self, text: str) -> SentimentAnalysis:
        words = lexicons.WORD_RE.findall(text.lower())
        if not words:
            return SentimentAnalysis(overall="neutral", score=0.0, confidence=0.0)

        positive = len(lexicons.POSITIVE_PATTERN.findall(text))
        negative = len(lexicons.NEGATIVE_PATTERN.findall(text))
        matches = positive + negative
        score = (positive - negative) / max(1, matches)
        score = max(-1.0, min(1.0, score))

        if score > POLARITY_THRESHOLD:
            overall = "positive"
        elif score < -POLARITY_THRESHOLD:
            overall = "negative"
        else:
            overall = "neutral"

        confidence = min(1.0, 0.5 * min(1.0, matches / 3) + matches / len(words))
        return SentimentAnalysis(overall=overall, score=score, confidence=confidence)

    def analyze_intent(self, text: str) -> IntentAnalysis:
        urgency = self._urgency(text)
        for name, pattern in lexicons.INTENT_PATTERNS:
            found = pattern.findall(text)
            if not found:
                continue
            strength = sum(1.5 if " " in _normalize_phrase(match) else 1.0 for match in found)
            return IntentAnalysis(primary_intent=name, confidence=min(0.95, 0.25 * strength), urgency=urgency)
        return IntentAnalysis(primary_intent="general", confidence=0.0, urgency=urgency)

    def _urgency(self, text: str) -> str:
        if lexicons.STRONG_URGENCY_PATTERN.search(text):
            return "high"
        if lexicons.WEAK_URGENCY_PATTERN.search(text):
            return "medium"
        return "low"

    def extract_buying_signals(self, text: str) -> Tuple[BuyingSignal, ...]:
        """One signal per distinct matched phrase, strongest first."""
        # (confidence, first position, signal)
        ranked: List[Tuple[float, int, BuyingSignal]] = []
        for signal_type, pattern in lexicons.BUYING_SIGNAL_PATTERNS.items():
            seen: Dict[str, List] = {}
            for match in pattern.finditer(text):
                key = _normalize_phrase(match.group(0))
                if key in seen:
                    seen[key][2] += 1
                else:
                    seen[key] = [match.start(), match.group(0), 1]
            for key, (position, evidence, count) in seen.items():
                strong = bool(lexicons.CURRENCY_RE.fullmatch(evidence)) or " " in key
                confidence = min(0.95, (0.8 if strong else 0.5) + 0.1 * (count - 1))
                ranked.append((confidence, position, BuyingSignal(
                    type=signal_type, confidence=confidence, evidence=evidence,
                )))
        ranked.sort(key=lambda item: (-item[0], item[1]))
        return tuple(signal for _, _, signal in ranked)

    def extract_keywords(self, text: str) -> Tuple[str, ...]:
        tokens = [
            token for token in lexicons.WORD_RE.findall(text.lower())
            if len(token) >= 3 and token.isalpha() and token not in lexicons.STOPWORDS
        ]
        counts = Counter(tokens)
        first_seen: Dict[str, int] = {}
        for index, token in enumerate(tokens):
            first_seen.setdefault(token, index)
        ranked = sorted(counts, key=lambda token: (-counts[token], first_seen[token]))
        return tuple(ranked[:MAX_KEYWORDS])

    def extract_entities(self, text: str) -> EntityExtraction:
        people: Dict[str, None] = {}
        organizations: Dict[str, None] = {}
        for match in lexicons.CAPITALIZED_RUN_RE.finditer(text):
            words = match.group(0).split()
            while words and words[0].lower() in lexicons.STOPWORDS:
                words.pop(0)
            suffix_positions = [i for i, word in enumerate(words) if word in lexicons.CORPORATE_SUFFIXES]
            if suffix_positions and suffix_positions[-1] > 0:
                organizations.setdefault(" ".join(words[:suffix_positions[-1] + 1]), None)
            elif not suffix_positions and len(words) >= 2 and all(not word.isupper() for word in words):
                people.setdefault(" ".join(words), None)
        return EntityExtraction(people=tuple(people), organizations=tuple(organizations))

    def extract_topics(self, text: str) -> TopicExtraction:
        keywords = self.extract_keywords(text)
        return TopicExtraction(
            main_topics=keywords[:MAX_MAIN_TOPICS],
            keywords=keywords,
            entities=self.extract_entities(text),
        )
