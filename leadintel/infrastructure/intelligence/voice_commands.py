"""Rule-based parsing of spoken CRM commands.

Maps a transcribed command such as "Call John Smith from Acme Corp" to an
intent and its entities. Names and companies come from the same entity
extractor the conversation analysis uses.
"""

import re
from typing import Dict, Pattern, Tuple

from leadintel.domain.models.leads import VoiceCommandResult

from .text_intelligence import TextIntelligenceEngine

UNKNOWN_INTENT = "unknown"

# Checked in order; the first matching intent wins.
VOICE_INTENTS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("schedule_meeting", re.compile(r"\b(schedule|book|set up|arrange)\b.*\b(meeting|call|appointment|demo)\b", re.I)),
    ("create_task", re.compile(r"\b(create|add|make)\s+(a\s+)?(task|reminder|to-?do)\b|\bremind me\b", re.I)),
    ("add_note", re.compile(r"\b(add|take|make|write)\s+(a\s+)?note\b|\bnote that\b", re.I)),
    ("send_email", re.compile(r"\b(send|write|draft)\b.*\b(e-?mail|message)\b|\bemail\b", re.I)),
    ("call_lead", re.compile(r"\b(call|phone|dial|ring)\b", re.I)),
    ("search_lead", re.compile(r"\b(find|search|look up|lookup|show me)\b", re.I)),
    ("get_insights", re.compile(r"\b(insights?|analy[sz]e|analysis|how is|status of|tell me about)\b", re.I)),
)

_NAME_AFTER_RE = re.compile(r"\b(?:with|call|email|to|for|about|find)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)")
_DATE_RE = re.compile(
    r"\b(today|tomorrow|next week|(?:next\s+)?(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday))\b", re.I
)
_TIME_RE = re.compile(r"\b(\d{1,2}(?::\d{2})?\s?(?:am|pm))\b", re.I)
_CONTENT_RE = re.compile(r"\b(?:note that|saying|that says|about|remind me to)\s+(.+)$", re.I)
# Sentence-initial command verbs are capitalised but are not part of a name.
_LEADING_VERB_RE = re.compile(
    r"^(call|phone|dial|ring|schedule|book|set|arrange|add|take|make|write|send|draft|find|search|look|show|create|remind|email|get|tell)\b",
    re.I,
)

_engine = TextIntelligenceEngine()


def _extract_entities(text: str, intent: str) -> Dict[str, str]:
    entities: Dict[str, str] = {}
    extracted = _engine.extract_entities(_LEADING_VERB_RE.sub(lambda m: m.group(1).lower(), text))
    if extracted.people:
        entities["lead_name"] = extracted.people[0]
    if extracted.organizations:
        entities["company"] = extracted.organizations[0]
    if "lead_name" not in entities:
        match = _NAME_AFTER_RE.search(text)
        if match and match.group(1) not in entities.get("company", ""):
            entities["lead_name"] = match.group(1)

    date = _DATE_RE.search(text)
    if date:
        entities["date"] = date.group(1).lower()
    time_match = _TIME_RE.search(text)
    if time_match:
        entities["time"] = time_match.group(1).upper()

    if intent in ("add_note", "create_task", "send_email"):
        content = _CONTENT_RE.search(text)
        if content:
            entities["content"] = content.group(1).strip().rstrip(".")
    return entities


def parse_voice_command(text: str) -> VoiceCommandResult:
    """Classifies a spoken command and extracts its entities."""
    text = (text or "").strip()
    for intent, pattern in VOICE_INTENTS:
        if pattern.search(text):
            entities = _extract_entities(text, intent)
            has_target = bool(entities.get("lead_name") or entities.get("company") or entities.get("content"))
            return VoiceCommandResult(intent=intent, entities=entities, confidence=0.8 if has_target else 0.6)
    return VoiceCommandResult(intent=UNKNOWN_INTENT, entities=_extract_entities(text, UNKNOWN_INTENT), confidence=0.2)
