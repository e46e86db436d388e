"""Prompt construction and response decoding shared by the provider callers.

Each operation kind has a system prompt describing the JSON object the model
must return. The keys match the ``from_dict`` parsers of the result types.
"""

import json
import logging
from typing import Any, Dict, List

from leadintel.core.exceptions import ProviderResponseError
from leadintel.domain.models.ai import ChatMessage
from leadintel.domain.models.common import OperationKind

logger = logging.getLogger(__name__)

_JSON_ONLY = "Respond with a single JSON object and nothing else."

SYSTEM_PROMPTS: Dict[OperationKind, str] = {
    OperationKind.LEAD_SCORING: (
        "You are a sales lead scoring assistant. Score every lead from 0 to 100 by its "
        "likelihood to convert. Return {\"leads\": [{\"leadId\": string, \"score\": number, "
        "\"grade\": \"A\"|\"B\"|\"C\"|\"D\", \"confidence\": number between 0 and 1, "
        "\"factors\": [string]}]} with exactly one entry per input lead, using the input ids. "
        + _JSON_ONLY
    ),
    OperationKind.CONVERSATION_ANALYSIS: (
        "You analyse sales conversations. Return {\"sentiment\": {\"overall\": "
        "\"positive\"|\"negative\"|\"neutral\", \"score\": number between -1 and 1, "
        "\"confidence\": number}, \"intent\": {\"primaryIntent\": string, \"confidence\": number, "
        "\"urgency\": \"low\"|\"medium\"|\"high\"}, \"topics\": {\"mainTopics\": [string], "
        "\"keywords\": [string], \"entities\": {\"people\": [string], \"organizations\": [string]}}, "
        "\"recommendations\": [string]}. A preliminary rule-based analysis is included for "
        "reference. " + _JSON_ONLY
    ),
    OperationKind.VOICE_COMMAND: (
        "You interpret spoken CRM commands. Return {\"intent\": one of \"call_lead\", "
        "\"schedule_meeting\", \"add_note\", \"search_lead\", \"get_insights\", \"send_email\", "
        "\"create_task\", \"unknown\"; \"entities\": {\"lead_name\", \"company\", \"date\", "
        "\"time\", \"content\" as strings, only those present}; \"confidence\": number between 0 and 1}. "
        + _JSON_ONLY
    ),
    OperationKind.SOCIAL_RESEARCH: (
        "You research a sales lead's public social media presence. Return {\"profiles\": "
        "[{\"platform\": string, \"url\": string, \"summary\": string}], \"interests\": [string], "
        "\"opportunities\": [string]}. " + _JSON_ONLY
    ),
    OperationKind.PREDICTIVE_ANALYTICS: (
        "You predict the outcome of a sales lead from its profile and activity history. Return "
        "{\"conversionProbability\": number between 0 and 1, \"expectedValue\": number, "
        "\"timeToClose\": number of days or null, \"confidence\": number between 0 and 1}. "
        + _JSON_ONLY
    ),
}


def build_messages(kind: OperationKind, payload: Dict[str, Any]) -> List[ChatMessage]:
    """Builds the chat messages for one request."""
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPTS[kind]),
        ChatMessage(role="user", content=json.dumps(payload, ensure_ascii=False, sort_keys=True)),
    ]


def decode_json_object(content: str) -> Dict[str, Any]:
    """Decodes the model's reply, tolerating a surrounding Markdown code fence.

    Raises:
        ProviderResponseError: If the reply is not a JSON object.
    """
    text = (content or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
        text = text.strip()
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"Undecodable provider reply: {text[:200]!r}")
        raise ProviderResponseError(f"Provider reply is not valid JSON: {e}") from e
    if not isinstance(decoded, dict):
        raise ProviderResponseError(f"Provider reply is a {type(decoded).__name__}, expected an object")
    return decoded
