"""Outbound caller that answers from the rule-based engines, without a network.

Serves conversation analysis and voice commands, the two operations the
deterministic engines can handle. Other operations need a language model and
raise UnsupportedOperationError, which the retry policy does not retry.
"""

import logging
from typing import Any, Dict, Optional

from leadintel.core.exceptions import UnsupportedOperationError
from leadintel.domain.interfaces.outbound_caller import OutboundCaller
from leadintel.domain.models.common import OperationKind
from leadintel.infrastructure.intelligence.text_intelligence import TextIntelligenceEngine
from leadintel.infrastructure.intelligence.voice_commands import parse_voice_command

logger = logging.getLogger(__name__)


class OfflineOutboundCaller(OutboundCaller):
    """Rule-based stand-in for a provider."""

    provider_name = "offline"
    model = "rules"

    def __init__(self, engine: Optional[TextIntelligenceEngine] = None):
        self.engine = engine or TextIntelligenceEngine()
        logger.info("OfflineOutboundCaller initialized (rule-based analysis only)")

    async def call(self, kind: OperationKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        if kind is OperationKind.CONVERSATION_ANALYSIS:
            return self.engine.analyze(payload.get("text", "")).to_dict()
        if kind is OperationKind.VOICE_COMMAND:
            return parse_voice_command(payload.get("text", "")).to_dict()
        raise UnsupportedOperationError(f"The offline caller cannot serve {kind.value}; configure a provider API key")
