import pytest

from leadintel.core.exceptions import UnsupportedOperationError
from leadintel.domain.models.analysis import ConversationAnalysis
from leadintel.domain.models.common import OperationKind
from leadintel.domain.models.leads import VoiceCommandResult
from leadintel.infrastructure.ai.offline.offline_caller import OfflineOutboundCaller


@pytest.fixture
def caller():
    return OfflineOutboundCaller()


@pytest.mark.asyncio
async def test_conversation_analysis(caller):
    data = await caller.call(OperationKind.CONVERSATION_ANALYSIS, {"text": "We have a budget of $10,000."})
    analysis = ConversationAnalysis.from_dict(data)
    assert "budget_mentioned" in analysis.signal_types


@pytest.mark.asyncio
async def test_voice_command(caller):
    data = await caller.call(OperationKind.VOICE_COMMAND, {"text": "Call John Smith", "userId": "u1"})
    result = VoiceCommandResult.from_dict(data)
    assert result.intent == "call_lead"
    assert result.entities["lead_name"] == "John Smith"


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", [
    OperationKind.LEAD_SCORING,
    OperationKind.SOCIAL_RESEARCH,
    OperationKind.PREDICTIVE_ANALYTICS,
])
async def test_model_only_operations_are_unsupported(caller, kind):
    with pytest.raises(UnsupportedOperationError):
        await caller.call(kind, {"lead": {"id": "1"}})
