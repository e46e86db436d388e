"""Interface for the provider boundary.

An OutboundCaller performs exactly one call to a language-model provider per
invocation. Retrying, caching and rate limiting are the orchestrator's
responsibility, never the caller's.
"""

import abc
from typing import Any, Dict

from ..models.common import OperationKind


class OutboundCaller(abc.ABC):
    """Abstract Base Class for a single provider call."""

    #: Short provider name used in logs and events (e.g. 'openai', 'groq').
    provider_name: str = "unknown"

    @abc.abstractmethod
    async def call(self, kind: OperationKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Sends one request to the provider and returns its decoded JSON body.

        Args:
            kind: The operation being performed; selects the prompt.
            payload: The normalised request payload.

        Returns:
            The provider's response as a JSON object.

        Raises:
            UnsupportedOperationError: If this caller cannot serve ``kind``.
            ProviderResponseError: If the provider returned something that is
                not a JSON object.
            Exception: Any SDK or transport error, left for the retry policy.
        """
        pass
