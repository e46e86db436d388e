"""Concrete implementation of the OutboundCaller interface using the Groq API.

Hides the specifics of the Groq client library and translates requests and
responses between the domain model and the Groq chat completion format.
"""

import asyncio
import logging
import os
import time
from typing import Any, Dict, Optional

from groq import (
    APIError,
    AuthenticationError,
    BadRequestError,
    Groq as GroqSDKClient,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
)

from leadintel.core.exceptions import ConfigurationError, ProviderResponseError
from leadintel.domain.interfaces.outbound_caller import OutboundCaller
from leadintel.domain.models.common import OperationKind

from ..prompts import build_messages, decode_json_object

logger = logging.getLogger(__name__)


class GroqOutboundCaller(OutboundCaller):
    """Groq implementation of the OutboundCaller interface."""

    provider_name = "groq"
    DEFAULT_MODEL = "llama-3.3-70b-versatile"
    NON_RETRYABLE_EXCEPTIONS = (AuthenticationError, PermissionDeniedError, BadRequestError, NotFoundError)

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, temperature: float = 0.2):
        """Initializes the Groq client.

        Args:
            api_key: Groq API key. Reads from GROQ_API_KEY env var if None.
            model: The Groq model to use.
            temperature: Sampling temperature for every request.
        """
        effective_api_key = api_key or os.getenv("GROQ_API_KEY")
        if not effective_api_key:
            raise ConfigurationError("Groq API key not provided and not found in environment variables.")

        self.client = GroqSDKClient(api_key=effective_api_key, max_retries=0)
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        logger.info(f"GroqOutboundCaller initialized for model: {self.model}")

    async def call(self, kind: OperationKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        messages = build_messages(kind, payload)
        logger.debug(f"Sending {kind.value} request to Groq model: {self.model}")
        start_time = time.perf_counter()
        try:
            # Use asyncio.to_thread as the official Groq SDK is synchronous
            chat_completion = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except AuthenticationError as e:
            logger.error(f"Groq Authentication Error: {e}")
            raise
        except RateLimitError as e:
            logger.warning(f"Groq Rate Limit Error encountered: {e}")
            raise
        except APIError as e:
            logger.warning(f"Groq API Error encountered: {e}")
            raise
        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Received response from Groq in {latency_ms:.2f}ms")

        try:
            content = chat_completion.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderResponseError(f"Invalid response structure from Groq: {e}") from e
        return decode_json_object(content or "")
