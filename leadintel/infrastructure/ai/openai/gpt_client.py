"""Concrete implementation of the OutboundCaller interface using the OpenAI API.

Hides the specifics of the OpenAI client library: builds the chat messages
for an operation, requests a JSON object response and decodes it. One call is
made per invocation; retries belong to the RetryPolicy.
"""

import asyncio
import logging
import os
import time
from typing import Any, Dict, Optional

from openai import (
    APIError,
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    OpenAI,
    PermissionDeniedError,
    RateLimitError,
)

from leadintel.core.exceptions import ConfigurationError, ProviderResponseError
from leadintel.domain.interfaces.outbound_caller import OutboundCaller
from leadintel.domain.models.common import OperationKind

from ..prompts import build_messages, decode_json_object

logger = logging.getLogger(__name__)


class OpenAIOutboundCaller(OutboundCaller):
    """OpenAI implementation of the OutboundCaller interface."""

    provider_name = "openai"
    DEFAULT_MODEL = "gpt-4o-mini"
    # Errors that a retry cannot fix.
    NON_RETRYABLE_EXCEPTIONS = (AuthenticationError, PermissionDeniedError, BadRequestError, NotFoundError)

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, temperature: float = 0.2):
        """Initializes the OpenAI client.

        Args:
            api_key: OpenAI API key. Reads from OPENAI_API_KEY env var if None.
            model: The OpenAI model to use.
            temperature: Sampling temperature for every request.

        Raises:
            ConfigurationError: If no API key is available.
        """
        effective_api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not effective_api_key:
            raise ConfigurationError("OpenAI API key not provided and not found in environment variables.")

        # Retries are handled by the RetryPolicy, not the SDK.
        self.client = OpenAI(api_key=effective_api_key, max_retries=0)
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        logger.info(f"OpenAIOutboundCaller initialized for model: {self.model}")

    def _extract_content(self, response: Any) -> str:
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            logger.debug(f"Raw OpenAI response object: {response}")
            raise ProviderResponseError(f"Invalid response structure from OpenAI: {e}") from e
        if response.usage:
            logger.debug(
                f"OpenAI usage: prompt={response.usage.prompt_tokens}, "
                f"completion={response.usage.completion_tokens}"
            )
        return content or ""

    async def call(self, kind: OperationKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        messages = build_messages(kind, payload)
        logger.debug(f"Sending {kind.value} request to OpenAI model: {self.model}")
        start_time = time.perf_counter()
        try:
            # The SDK call is synchronous
            response = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except AuthenticationError as e:
            logger.error(f"OpenAI Authentication Error: {e}")
            raise
        except RateLimitError as e:
            logger.warning(f"OpenAI Rate Limit Error encountered: {e}")
            raise
        except APIError as e:
            logger.warning(f"OpenAI API Error encountered: {e}")
            raise
        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Received response from OpenAI in {latency_ms:.2f}ms")
        return decode_json_object(self._extract_content(response))
