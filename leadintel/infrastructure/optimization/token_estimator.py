"""Service for estimating token counts of request payloads.

Uses ``tiktoken`` to size the token cost charged against the rate limiter
before a request is sent. The character approximation is used offline, in
tests, and whenever the encoding cannot be loaded.
Bounded Context: Token Management
"""

import logging
from typing import Any, Dict, List, Optional

import tiktoken

from leadintel.domain.models.ai import ChatMessage
from leadintel.domain.models.common import OperationKind, TokenCount
from leadintel.infrastructure.ai.prompts import build_messages

logger = logging.getLogger(__name__)

DEFAULT_TOKENIZER_MODEL = "cl100k_base"
APPROX_CHARS_PER_TOKEN = 4

# Completion budget charged on top of the prompt, per operation.
COMPLETION_BUDGETS: Dict[OperationKind, int] = {
    OperationKind.LEAD_SCORING: 800,
    OperationKind.CONVERSATION_ANALYSIS: 600,
    OperationKind.VOICE_COMMAND: 150,
    OperationKind.SOCIAL_RESEARCH: 600,
    OperationKind.PREDICTIVE_ANALYTICS: 300,
}


class TokenEstimator:
    """Estimates token counts using tiktoken or a character approximation."""

    def __init__(self, tokenizer_model_name: Optional[str] = None, approximate: bool = False):
        """Initializes the TokenEstimator.

        Args:
            tokenizer_model_name: tiktoken encoding name.
            approximate: Use the chars/4 approximation instead of tiktoken.
        """
        self.tokenizer_name = tokenizer_model_name or DEFAULT_TOKENIZER_MODEL
        self.approximate = approximate
        self._tokenizer: Optional[tiktoken.Encoding] = None
        if approximate:
            logger.info("TokenEstimator using character approximation.")
        else:
            logger.info(f"TokenEstimator initialized with tiktoken encoding: {self.tokenizer_name}")

    @property
    def tokenizer(self) -> Optional[tiktoken.Encoding]:
        # Loaded on first use; tiktoken may need to fetch the encoding file.
        if self._tokenizer is None and not self.approximate:
            try:
                self._tokenizer = tiktoken.get_encoding(self.tokenizer_name)
            except Exception as e:
                logger.error(f"Failed to load tiktoken encoding '{self.tokenizer_name}': {e}. Falling back to approximation.")
                self.approximate = True
        return self._tokenizer

    def estimate_tokens(self, text: str) -> TokenCount:
        """Estimates the token count for a single string of text."""
        if not text:
            return TokenCount(0)
        tokenizer = self.tokenizer
        if tokenizer is not None:
            try:
                return TokenCount(len(tokenizer.encode(text)))
            except Exception as e:
                logger.warning(f"tiktoken encoding failed for text: '{text[:50]}...': {e}. Falling back to approx.")
        return TokenCount(max(1, len(text) // APPROX_CHARS_PER_TOKEN))

    def estimate_tokens_for_messages(self, messages: List[ChatMessage]) -> TokenCount:
        """Estimates the token count for a chat message list, with per-message overhead."""
        num_tokens = 0
        for message in messages:
            num_tokens += 4
            num_tokens += self.estimate_tokens(str(message.get("role", "")))
            num_tokens += self.estimate_tokens(str(message.get("content", "")))
        num_tokens += 2  # Reply priming
        return TokenCount(num_tokens)

    def estimate_request(self, kind: OperationKind, payload: Dict[str, Any]) -> TokenCount:
        """Estimated total cost of a request: its chat messages plus the completion budget."""
        prompt_tokens = self.estimate_tokens_for_messages(build_messages(kind, payload))
        total = prompt_tokens + COMPLETION_BUDGETS.get(kind, 500)
        logger.debug(f"Estimated {total} tokens for {kind.value} ({prompt_tokens} prompt)")
        return TokenCount(total)
