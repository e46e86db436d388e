"""AI service orchestrator: the single entry point for AI-backed operations.

Every operation runs the same pipeline:

1. validate the request and build an AIRequest (fingerprint);
2. answer from the response cache when possible;
3. charge the estimated cost against the rate limiter (optionally waiting once
   for the window to roll over);
4. call the provider through the retry policy, parsing the reply inside each
   attempt so that a malformed reply is a failed attempt;
5. cache the successful result and record metrics.

The orchestrator owns its limiter, cache and metrics; nothing is shared
between instances unless injected explicitly.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from leadintel.core.exceptions import (
    ProviderResponseError,
    RateLimitedError,
    UnsupportedOperationError,
    ValidationError,
)
from leadintel.domain.events.api_events import (
    ApiCallDeferred,
    CacheHitRecorded,
    EventHandler,
    log_event,
)
from leadintel.domain.interfaces.cache import CacheService
from leadintel.domain.interfaces.outbound_caller import OutboundCaller
from leadintel.domain.models.ai import AIRequest, AIResponse
from leadintel.domain.models.analysis import ConversationAnalysis
from leadintel.domain.models.common import OperationKind
from leadintel.domain.models.leads import (
    LeadPrediction,
    ScoredLead,
    SocialResearchResult,
    VoiceCommandResult,
)
from leadintel.infrastructure.cache.caching_service import ResponseCache
from leadintel.infrastructure.config.settings import AIServiceConfig
from leadintel.infrastructure.intelligence.text_intelligence import TextIntelligenceEngine
from leadintel.infrastructure.monitoring.metrics import MetricsRegistry, MetricsSnapshot
from leadintel.infrastructure.optimization.token_estimator import TokenEstimator
from leadintel.infrastructure.resilience.api_retry import RetryPolicy
from leadintel.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"


# --- Request validation ---

def _require_lead(lead: Any, name: str = "lead") -> Dict[str, Any]:
    if not isinstance(lead, Mapping):
        raise ValidationError(f"{name} must be a mapping, got {type(lead).__name__}")
    lead_id = lead.get("id")
    if lead_id is None or not str(lead_id).strip():
        raise ValidationError(f"{name} must have a non-empty 'id'")
    return dict(lead)


def _require_leads(leads: Any) -> List[Dict[str, Any]]:
    if isinstance(leads, (str, bytes, Mapping)) or not isinstance(leads, Sequence):
        raise ValidationError("leads must be a list of lead mappings")
    if not leads:
        raise ValidationError("leads must not be empty")
    validated = [_require_lead(lead, f"leads[{i}]") for i, lead in enumerate(leads)]
    ids = [str(lead["id"]) for lead in validated]
    if len(set(ids)) != len(ids):
        raise ValidationError("lead ids must be unique")
    return validated


def _require_text(text: Any, name: str = "text", allow_empty: bool = True) -> str:
    if not isinstance(text, str):
        raise ValidationError(f"{name} must be a string, got {type(text).__name__}")
    if not allow_empty and not text.strip():
        raise ValidationError(f"{name} must not be empty")
    return text


def _require_history(history: Any) -> List[Dict[str, Any]]:
    if isinstance(history, (str, bytes, Mapping)) or not isinstance(history, Sequence):
        raise ValidationError("history must be a list of activity mappings")
    for i, item in enumerate(history):
        if not isinstance(item, Mapping):
            raise ValidationError(f"history[{i}] must be a mapping")
    return [dict(item) for item in history]


# --- Provider reply handling ---

def merge_analysis(local: ConversationAnalysis, provider: Mapping[str, Any]) -> Dict[str, Any]:
    """Combines the engine's analysis with the provider's reply.

    Provider values win for sentiment (only when both ``overall`` and ``score``
    are present), intent, topics and recommendations; the engine fills every
    gap and always supplies buying signals, risk flags and next-best actions.
    """
    merged = local.to_dict()

    sentiment = provider.get("sentiment")
    if isinstance(sentiment, Mapping) and "overall" in sentiment and "score" in sentiment:
        merged["sentiment"] = {**merged["sentiment"], **sentiment}

    intent = provider.get("intent")
    if isinstance(intent, Mapping):
        merged["intent"].update(intent)

    topics = provider.get("topics")
    if isinstance(topics, Mapping):
        entities = topics.get("entities")
        merged["topics"].update({k: v for k, v in topics.items() if k != "entities"})
        if isinstance(entities, Mapping):
            merged["topics"]["entities"].update(entities)

    recommendations = provider.get("recommendations")
    if isinstance(recommendations, list) and recommendations:
        merged["recommendations"] = recommendations

    return merged


def _parse_scored_leads(data: Mapping[str, Any], requested_ids: List[str]) -> List[ScoredLead]:
    entries = data["leads"]
    if not isinstance(entries, list):
        raise TypeError("leads must be a list")
    by_id = {}
    for entry in entries:
        scored = ScoredLead.from_dict(entry)
        by_id[str(scored.lead_id)] = scored
    if set(by_id) != set(requested_ids):
        raise ValueError(f"Provider scored leads {sorted(by_id)} but {sorted(requested_ids)} were requested")
    return [by_id[lead_id] for lead_id in requested_ids]


def _result_confidence(result: Any) -> float:
    if isinstance(result, list):
        return sum(item.confidence for item in result) / len(result) if result else 0.0
    if isinstance(result, ConversationAnalysis):
        return result.sentiment.confidence
    return getattr(result, "confidence", 1.0)


class AIServiceOrchestrator:
    """Façade composing rate limiting, caching, retries and metrics around a provider."""

    def __init__(
        self,
        outbound_caller: OutboundCaller,
        config: Optional[AIServiceConfig] = None,
        cache: Optional[CacheService] = None,
        rate_limiter: Optional[RateLimiter] = None,
        metrics: Optional[MetricsRegistry] = None,
        retry_policy: Optional[RetryPolicy] = None,
        engine: Optional[TextIntelligenceEngine] = None,
        token_estimator: Optional[TokenEstimator] = None,
        non_retryable_exceptions: Tuple[Type[BaseException], ...] = (),
        event_handler: EventHandler = log_event,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initializes the orchestrator, building any component not injected.

        Args:
            outbound_caller: Adapter performing one provider call per attempt.
            config: Service configuration; defaults apply when None.
            cache: Response cache (a ResponseCache sized from config if None).
            rate_limiter: Admission control (built from config if None).
            metrics: Metrics registry (a private one if None).
            retry_policy: Retry policy (built from config if None).
            engine: Text intelligence engine used for conversation analysis.
            token_estimator: Estimates the rate-limit cost of a request.
            non_retryable_exceptions: Extra errors the retry policy must not retry.
            event_handler: Receives domain events.
            sleep: Awaitable sleep, used for the rate-limit wait and retries.
        """
        self.config = (config or AIServiceConfig()).validate()
        self.outbound_caller = outbound_caller
        self.provider_name = getattr(outbound_caller, "provider_name", type(outbound_caller).__name__)
        self.event_handler = event_handler
        self._sleep = sleep

        self.metrics = metrics if metrics is not None else MetricsRegistry()
        self.cache = cache if cache is not None else ResponseCache(
            max_items=self.config.caching.max_items, default_ttl=self.config.caching.ttl,
        )
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(
            requests_per_minute=self.config.rate_limits.requests_per_minute,
            tokens_per_minute=self.config.rate_limits.tokens_per_minute,
            window_seconds=self.config.rate_limits.window_seconds,
        )
        self.engine = engine if engine is not None else TextIntelligenceEngine()
        self.token_estimator = token_estimator if token_estimator is not None else TokenEstimator()

        if retry_policy is None:
            retry = self.config.retry
            non_retryable = (
                (UnsupportedOperationError,)
                + tuple(getattr(outbound_caller, "NON_RETRYABLE_EXCEPTIONS", ()))
                + tuple(non_retryable_exceptions)
            )
            retry_policy = RetryPolicy(
                metrics=self.metrics,
                max_retries=self.config.max_retries,
                initial_backoff_s=retry.initial_backoff,
                backoff_factor=retry.backoff_factor,
                max_backoff_s=retry.max_backoff,
                jitter_s=retry.jitter,
                non_retryable_exceptions=non_retryable,
                provider_name=self.provider_name,
                event_handler=event_handler,
                sleep=sleep,
                failure_log_level=logging.ERROR if self.config.monitoring.enabled else logging.DEBUG,
            )
        self.retry_policy = retry_policy
        logger.info(
            f"AIServiceOrchestrator initialized: provider={self.provider_name}, "
            f"caching={'on' if self.config.caching.enabled else 'off'}, "
            f"queue_on_rate_limit={self.config.queue_on_rate_limit}"
        )

    # --- Public operations ---

    async def score_leads(self, leads: Sequence[Mapping[str, Any]], timeout: Optional[float] = None) -> List[ScoredLead]:
        """Scores leads 0-100, returning results in input order."""
        validated = _require_leads(leads)
        requested_ids = [str(lead["id"]) for lead in validated]
        return await self._execute(
            OperationKind.LEAD_SCORING,
            {"leads": validated},
            parse=lambda data: _parse_scored_leads(data, requested_ids),
            timeout=timeout,
        )

    async def analyze_conversation(
        self, text: str, context: Optional[Mapping[str, Any]] = None, timeout: Optional[float] = None
    ) -> ConversationAnalysis:
        """Analyzes conversation text, combining the local engine with the provider."""
        _require_text(text)
        if context is not None and not isinstance(context, Mapping):
            raise ValidationError(f"context must be a mapping, got {type(context).__name__}")
        request = AIRequest(
            kind=OperationKind.CONVERSATION_ANALYSIS,
            payload={"text": text, "context": dict(context or {})},
        )
        local = self.engine.analyze(request.payload["text"])
        return await self._execute(
            request.kind,
            request.payload,
            parse=ConversationAnalysis.from_dict,
            timeout=timeout,
            call_payload={**request.payload, "preliminaryAnalysis": local.to_dict()},
            finalize=lambda raw: merge_analysis(local, raw),
            request=request,
        )

    async def process_voice_command(self, text: str, user_id: str, timeout: Optional[float] = None) -> VoiceCommandResult:
        """Interprets a transcribed voice command."""
        _require_text(text, allow_empty=False)
        _require_text(user_id, "user_id", allow_empty=False)
        return await self._execute(
            OperationKind.VOICE_COMMAND,
            {"text": text, "userId": user_id},
            parse=VoiceCommandResult.from_dict,
            timeout=timeout,
        )

    async def research_social_media(self, lead: Mapping[str, Any], timeout: Optional[float] = None) -> SocialResearchResult:
        """Researches a lead's social media presence."""
        return await self._execute(
            OperationKind.SOCIAL_RESEARCH,
            {"lead": _require_lead(lead)},
            parse=SocialResearchResult.from_dict,
            timeout=timeout,
        )

    async def predict_lead_outcome(
        self,
        lead: Mapping[str, Any],
        history: Sequence[Mapping[str, Any]],
        timeout: Optional[float] = None,
    ) -> LeadPrediction:
        """Predicts conversion probability, value and time to close for a lead."""
        payload = {"lead": _require_lead(lead), "history": _require_history(history)}
        return await self._execute(
            OperationKind.PREDICTIVE_ANALYTICS,
            payload,
            parse=LeadPrediction.from_dict,
            timeout=timeout,
        )

    # --- Observability ---

    def get_metrics(self) -> MetricsSnapshot:
        return self.metrics.snapshot()

    def get_rate_limit_status(self) -> Dict[str, Any]:
        return self.rate_limiter.status()

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    async def clear_cache(self) -> None:
        await self.cache.clear()

    def health_check(self) -> Dict[str, Any]:
        """Classifies service health from recent outcomes and limiter state.

        Unhealthy when the last N final outcomes all failed, degraded when the
        recent failure rate reaches the configured threshold or the limiter is
        saturated, healthy otherwise. No provider call is made.
        """
        health = self.config.health
        outcomes = self.metrics.recent_outcomes()
        failure_rate = self.metrics.recent_failure_rate()
        saturated = self.rate_limiter.is_saturated()
        window = health.unhealthy_consecutive_failures
        snapshot = self.metrics.snapshot()

        if len(outcomes) >= window and not any(outcomes[-window:]):
            status = UNHEALTHY
        elif failure_rate >= health.degraded_error_rate or saturated:
            status = DEGRADED
        else:
            status = HEALTHY

        return {
            "status": status,
            "details": {
                "provider": self.provider_name,
                "recent_failure_rate": failure_rate,
                "consecutive_failures": snapshot.consecutive_failures,
                "last_error": snapshot.last_error,
                "rate_limited": saturated,
                "cache_size": self.cache.stats().get("size", 0),
                "total_requests": snapshot.total_requests,
            },
        }

    # --- Pipeline ---

    async def _admit(self, operation: str, tokens: int) -> None:
        admission = await self.rate_limiter.admit(tokens)
        if not admission.admitted and self.config.queue_on_rate_limit:
            self.event_handler(ApiCallDeferred(
                provider=self.provider_name, operation=operation, wait_time_seconds=admission.retry_after,
            ))
            logger.info(f"Rate limit reached for {operation}; waiting {admission.retry_after:.2f}s once")
            await self._sleep(admission.retry_after)
            admission = await self.rate_limiter.admit(tokens)
        if not admission.admitted:
            self.metrics.record_rate_limited(operation)
            logger.warning(f"Rate limit exceeded for {operation}; retry after {admission.retry_after:.2f}s")
            raise RateLimitedError(admission.retry_after)

    async def _execute(
        self,
        kind: OperationKind,
        payload: Dict[str, Any],
        parse: Callable[[Mapping[str, Any]], Any],
        timeout: Optional[float] = None,
        call_payload: Optional[Dict[str, Any]] = None,
        finalize: Optional[Callable[[Mapping[str, Any]], Dict[str, Any]]] = None,
        request: Optional[AIRequest] = None,
    ) -> Any:
        request = request or AIRequest(kind=kind, payload=payload)
        operation = kind.value
        caching = self.config.caching.enabled

        if caching:
            cached = await self.cache.get(request.fingerprint)
            if cached is not None:
                self.metrics.record_cache_hit(operation)
                self.event_handler(CacheHitRecorded(operation=operation, request_id=request.fingerprint[:12]))
                return parse(cached.payload)
            self.metrics.record_cache_miss(operation)

        tokens = self.token_estimator.estimate_request(kind, request.payload)
        if tokens > self.rate_limiter.tokens_per_minute:
            raise ValidationError(
                f"{operation} request needs an estimated {tokens} tokens, more than the "
                f"{self.rate_limiter.tokens_per_minute} a rate-limit window allows"
            )
        await self._admit(operation, tokens)

        outbound_payload = call_payload if call_payload is not None else request.payload

        async def attempt() -> Tuple[Dict[str, Any], Any]:
            raw = await self.outbound_caller.call(kind, outbound_payload)
            try:
                data = finalize(raw) if finalize else dict(raw)
                return data, parse(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise ProviderResponseError(f"Malformed {operation} reply from {self.provider_name}: {e}") from e

        effective_timeout = timeout if timeout is not None else self.config.timeout
        data, result = await self.retry_policy.execute(attempt, operation=operation, timeout=effective_timeout)

        self.metrics.record_tokens(operation, tokens)
        if caching:
            await self.cache.put(
                request.fingerprint,
                AIResponse(
                    kind=kind,
                    payload=data,
                    confidence=_result_confidence(result),
                    model_name=getattr(self.outbound_caller, "model", None),
                ),
                ttl=self.config.caching.ttl,
            )
        return result
