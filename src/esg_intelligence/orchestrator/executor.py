"""Bounded retry of provider calls with per-attempt timeouts."""

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Optional

import structlog
from pydantic import BaseModel, Field
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from esg_intelligence.exceptions import AllProvidersExhaustedError
from esg_intelligence.orchestrator.prompts import build_analysis_prompt
from esg_intelligence.orchestrator.quality import ResponseQualityScorer
from esg_intelligence.orchestrator.registry import ProviderRegistry
from esg_intelligence.orchestrator.selector import ProviderSelector, QueryComplexity
from esg_intelligence.providers.base import (
    BaseProvider,
    FailureKind,
    GenerationFailure,
    GenerationOptions,
    ProviderError,
)
from esg_intelligence.telemetry import metrics

logger = structlog.get_logger(__name__)


class ExecutionResult(BaseModel):
    """Outcome of a successful ``RequestExecutor.execute`` call."""

    provider: str
    text: str
    model: Optional[str] = None
    attempts: int = Field(ge=1)
    response_time_ms: float = Field(ge=0)
    quality_score: float = Field(ge=0, le=100)


class RequestExecutor:
    """Runs select -> rate-limit check -> call -> record, retrying on failure.

    Waits ``2 ** (attempt - 1)`` seconds between attempts. Selection
    failures (``NoProviderAvailableError``) are not retried.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        selector: ProviderSelector,
        providers: Mapping[str, BaseProvider],
        max_attempts: int = 3,
        timeout: float = 15.0,
        options: Optional[GenerationOptions] = None,
        scorer: Optional[ResponseQualityScorer] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timer: Callable[[], float] = time.perf_counter,
    ):
        missing = [name for name in registry.provider_names if name not in providers]
        if missing:
            raise ValueError(f"No client configured for providers: {', '.join(missing)}")

        self.registry = registry
        self.selector = selector
        self.providers = dict(providers)
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.options = options or GenerationOptions(timeout=timeout)
        self.scorer = scorer or ResponseQualityScorer()
        self.sleep = sleep
        self.timer = timer

    async def execute(
        self,
        query: str,
        complexity: QueryComplexity = QueryComplexity.MEDIUM,
        prefer_speed: bool = False,
    ) -> ExecutionResult:
        prompt = build_analysis_prompt(query)
        attempt_number = 0

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=1, min=0),
                retry=retry_if_exception_type(ProviderError),
                sleep=self.sleep,
                reraise=True,
            ):
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    return await self._attempt(
                        query, prompt, attempt_number, complexity, prefer_speed
                    )
        except ProviderError as e:
            logger.error(
                "all_providers_failed",
                attempts=attempt_number,
                last_provider=e.provider,
                error=e.message,
            )
            raise AllProvidersExhaustedError(attempts=attempt_number, last_error=e.message) from e

        # stop_after_attempt always ends the loop by raising
        raise RuntimeError("Retry loop completed without returning")

    async def _attempt(
        self,
        query: str,
        prompt: str,
        attempt_number: int,
        complexity: QueryComplexity,
        prefer_speed: bool,
    ) -> ExecutionResult:
        name = self.selector.select(complexity, prefer_speed)
        log = logger.bind(provider=name, attempt=attempt_number, max_attempts=self.max_attempts)

        if self.registry.rate_limit_status(name).exhausted:
            self.registry.record_outcome(name, success=False, response_time_ms=0)
            metrics.provider_attempts.labels(provider=name, outcome="rate_limited").inc()
            log.warning("provider_rate_limit_exhausted")
            raise ProviderError(
                f"Rate limit exceeded for {name}", provider=name, kind=FailureKind.RATE_LIMITED
            )

        self.registry.record_usage(name)
        client = self.providers[name]
        started = self.timer()
        log.info("provider_attempt_started", complexity=complexity.value)

        try:
            result = await asyncio.wait_for(
                client.generate(prompt, self.options), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            result = GenerationFailure(
                provider=name,
                kind=FailureKind.TIMEOUT,
                message=f"{name} timeout after {self.timeout:g}s",
            )
        except Exception as e:
            result = GenerationFailure(
                provider=name, kind=FailureKind.TRANSPORT, message=f"{name} call failed: {e}"
            )

        elapsed_ms = (self.timer() - started) * 1000
        metrics.provider_latency.labels(provider=name).observe(elapsed_ms / 1000)

        if isinstance(result, GenerationFailure):
            self.registry.record_outcome(name, success=False, response_time_ms=elapsed_ms)
            metrics.provider_attempts.labels(provider=name, outcome=result.kind.value).inc()
            log.warning(
                "provider_attempt_failed",
                kind=result.kind.value,
                status_code=result.status_code,
                error=result.message,
                response_time_ms=round(elapsed_ms, 1),
            )
            raise ProviderError.from_failure(result)

        quality = self.scorer.score(result.text, query, name)
        self.registry.record_outcome(
            name, success=True, response_time_ms=elapsed_ms, quality_score=quality
        )
        metrics.provider_attempts.labels(provider=name, outcome="success").inc()
        log.info(
            "provider_attempt_succeeded",
            response_time_ms=round(elapsed_ms, 1),
            quality_score=round(quality, 1),
        )
        return ExecutionResult(
            provider=name,
            text=result.text,
            model=result.model,
            attempts=attempt_number,
            response_time_ms=elapsed_ms,
            quality_score=quality,
        )
