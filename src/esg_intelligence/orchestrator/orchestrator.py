"""Top-level analysis use case: cache lookup, provider execution, cache write."""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from pydantic import BaseModel, Field

from esg_intelligence.cache.key import DEFAULT_NAMESPACE
from esg_intelligence.cache.result_cache import ResultCache
from esg_intelligence.exceptions import InvalidQueryError, ProviderFailureError
from esg_intelligence.orchestrator.executor import RequestExecutor
from esg_intelligence.orchestrator.prompts import assess_query_complexity
from esg_intelligence.telemetry import metrics

if TYPE_CHECKING:
    from esg_intelligence.analytics.tracker import QueryAnalytics

logger = structlog.get_logger(__name__)


class AnalyzeResult(BaseModel):
    """Result of ``QueryOrchestrator.analyze``."""

    payload: Dict[str, Any]
    cached: bool
    latency_ms: float = Field(ge=0)
    provider: Optional[str] = None
    timestamp: datetime


class QueryOrchestrator:
    """Composes the result cache, the request executor and query analytics."""

    def __init__(
        self,
        cache: ResultCache,
        executor: RequestExecutor,
        max_query_length: int = 1000,
        clock: Callable[[], float] = time.time,
        timer: Callable[[], float] = time.perf_counter,
        analytics: Optional["QueryAnalytics"] = None,
    ):
        self.cache = cache
        self.executor = executor
        self.analytics = analytics
        self.max_query_length = max_query_length
        self.clock = clock
        self.timer = timer

    def validate_query(self, query: Any) -> str:
        if not isinstance(query, str) or not query.strip():
            raise InvalidQueryError()
        if len(query.strip()) > self.max_query_length:
            raise InvalidQueryError(
                f"Query too long. Maximum {self.max_query_length} characters allowed",
                error_code="QUERY_TOO_LONG",
                details={"length": len(query.strip()), "max_length": self.max_query_length},
            )
        return query.strip()

    async def analyze(
        self,
        query: Any,
        namespace: str = DEFAULT_NAMESPACE,
        prefer_speed: bool = False,
    ) -> AnalyzeResult:
        query = self.validate_query(query)
        started = self.timer()
        log = logger.bind(namespace=namespace, query_chars=len(query))

        cached = await self.cache.get(query, namespace)
        if cached is not None:
            latency_ms = self._elapsed_ms(started)
            metrics.analyze_requests.labels(outcome="cache_hit").inc()
            metrics.analyze_latency.labels(cached="true").observe(latency_ms / 1000)
            log.info("analysis_served_from_cache", latency_ms=round(latency_ms, 1))
            await self._track(
                query,
                namespace,
                True,
                latency_ms,
                provider=cached.get("provider"),
                quality_score=cached.get("quality_score"),
                cached=True,
            )
            return AnalyzeResult(
                payload=cached,
                cached=True,
                latency_ms=latency_ms,
                provider=cached.get("provider"),
                timestamp=self._now(),
            )

        complexity = assess_query_complexity(query)
        try:
            execution = await self.executor.execute(query, complexity, prefer_speed)
        except ProviderFailureError as e:
            latency_ms = self._elapsed_ms(started)
            metrics.analyze_requests.labels(outcome="provider_failure").inc()
            log.error(
                "analysis_failed",
                error_code=e.error_code,
                error=e.message,
                latency_ms=round(latency_ms, 1),
            )
            await self._track(query, namespace, False, latency_ms, error_code=e.error_code)
            raise

        now = self._now()
        payload = {
            "query": query,
            "response": execution.text,
            "provider": execution.provider,
            "model": execution.model,
            "complexity": complexity.value,
            "quality_score": round(execution.quality_score, 1),
            "attempts": execution.attempts,
            "generated_at": now.isoformat(),
        }
        await self.cache.put(query, payload, namespace)

        latency_ms = self._elapsed_ms(started)
        metrics.analyze_requests.labels(outcome="generated").inc()
        metrics.analyze_latency.labels(cached="false").observe(latency_ms / 1000)
        log.info(
            "analysis_completed",
            provider=execution.provider,
            attempts=execution.attempts,
            latency_ms=round(latency_ms, 1),
        )
        await self._track(
            query,
            namespace,
            True,
            latency_ms,
            provider=execution.provider,
            quality_score=execution.quality_score,
        )
        return AnalyzeResult(
            payload=payload,
            cached=False,
            latency_ms=latency_ms,
            provider=execution.provider,
            timestamp=now,
        )

    async def _track(
        self,
        query: str,
        namespace: str,
        success: bool,
        latency_ms: float,
        **fields: Any,
    ) -> None:
        if self.analytics is None:
            return
        await self.analytics.record(query, success, latency_ms, namespace=namespace, **fields)

    def _elapsed_ms(self, started: float) -> float:
        return max(0.0, (self.timer() - started) * 1000)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)
