"""Provider registry: health, metrics, circuit breaker and rate-limit state."""

import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

import structlog

from esg_intelligence.exceptions import ProviderNotFoundError
from esg_intelligence.orchestrator.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from esg_intelligence.telemetry import metrics

logger = structlog.get_logger(__name__)

QUALITY_WINDOW = 100
STALE_AFTER_SECONDS = 300.0

DEFAULT_COSTS: Dict[str, float] = {
    "gemini": 0.0001,
    "groq": 0.0005,
    "openai": 0.02,
}

DEFAULT_RATE_LIMITS: Dict[str, int] = {
    "gemini": 900,
    "groq": 100,
    "openai": 50,
}


class HealthStatus(str, Enum):
    """Provider health states."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


@dataclass
class ProviderSpec:
    """Static configuration for one provider."""

    name: str
    rate_limit: Optional[int] = None
    cost_per_request: Optional[float] = None

    def __post_init__(self):
        if self.rate_limit is None:
            self.rate_limit = DEFAULT_RATE_LIMITS.get(self.name, 100)
        if self.cost_per_request is None:
            self.cost_per_request = DEFAULT_COSTS.get(self.name, 0.0)


@dataclass
class ProviderHealth:
    """Derived health of a provider."""

    status: HealthStatus = HealthStatus.HEALTHY
    consecutive_failures: int = 0
    availability: float = 100.0
    response_time_ms: float = 0.0
    quality_score: float = 100.0
    last_check: float = 0.0


@dataclass
class ProviderMetrics:
    """Request counters for a provider."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_response_time_ms: float = 0.0
    total_cost: float = 0.0
    quality_scores: Deque[float] = field(default_factory=lambda: deque(maxlen=QUALITY_WINDOW))

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests * 100


@dataclass
class RateLimitWindow:
    """Fixed window used to predict provider rate limits."""

    limit: int
    window_size: float = 60.0
    safety_margin: float = 0.8
    window_start: float = 0.0
    requests_in_window: int = 0


@dataclass(frozen=True)
class RateLimitStatus:
    """Remaining request budget for a provider."""

    available_slots: float
    total_slots: int

    @property
    def percentage(self) -> float:
        if self.total_slots <= 0:
            return 0.0
        return self.available_slots / self.total_slots * 100

    @property
    def exhausted(self) -> bool:
        return self.available_slots <= 0


@dataclass
class ProviderRecord:
    """All mutable state tracked for one provider."""

    name: str
    cost_per_request: float
    health: ProviderHealth
    metrics: ProviderMetrics
    circuit_breaker: CircuitBreaker
    rate_limit: RateLimitWindow


class ProviderRegistry:
    """Single source of truth for per-provider health and circuit state.

    State is plain in-process data mutated synchronously; concurrent
    requests interleave with last-writer-wins semantics.
    """

    def __init__(
        self,
        providers: Iterable[ProviderSpec | str],
        breaker_config: Optional[CircuitBreakerConfig] = None,
        window_size: float = 60.0,
        safety_margin: float = 0.8,
        clock: Callable[[], float] = time.time,
    ):
        self.breaker_config = breaker_config or CircuitBreakerConfig()
        self.window_size = window_size
        self.safety_margin = safety_margin
        self.clock = clock

        self._specs: Dict[str, ProviderSpec] = {}
        for spec in providers:
            if isinstance(spec, str):
                spec = ProviderSpec(name=spec)
            if spec.name in self._specs:
                raise ValueError(f"Duplicate provider name: {spec.name}")
            self._specs[spec.name] = spec

        self._records: Dict[str, ProviderRecord] = {}
        for name in self._specs:
            self._records[name] = self._new_record(name)

        logger.info("provider_registry_initialized", providers=list(self._specs))

    def _new_record(self, name: str) -> ProviderRecord:
        spec = self._specs[name]
        now = self.clock()
        return ProviderRecord(
            name=name,
            cost_per_request=spec.cost_per_request,
            health=ProviderHealth(last_check=now),
            metrics=ProviderMetrics(),
            circuit_breaker=CircuitBreaker(name, self.breaker_config),
            rate_limit=RateLimitWindow(
                limit=spec.rate_limit,
                window_size=self.window_size,
                safety_margin=self.safety_margin,
                window_start=now,
            ),
        )

    @property
    def provider_names(self) -> List[str]:
        return list(self._records)

    def get(self, name: str) -> ProviderRecord:
        try:
            return self._records[name]
        except KeyError:
            raise ProviderNotFoundError(name) from None

    def record_usage(self, name: str) -> None:
        """Count one outgoing request against the provider's rate-limit window."""
        record = self.get(name)
        self._roll_window(record.rate_limit, self.clock())
        record.rate_limit.requests_in_window += 1

    def record_outcome(
        self,
        name: str,
        success: bool,
        response_time_ms: float,
        quality_score: Optional[float] = None,
    ) -> ProviderHealth:
        """Fold one call outcome into the provider's health and circuit state."""
        record = self.get(name)
        health, stats, breaker = record.health, record.metrics, record.circuit_breaker
        now = self.clock()

        stats.total_requests += 1
        if success:
            stats.successful_requests += 1
            health.consecutive_failures = 0
            breaker.record_success()
        else:
            stats.failed_requests += 1
            health.consecutive_failures += 1
            if breaker.record_failure(now):
                metrics.circuit_opened.labels(provider=name).inc()

        stats.total_response_time_ms += max(0.0, response_time_ms)
        health.response_time_ms = stats.total_response_time_ms / stats.total_requests

        if quality_score is not None:
            stats.quality_scores.append(min(100.0, max(0.0, quality_score)))
            health.quality_score = sum(stats.quality_scores) / len(stats.quality_scores)

        health.availability = stats.successful_requests / stats.total_requests * 100
        stats.total_cost += record.cost_per_request

        if health.consecutive_failures >= 5:
            health.status = HealthStatus.CRITICAL
        elif health.consecutive_failures >= 3:
            health.status = HealthStatus.DEGRADED
        else:
            health.status = HealthStatus.HEALTHY

        health.last_check = now
        metrics.provider_availability.labels(provider=name).set(health.availability)
        return health

    def list_available(self, update_circuits: bool = True) -> List[str]:
        """Providers whose circuit lets calls through and whose health is not critical.

        With ``update_circuits=False`` cooled-down circuits are reported as
        available but stay open, for read-only monitoring.
        """
        now = self.clock()
        available = []
        for name, record in self._records.items():
            breaker = record.circuit_breaker
            allowed = breaker.allows_request(now) if update_circuits else breaker.would_allow(now)
            if not allowed:
                continue
            if record.health.status == HealthStatus.CRITICAL:
                continue
            available.append(name)
        return available

    def rate_limit_status(self, name: str) -> RateLimitStatus:
        window = self.get(name).rate_limit
        self._roll_window(window, self.clock())
        available = max(0.0, window.limit * window.safety_margin - window.requests_in_window)
        return RateLimitStatus(available_slots=available, total_slots=window.limit)

    @staticmethod
    def _roll_window(window: RateLimitWindow, now: float) -> None:
        if now - window.window_start > window.window_size:
            window.requests_in_window = 0
            window.window_start = now

    def mark_stale(self, stale_after: float = STALE_AFTER_SECONDS) -> List[str]:
        """Move critical providers with no recorded outcome for ``stale_after`` seconds to unknown.

        A critical provider is never selected, so without this its health
        could only change through ``reset``.
        """
        now = self.clock()
        marked = []
        for name, record in self._records.items():
            health = record.health
            if health.status == HealthStatus.CRITICAL and now - health.last_check > stale_after:
                health.status = HealthStatus.UNKNOWN
                marked.append(name)
                logger.info("provider_marked_unknown", provider=name)
        return marked

    def force_open(self, name: str) -> None:
        """Open a provider's circuit immediately (maintenance)."""
        self.get(name).circuit_breaker.force_open(self.clock())

    def reset(self, name: Optional[str] = None) -> None:
        """Reinitialise counters for one provider, or all of them."""
        if name is not None:
            self.get(name)
            self._records[name] = self._new_record(name)
            logger.info("provider_statistics_reset", provider=name)
        else:
            for provider in self._specs:
                self._records[provider] = self._new_record(provider)
            logger.info("provider_statistics_reset", provider="all")

    def get_statistics(self) -> Dict[str, Dict[str, Any]]:
        """Read-only snapshot of every provider for monitoring."""
        stats: Dict[str, Dict[str, Any]] = {}
        for name, record in self._records.items():
            health, counters, breaker = record.health, record.metrics, record.circuit_breaker
            rate = self.rate_limit_status(name)
            stats[name] = {
                "health": {
                    "status": health.status.value,
                    "availability": health.availability,
                    "response_time_ms": health.response_time_ms,
                    "quality_score": health.quality_score,
                    "consecutive_failures": health.consecutive_failures,
                    "last_check": health.last_check,
                },
                "metrics": {
                    "total_requests": counters.total_requests,
                    "successful_requests": counters.successful_requests,
                    "failed_requests": counters.failed_requests,
                    "success_rate": counters.success_rate,
                    "average_response_time_ms": health.response_time_ms,
                    "average_quality_score": health.quality_score,
                    "total_cost": counters.total_cost,
                    "cost_per_request": record.cost_per_request,
                },
                "circuit_breaker": {
                    "state": breaker.state.value,
                    "failure_count": breaker.failure_count,
                    "last_failure_time": breaker.last_failure_time,
                },
                "rate_limit": {
                    "available": rate.available_slots,
                    "total": rate.total_slots,
                    "percentage": rate.percentage,
                },
            }
        return stats

    def get_health_summary(self) -> Dict[str, Any]:
        statuses = [record.health.status for record in self._records.values()]
        healthy = statuses.count(HealthStatus.HEALTHY)
        degraded = statuses.count(HealthStatus.DEGRADED)
        critical = statuses.count(HealthStatus.CRITICAL)

        if critical:
            overall = HealthStatus.CRITICAL
        elif degraded:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY

        return {
            "total": len(statuses),
            "healthy": healthy,
            "degraded": degraded,
            "critical": critical,
            "open_circuits": [
                name
                for name, record in self._records.items()
                if record.circuit_breaker.state == CircuitState.OPEN
            ],
            "overall_status": overall.value,
        }

    def get_recommendations(self) -> List[Dict[str, str]]:
        """Optimisation hints derived from the current statistics."""
        recommendations = []
        for name, data in self.get_statistics().items():
            health, counters = data["health"], data["metrics"]

            if counters["total_cost"] > 1.0:
                recommendations.append({
                    "type": "cost",
                    "provider": name,
                    "message": f"High API costs detected for {name}: ${counters['total_cost']:.4f}",
                    "suggestion": "Consider using free tier providers for non-critical queries",
                })

            if health["response_time_ms"] > 5000:
                recommendations.append({
                    "type": "performance",
                    "provider": name,
                    "message": f"Slow response times for {name}: {health['response_time_ms']:.0f}ms",
                    "suggestion": "Consider deprioritizing this provider for time-sensitive queries",
                })

            if health["quality_score"] < 70:
                recommendations.append({
                    "type": "quality",
                    "provider": name,
                    "message": f"Low quality scores for {name}: {health['quality_score']:.1f}",
                    "suggestion": "Review prompt engineering or consider alternative providers",
                })

            if health["availability"] < 90:
                recommendations.append({
                    "type": "availability",
                    "provider": name,
                    "message": f"Low availability for {name}: {health['availability']:.1f}%",
                    "suggestion": "Investigate provider issues or increase circuit breaker threshold",
                })

        return recommendations
