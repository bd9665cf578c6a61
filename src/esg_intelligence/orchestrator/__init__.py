"""Provider orchestration: registry, selection, execution and the analysis use case."""

from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitState
from .executor import ExecutionResult, RequestExecutor
from .health_monitor import HealthMonitor
from .orchestrator import AnalyzeResult, QueryOrchestrator
from .prompts import assess_query_complexity, build_analysis_prompt, categorize_query
from .quality import ResponseQualityScorer
from .registry import (
    HealthStatus,
    ProviderHealth,
    ProviderMetrics,
    ProviderRecord,
    ProviderRegistry,
    ProviderSpec,
    RateLimitStatus,
)
from .selector import ProviderScore, ProviderSelector, QueryComplexity, SelectionPolicy

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "ExecutionResult",
    "RequestExecutor",
    "HealthMonitor",
    "AnalyzeResult",
    "QueryOrchestrator",
    "assess_query_complexity",
    "build_analysis_prompt",
    "categorize_query",
    "ResponseQualityScorer",
    "HealthStatus",
    "ProviderHealth",
    "ProviderMetrics",
    "ProviderRecord",
    "ProviderRegistry",
    "ProviderSpec",
    "RateLimitStatus",
    "ProviderScore",
    "ProviderSelector",
    "QueryComplexity",
    "SelectionPolicy",
]
