"""Pytest configuration and fixtures."""

from typing import Dict, List

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from esg_intelligence.analytics import InMemoryAnalyticsStore, QueryAnalytics
from esg_intelligence.bootstrap import build_container
from esg_intelligence.cache import InMemoryStore, ResultCache
from esg_intelligence.config.settings import Settings
from esg_intelligence.exceptions import AnalyticsUnavailableError, CacheUnavailableError
from esg_intelligence.orchestrator import (
    CircuitBreakerConfig,
    ProviderRegistry,
    ProviderSelector,
    ProviderSpec,
    QueryOrchestrator,
    RequestExecutor,
    SelectionPolicy,
)
from esg_intelligence.providers import MockProvider

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStore(InMemoryStore):
    """Store whose backend is down."""

    async def find_by_key(self, key):
        raise CacheUnavailableError("database offline")

    async def upsert_by_key(self, key, entry):
        raise CacheUnavailableError("database offline")

    async def increment_hits(self, key):
        raise CacheUnavailableError("database offline")

    async def delete_where(self, predicate):
        raise CacheUnavailableError("database offline")

    async def find_where(self, predicate, order_by_hits=False, limit=None):
        raise CacheUnavailableError("database offline")


class FailingAnalyticsStore(InMemoryAnalyticsStore):
    """Analytics store whose backend is down."""

    async def add(self, event):
        raise AnalyticsUnavailableError("database offline")

    async def find_since(self, since):
        raise AnalyticsUnavailableError("database offline")

    async def popular_queries(self, limit):
        raise AnalyticsUnavailableError("database offline")


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        environment="test",
        use_mock_providers=True,
        database_url="sqlite+aiosqlite:///:memory:",
        health_check_interval_seconds=0,
        cache_sweep_interval_seconds=0,
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest.fixture
def mock_providers() -> Dict[str, MockProvider]:
    return {name: MockProvider(name=name) for name in ("gemini", "groq", "openai")}


@pytest.fixture
def registry(clock) -> ProviderRegistry:
    return ProviderRegistry(
        [ProviderSpec("gemini"), ProviderSpec("groq"), ProviderSpec("openai")],
        breaker_config=CircuitBreakerConfig(failure_threshold=5, open_duration=60),
        clock=clock,
    )


@pytest.fixture
def default_policy() -> SelectionPolicy:
    return SelectionPolicy(
        priority_bonus={"gemini": 50.0, "groq": -20.0, "openai": -30.0},
        complexity_bonus={"gemini": {"high": 15.0, "medium": 10.0}, "groq": {"low": 2.0}},
    )


@pytest.fixture
def selector(registry, default_policy) -> ProviderSelector:
    return ProviderSelector(registry, default_policy)


@pytest.fixture
def executor(registry, selector, mock_providers, recorded_sleep) -> RequestExecutor:
    return RequestExecutor(
        registry,
        selector,
        mock_providers,
        max_attempts=3,
        timeout=1.0,
        sleep=recorded_sleep,
    )


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def analytics_store() -> InMemoryAnalyticsStore:
    return InMemoryAnalyticsStore()


@pytest.fixture
def failing_analytics_store() -> FailingAnalyticsStore:
    return FailingAnalyticsStore()


@pytest.fixture
def analytics(analytics_store, clock) -> QueryAnalytics:
    return QueryAnalytics(analytics_store, clock=clock)


@pytest.fixture
def result_cache(memory_store, clock) -> ResultCache:
    return ResultCache(memory_store, ttl_seconds=24 * 3600, clock=clock)


@pytest.fixture
def orchestrator(result_cache, executor, analytics, clock) -> QueryOrchestrator:
    return QueryOrchestrator(
        result_cache, executor, max_query_length=1000, clock=clock, analytics=analytics
    )


@pytest_asyncio.fixture
async def container(
    test_settings, mock_providers, memory_store, analytics_store, clock, recorded_sleep
):
    services = build_container(
        test_settings,
        providers=mock_providers,
        store=memory_store,
        analytics_store=analytics_store,
        clock=clock,
        sleep=recorded_sleep,
    )
    yield services
    await services.stop()


@pytest.fixture
def client(test_settings, mock_providers, memory_store, analytics_store, clock, recorded_sleep):
    from esg_intelligence.server.main import create_app

    services = build_container(
        test_settings,
        providers=mock_providers,
        store=memory_store,
        analytics_store=analytics_store,
        clock=clock,
        sleep=recorded_sleep,
    )
    app = create_app(test_settings, container=services, background_tasks=False)
    with TestClient(app) as test_client:
        yield test_client
