"""Composition root: builds and owns every long-lived service object."""

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Dict, Optional

import structlog

from esg_intelligence.analytics import (
    AnalyticsStore,
    InMemoryAnalyticsStore,
    QueryAnalytics,
    SqlAlchemyAnalyticsStore,
)
from esg_intelligence.cache import PersistentStore, ResultCache, SqlAlchemyStore
from esg_intelligence.config.settings import Settings
from esg_intelligence.database import create_engine
from esg_intelligence.orchestrator import (
    CircuitBreakerConfig,
    HealthMonitor,
    ProviderRegistry,
    ProviderSelector,
    ProviderSpec,
    QueryOrchestrator,
    RequestExecutor,
    SelectionPolicy,
)
from esg_intelligence.orchestrator.registry import DEFAULT_COSTS
from esg_intelligence.providers import BaseProvider, GenerationOptions, build_providers

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything the HTTP layer and CLI need, wired together."""

    settings: Settings
    providers: Dict[str, BaseProvider]
    registry: ProviderRegistry
    selector: ProviderSelector
    executor: RequestExecutor
    store: PersistentStore
    cache: ResultCache
    analytics: QueryAnalytics
    orchestrator: QueryOrchestrator
    health_monitor: HealthMonitor
    _sweep_task: Optional[asyncio.Task] = field(default=None, repr=False)
    _running: bool = field(default=False, repr=False)

    async def start(self, background: bool = True) -> None:
        """Prepare the store and, optionally, start background maintenance."""
        if isinstance(self.store, SqlAlchemyStore):
            await self.store.initialize()
        if isinstance(self.analytics.store, SqlAlchemyAnalyticsStore):
            await self.analytics.store.initialize()

        if background:
            self._running = True
            await self.health_monitor.start()
            if self.settings.cache_sweep_interval_seconds > 0:
                self._sweep_task = asyncio.create_task(self._cache_sweep_loop())

        logger.info(
            "services_started",
            providers=list(self.providers),
            background=background,
        )

    async def stop(self) -> None:
        self._running = False
        await self.health_monitor.stop()
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

        for provider in self.providers.values():
            await provider.aclose()
        await self.store.close()
        await self.analytics.store.close()
        logger.info("services_stopped")

    async def _cache_sweep_loop(self) -> None:
        """Periodically clean up expired cache entries."""
        while self._running:
            await asyncio.sleep(self.settings.cache_sweep_interval_seconds)
            try:
                await self.cache.sweep_expired()
            except Exception as e:
                logger.error("cache_sweep_error", error=str(e))


def build_container(
    settings: Settings,
    providers: Optional[Mapping[str, BaseProvider]] = None,
    store: Optional[PersistentStore] = None,
    analytics_store: Optional[AnalyticsStore] = None,
    clock: Callable[[], float] = time.time,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ServiceContainer:
    """Wire the services from settings.

    ``providers``, ``store`` and ``analytics_store`` override the defaults. An
    injected cache store without an analytics store gets in-memory analytics.
    """
    clients = dict(providers) if providers is not None else build_providers(settings)
    if not clients:
        logger.warning("no_providers_configured")

    # Registry order follows provider_order; extra injected clients go last
    names = [name for name in settings.provider_order if name in clients]
    names += [name for name in clients if name not in names]

    registry = ProviderRegistry(
        [
            ProviderSpec(
                name=name,
                rate_limit=settings.rate_limit_for(name),
                cost_per_request=DEFAULT_COSTS.get(name, 0.0),
            )
            for name in names
        ],
        breaker_config=CircuitBreakerConfig(
            failure_threshold=settings.circuit_failure_threshold,
            open_duration=settings.circuit_open_seconds,
        ),
        window_size=settings.rate_limit_window_seconds,
        safety_margin=settings.rate_limit_safety_margin,
        clock=clock,
    )
    selector = ProviderSelector(registry, SelectionPolicy.from_settings(settings))
    executor = RequestExecutor(
        registry,
        selector,
        clients,
        max_attempts=settings.max_retries,
        timeout=settings.provider_timeout_seconds,
        options=GenerationOptions(
            temperature=settings.generation_temperature,
            max_output_tokens=settings.max_output_tokens,
            timeout=settings.provider_timeout_seconds,
        ),
        sleep=sleep,
    )

    if store is None:
        engine = create_engine(settings.database_url, echo=settings.debug)
        store = SqlAlchemyStore(engine)
        if analytics_store is None:
            analytics_store = SqlAlchemyAnalyticsStore(engine)
    if analytics_store is None:
        analytics_store = InMemoryAnalyticsStore()
    cache = ResultCache(store, ttl_seconds=settings.cache_ttl_seconds, clock=clock)
    analytics = QueryAnalytics(analytics_store, clock=clock)

    orchestrator = QueryOrchestrator(
        cache,
        executor,
        max_query_length=settings.max_query_length,
        clock=clock,
        analytics=analytics,
    )
    health_monitor = HealthMonitor(registry, interval=settings.health_check_interval_seconds)

    return ServiceContainer(
        settings=settings,
        providers=clients,
        registry=registry,
        selector=selector,
        executor=executor,
        store=store,
        cache=cache,
        analytics=analytics,
        orchestrator=orchestrator,
        health_monitor=health_monitor,
    )
