"""Periodic provider health diagnostics."""

import asyncio
from typing import Any, Dict, Optional

import structlog

from esg_intelligence.orchestrator.registry import STALE_AFTER_SECONDS, ProviderRegistry

logger = structlog.get_logger(__name__)


class HealthMonitor:
    """Background task that logs provider health every ``interval`` seconds.

    Each tick also moves long-idle critical providers to ``unknown`` so their
    circuit can be tried again.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        interval: float = 30.0,
        stale_after: float = STALE_AFTER_SECONDS,
    ):
        self.registry = registry
        self.interval = interval
        self.stale_after = stale_after
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running or self.interval <= 0:
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("health_monitor_started", interval=self.interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("health_monitor_stopped")

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.interval)
            try:
                self.check()
            except Exception as e:
                logger.error("health_check_error", error=str(e))

    def check(self) -> Dict[str, Any]:
        """Run one diagnostic pass and return the health summary."""
        self.registry.mark_stale(self.stale_after)
        summary = self.registry.get_health_summary()

        for name, stats in self.registry.get_statistics().items():
            health = stats["health"]
            logger.debug(
                "provider_health",
                provider=name,
                status=health["status"],
                availability=round(health["availability"], 1),
                response_time_ms=round(health["response_time_ms"], 1),
                circuit=stats["circuit_breaker"]["state"],
            )

        if summary["overall_status"] == "healthy":
            logger.info("provider_health_summary", **summary)
        else:
            logger.warning("provider_health_summary", **summary)
        return summary
