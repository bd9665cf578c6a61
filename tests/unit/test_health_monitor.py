"""Unit tests for the background health monitor."""

import asyncio

import pytest

from esg_intelligence.orchestrator import HealthMonitor, HealthStatus


class TestHealthMonitor:
    def test_check_marks_stale_critical_providers(self, registry, clock):
        for _ in range(5):
            registry.record_outcome("openai", False, 0)
        monitor = HealthMonitor(registry, interval=30, stale_after=300)

        assert monitor.check()["overall_status"] == "critical"

        clock.advance(301)
        summary = monitor.check()

        assert registry.get("openai").health.status == HealthStatus.UNKNOWN
        assert summary["critical"] == 0

    @pytest.mark.asyncio
    async def test_start_and_stop(self, registry):
        monitor = HealthMonitor(registry, interval=0.01)

        await monitor.start()
        assert monitor.running
        await asyncio.sleep(0.05)
        await monitor.stop()

        assert not monitor.running

    @pytest.mark.asyncio
    async def test_zero_interval_disables(self, registry):
        monitor = HealthMonitor(registry, interval=0)

        await monitor.start()

        assert not monitor.running
