"""Unit tests for the retrying request executor."""

import pytest

from esg_intelligence.exceptions import AllProvidersExhaustedError, NoProviderAvailableError
from esg_intelligence.orchestrator import (
    ProviderRegistry,
    ProviderSelector,
    ProviderSpec,
    QueryComplexity,
    RequestExecutor,
    SelectionPolicy,
)
from esg_intelligence.providers import FailureKind, MockProvider

QUERY = "How will EU carbon border adjustment affect polyethylene exports?"


def failing(name: str) -> MockProvider:
    return MockProvider(name=name, fail_mode=FailureKind.HTTP_ERROR)


class TestRequestExecutor:
    """Retry, backoff, timeout and outcome recording."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, executor, mock_providers, recorded_sleep, registry):
        result = await executor.execute(QUERY)

        assert result.provider == "gemini"
        assert result.attempts == 1
        assert "ESG analysis from gemini" in result.text
        assert 0 <= result.quality_score <= 100
        assert mock_providers["gemini"].call_count == 1
        assert recorded_sleep.delays == []

        record = registry.get("gemini")
        assert record.metrics.successful_requests == 1
        assert record.rate_limit.requests_in_window == 1
        assert len(record.metrics.quality_scores) == 1

    @pytest.mark.asyncio
    async def test_exhausts_after_max_attempts_with_backoff(self, registry, selector, recorded_sleep):
        providers = {name: failing(name) for name in registry.provider_names}
        executor = RequestExecutor(
            registry, selector, providers, max_attempts=3, timeout=1.0, sleep=recorded_sleep
        )

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await executor.execute(QUERY)

        assert sum(p.call_count for p in providers.values()) == 3
        assert recorded_sleep.delays == [1, 2]
        assert exc_info.value.attempts == 3
        assert "Simulated http_error" in exc_info.value.last_error
        assert exc_info.value.error_code == "AI_SERVICE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_fails_over_to_next_provider(self, clock, recorded_sleep):
        registry = ProviderRegistry(
            [ProviderSpec("gemini", cost_per_request=0.01), ProviderSpec("groq", cost_per_request=0.01)],
            clock=clock,
        )
        providers = {"gemini": failing("gemini"), "groq": MockProvider(name="groq")}
        executor = RequestExecutor(
            registry, ProviderSelector(registry), providers, sleep=recorded_sleep
        )

        result = await executor.execute(QUERY)

        assert result.provider == "groq"
        assert result.attempts == 2
        assert recorded_sleep.delays == [1]
        assert registry.get("gemini").metrics.failed_requests == 1
        assert registry.get("groq").metrics.successful_requests == 1

    @pytest.mark.asyncio
    async def test_preferred_provider_kept_until_critical(self, registry, selector, recorded_sleep):
        providers = {
            "gemini": failing("gemini"),
            "groq": MockProvider(name="groq"),
            "openai": MockProvider(name="openai"),
        }
        executor = RequestExecutor(registry, selector, providers, sleep=recorded_sleep)

        with pytest.raises(AllProvidersExhaustedError):
            await executor.execute(QUERY)
        assert providers["gemini"].call_count == 3

        result = await executor.execute(QUERY)

        assert result.provider == "groq"
        assert result.attempts == 3
        assert providers["gemini"].call_count == 5
        assert registry.get("gemini").circuit_breaker.is_open

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, clock, recorded_sleep):
        registry = ProviderRegistry(["gemini"], clock=clock)
        providers = {"gemini": MockProvider(name="gemini", latency=5.0)}
        executor = RequestExecutor(
            registry,
            ProviderSelector(registry),
            providers,
            max_attempts=1,
            timeout=0.05,
            sleep=recorded_sleep,
        )

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await executor.execute(QUERY)

        assert "timeout" in exc_info.value.last_error
        assert registry.get("gemini").metrics.failed_requests == 1
        assert registry.get("gemini").health.response_time_ms > 0

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion_skips_network_call(self, clock, recorded_sleep):
        registry = ProviderRegistry([ProviderSpec("gemini", rate_limit=1)], clock=clock)
        provider = MockProvider(name="gemini")
        executor = RequestExecutor(
            registry, ProviderSelector(registry), {"gemini": provider}, max_attempts=2, sleep=recorded_sleep
        )

        await executor.execute(QUERY)
        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await executor.execute(QUERY)

        assert provider.call_count == 1
        assert "Rate limit exceeded" in exc_info.value.last_error
        assert registry.get("gemini").metrics.failed_requests == 2
        assert registry.get("gemini").rate_limit.requests_in_window == 1

    @pytest.mark.asyncio
    async def test_no_provider_available_is_not_retried(
        self, executor, registry, mock_providers, recorded_sleep
    ):
        for name in registry.provider_names:
            registry.force_open(name)

        with pytest.raises(NoProviderAvailableError):
            await executor.execute(QUERY)

        assert recorded_sleep.delays == []
        assert all(p.call_count == 0 for p in mock_providers.values())

    @pytest.mark.asyncio
    async def test_unexpected_client_exception_becomes_failure(self, clock, recorded_sleep):
        class BrokenProvider(MockProvider):
            async def generate(self, prompt, options=None):
                raise RuntimeError("socket exploded")

        registry = ProviderRegistry(["gemini"], clock=clock)
        executor = RequestExecutor(
            registry,
            ProviderSelector(registry),
            {"gemini": BrokenProvider(name="gemini")},
            max_attempts=1,
            sleep=recorded_sleep,
        )

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await executor.execute(QUERY)

        assert "socket exploded" in exc_info.value.last_error
        assert registry.get("gemini").health.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_complexity_passed_to_selection(self, registry, mock_providers, recorded_sleep):
        policy = SelectionPolicy(complexity_bonus={"openai": {"high": 500.0}})
        executor = RequestExecutor(
            registry, ProviderSelector(registry, policy), mock_providers, sleep=recorded_sleep
        )

        result = await executor.execute(QUERY, complexity=QueryComplexity.HIGH)

        assert result.provider == "openai"

    def test_missing_client_rejected(self, registry, selector):
        with pytest.raises(ValueError):
            RequestExecutor(registry, selector, {"gemini": MockProvider(name="gemini")})
