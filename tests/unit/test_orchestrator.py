"""Unit tests for the analysis use case."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from esg_intelligence.analytics import QueryAnalytics
from esg_intelligence.cache import ResultCache
from esg_intelligence.exceptions import AllProvidersExhaustedError, InvalidQueryError
from esg_intelligence.orchestrator import ExecutionResult, QueryComplexity, QueryOrchestrator
from esg_intelligence.providers import FailureKind


QUERY = "What is the financial impact of EU plastic packaging rules?"


class TestQueryOrchestrator:
    """Validation, cache-first flow and error propagation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None, 42, ["list"]])
    async def test_invalid_query_rejected_without_calls(self, orchestrator, mock_providers, query):
        with pytest.raises(InvalidQueryError) as exc_info:
            await orchestrator.analyze(query)

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "INVALID_QUERY"
        assert all(p.call_count == 0 for p in mock_providers.values())

    @pytest.mark.asyncio
    async def test_query_too_long(self, orchestrator, mock_providers):
        with pytest.raises(InvalidQueryError) as exc_info:
            await orchestrator.analyze("x" * 1001)

        assert exc_info.value.error_code == "QUERY_TOO_LONG"
        assert all(p.call_count == 0 for p in mock_providers.values())

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, orchestrator, mock_providers):
        first = await orchestrator.analyze(QUERY)
        second = await orchestrator.analyze(QUERY.upper())

        assert first.cached is False
        assert second.cached is True
        assert first.provider == second.provider == "gemini"
        assert second.payload == first.payload
        assert mock_providers["gemini"].call_count == 1

        payload = first.payload
        assert payload["query"] == QUERY
        assert payload["provider"] == "gemini"
        assert payload["attempts"] == 1
        assert payload["complexity"] == "high"
        assert "ESG analysis from gemini" in payload["response"]
        assert 0 <= payload["quality_score"] <= 100
        assert payload["generated_at"]

    @pytest.mark.asyncio
    async def test_namespaces_cache_separately(self, orchestrator, mock_providers):
        await orchestrator.analyze(QUERY)
        result = await orchestrator.analyze(QUERY, namespace="smart_search")

        assert result.cached is False
        assert mock_providers["gemini"].call_count == 2

    @pytest.mark.asyncio
    async def test_provider_failure_propagates_and_nothing_cached(
        self, orchestrator, mock_providers, memory_store
    ):
        for provider in mock_providers.values():
            provider.fail_mode = FailureKind.HTTP_ERROR

        with pytest.raises(AllProvidersExhaustedError):
            await orchestrator.analyze(QUERY)

        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_cache_outage_falls_through_to_provider(
        self, executor, mock_providers, failing_store, clock
    ):
        orchestrator = QueryOrchestrator(ResultCache(failing_store, clock=clock), executor, clock=clock)

        result = await orchestrator.analyze(QUERY)

        assert result.cached is False
        assert mock_providers["gemini"].call_count == 1

    @pytest.mark.asyncio
    async def test_complexity_assessment_reaches_executor(self, result_cache, clock):
        executor = AsyncMock()
        executor.execute.return_value = ExecutionResult(
            provider="groq", text="analysis", attempts=1, response_time_ms=12.0, quality_score=70.0
        )
        orchestrator = QueryOrchestrator(result_cache, executor, clock=clock)

        await orchestrator.analyze("Explain scope 3 emissions", prefer_speed=True)

        executor.execute.assert_awaited_once_with(
            "Explain scope 3 emissions", QueryComplexity.LOW, True
        )

    @pytest.mark.asyncio
    async def test_query_is_trimmed(self, orchestrator):
        result = await orchestrator.analyze("   " + QUERY + "  ")

        assert result.payload["query"] == QUERY

    @pytest.mark.asyncio
    async def test_analytics_recorded_for_generated_and_cached(self, orchestrator, analytics_store):
        await orchestrator.analyze(QUERY)
        await orchestrator.analyze(QUERY)

        events = await analytics_store.find_since(datetime.fromtimestamp(0, tz=timezone.utc))

        assert len(events) == 2
        assert all(e.success and e.provider == "gemini" for e in events)
        assert sorted(e.cached for e in events) == [False, True]
        assert events[0].category == "financial"

    @pytest.mark.asyncio
    async def test_analytics_recorded_for_failure(
        self, orchestrator, mock_providers, analytics_store
    ):
        for provider in mock_providers.values():
            provider.fail_mode = FailureKind.HTTP_ERROR

        with pytest.raises(AllProvidersExhaustedError):
            await orchestrator.analyze(QUERY)

        [event] = await analytics_store.find_since(datetime.fromtimestamp(0, tz=timezone.utc))
        assert event.success is False
        assert event.error_code == "AI_SERVICE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_analytics_outage_does_not_fail_request(
        self, result_cache, executor, failing_analytics_store, clock
    ):
        orchestrator = QueryOrchestrator(
            result_cache,
            executor,
            clock=clock,
            analytics=QueryAnalytics(failing_analytics_store, clock=clock),
        )

        result = await orchestrator.analyze(QUERY)

        assert result.cached is False
        assert result.provider == "gemini"
