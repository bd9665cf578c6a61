"""Unit tests for weighted provider selection."""

import pytest

from esg_intelligence.exceptions import NoProviderAvailableError
from esg_intelligence.orchestrator import (
    CircuitState,
    ProviderRegistry,
    ProviderSelector,
    ProviderSpec,
    QueryComplexity,
    SelectionPolicy,
)


class TestProviderSelector:
    """Scoring, bonuses and tie-breaking."""

    def test_default_policy_prefers_gemini(self, selector):
        assert selector.select() == "gemini"

    def test_default_scores(self, selector):
        ranked = {score.provider: score for score in selector.rank()}

        # 0.4*100 + 0.3*50 + 0.2*100 + 0.1*80
        assert ranked["gemini"].base_score == pytest.approx(83.0)
        assert ranked["gemini"].bonus == 65.0
        assert ranked["groq"].bonus == -15.0
        assert ranked["openai"].bonus == -30.0
        assert [s.provider for s in selector.rank()] == ["gemini", "groq", "openai"]

    def test_complexity_bonus(self, selector):
        ranked = {s.provider: s for s in selector.rank(QueryComplexity.LOW)}
        assert ranked["gemini"].bonus == 55.0
        assert ranked["groq"].bonus == -13.0

        ranked = {s.provider: s for s in selector.rank(QueryComplexity.HIGH)}
        assert ranked["gemini"].bonus == 70.0

    def test_priority_bonus_overrides_order(self, clock):
        registry = ProviderRegistry(
            [ProviderSpec("b", cost_per_request=0.01), ProviderSpec("a", cost_per_request=0.01)],
            clock=clock,
        )
        selector = ProviderSelector(registry, SelectionPolicy(priority_bonus={"a": 50}))

        assert selector.select() == "a"

    def test_ties_go_to_first_listed(self, clock):
        registry = ProviderRegistry(
            [ProviderSpec("x", cost_per_request=0.01), ProviderSpec("y", cost_per_request=0.01)],
            clock=clock,
        )
        selector = ProviderSelector(registry)

        assert selector.select() == "x"

    def test_low_cost_bonus(self, clock):
        registry = ProviderRegistry(
            [ProviderSpec("pricey", cost_per_request=0.01), ProviderSpec("cheap", cost_per_request=0.0002)],
            clock=clock,
        )
        selector = ProviderSelector(registry)

        ranked = selector.rank()
        assert ranked[0].provider == "cheap"
        assert ranked[0].bonus == 5.0

    def test_prefer_speed_uses_response_time(self, clock):
        registry = ProviderRegistry(
            [ProviderSpec("slow", cost_per_request=0.01), ProviderSpec("fast", cost_per_request=0.01)],
            clock=clock,
        )
        registry.record_outcome("slow", True, 5000)
        registry.record_outcome("fast", True, 0)
        selector = ProviderSelector(registry)

        assert selector.select(prefer_speed=False) == "slow"
        assert selector.select(prefer_speed=True) == "fast"

    def test_speed_score_floors_at_zero(self, clock):
        registry = ProviderRegistry([ProviderSpec("glacial", cost_per_request=0.01)], clock=clock)
        registry.record_outcome("glacial", True, 50_000)
        selector = ProviderSelector(registry)

        score = selector.rank(prefer_speed=True)[0]

        # 0.4*100 + 0.3*0 + 0.2*100 + 0.1*80
        assert score.base_score == pytest.approx(68.0)

    def test_critical_provider_skipped(self, registry, selector):
        for _ in range(5):
            registry.record_outcome("gemini", False, 0)

        assert selector.select() == "groq"

    def test_no_provider_available(self, registry, selector):
        for name in registry.provider_names:
            registry.force_open(name)

        with pytest.raises(NoProviderAvailableError) as exc_info:
            selector.select()

        assert exc_info.value.error_code == "NO_PROVIDER_AVAILABLE"
        assert selector.rank() == []

    def test_preview_leaves_circuits_untouched(self, registry, selector, clock):
        registry.force_open("gemini")
        breaker = registry.get("gemini").circuit_breaker

        assert [s.provider for s in selector.preview()] == ["groq", "openai"]

        clock.advance(61)
        assert selector.preview()[0].provider == "gemini"
        assert breaker.state == CircuitState.OPEN

        selector.rank()
        assert breaker.state == CircuitState.HALF_OPEN

    def test_policy_from_settings(self, test_settings):
        policy = SelectionPolicy.from_settings(test_settings)

        assert policy.priority_bonus == {"gemini": 50.0, "groq": -20.0, "openai": -30.0}
        assert policy.complexity_bonus["gemini"]["high"] == 15.0
