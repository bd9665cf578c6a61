"""Unit tests for query complexity, prompt building and quality scoring."""

import pytest

from esg_intelligence.orchestrator import (
    QueryComplexity,
    ResponseQualityScorer,
    assess_query_complexity,
    build_analysis_prompt,
)

RICH_RESPONSE = """**Executive Summary**

The EU carbon border adjustment raises compliance cost for polyethylene exports.
Regulatory exposure covers carbon emission reporting and sustainability disclosure.

**Financial Implications**

- Estimated cost: $12 million per year in certificates
- Investment in low-carbon cracking to protect export revenue

**Strategic Recommendations**

1. Recommend accelerating ESG reporting upgrades.
2. Engage regulators on environmental compliance timelines.
"""


@pytest.mark.parametrize(
    "query, expected",
    [
        ("Comprehensive competitive analysis of SABIC", QueryComplexity.HIGH),
        ("Strategic options for recycling", QueryComplexity.HIGH),
        ("EU regulatory outlook", QueryComplexity.MEDIUM),
        ("What is CBAM?", QueryComplexity.LOW),
        ("Explain scope 3", QueryComplexity.LOW),
        ("plastic tax", QueryComplexity.MEDIUM),
        # high indicators win over low ones
        ("Explain the financial impact of CBAM", QueryComplexity.HIGH),
    ],
)
def test_assess_query_complexity(query, expected):
    assert assess_query_complexity(query) == expected


def test_build_analysis_prompt():
    prompt = build_analysis_prompt("  EU plastic tax  ")

    assert 'Query: "EU plastic tax"' in prompt
    assert "1. **Executive Summary**" in prompt
    assert "8. **ESG Alignment**" in prompt


class TestResponseQualityScorer:
    """Heuristic quality scores stay within 0-100."""

    def test_rich_response_scores_high(self):
        scorer = ResponseQualityScorer()

        score = scorer.score(RICH_RESPONSE, "carbon border adjustment polyethylene", "openai")

        assert score > 85

    def test_thin_response_scores_lower(self):
        scorer = ResponseQualityScorer()

        rich = scorer.score(RICH_RESPONSE, "carbon border adjustment", "groq")
        thin = scorer.score("No idea.", "carbon border adjustment", "groq")

        assert 0 <= thin < rich <= 100

    def test_provider_prior(self):
        scorer = ResponseQualityScorer()

        openai = scorer.score(RICH_RESPONSE, "carbon", "openai")
        unknown = scorer.score(RICH_RESPONSE, "carbon", "someone-else")

        assert openai - unknown == pytest.approx(1.5)

    def test_component_scores(self):
        scorer = ResponseQualityScorer()

        assert scorer.completeness_score("") == 30.0
        assert scorer.structure_score("single line") == 60.0
        assert scorer.relevance_score(RICH_RESPONSE, "carbon border") == 100.0
