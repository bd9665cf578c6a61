"""Heuristic quality scoring of generated analyses."""

import re
from typing import Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

ESG_TERMS = (
    "esg",
    "sustainability",
    "regulatory",
    "compliance",
    "carbon",
    "emission",
    "environmental",
)
FINANCIAL_TERMS = ("€", "$", "million", "billion", "cost", "investment", "revenue", "export")

DEFAULT_PROVIDER_PRIORS: Dict[str, float] = {
    "groq": 90.0,
    "gemini": 85.0,
    "openai": 95.0,
}


class ResponseQualityScorer:
    """Scores a response 0-100.

    Weighted blend of completeness (40%), relevance to the query and the
    ESG domain (30%), structure (20%) and a per-provider prior (10%).
    """

    def __init__(
        self,
        provider_priors: Optional[Dict[str, float]] = None,
        default_prior: float = 80.0,
        min_length: int = 200,
    ):
        self.provider_priors = provider_priors or dict(DEFAULT_PROVIDER_PRIORS)
        self.default_prior = default_prior
        self.min_length = min_length

    def score(self, text: str, query: str, provider: str) -> float:
        completeness = self.completeness_score(text)
        relevance = self.relevance_score(text, query)
        structure = self.structure_score(text)
        prior = self.provider_priors.get(provider, self.default_prior)

        score = completeness * 0.4 + relevance * 0.3 + structure * 0.2 + prior * 0.1
        score = max(0.0, min(100.0, score))

        logger.debug(
            "quality_scored",
            provider=provider,
            score=round(score, 1),
            completeness=completeness,
            relevance=relevance,
            structure=structure,
        )
        return score

    def completeness_score(self, text: str) -> float:
        score = 100.0
        stripped = text.strip()
        if len(stripped) < self.min_length:
            score -= 40
        elif len(stripped) < self.min_length * 3:
            score -= 15
        if "summary" not in stripped.lower():
            score -= 20
        if "recommend" not in stripped.lower():
            score -= 10
        return max(0.0, score)

    def relevance_score(self, text: str, query: str) -> float:
        score = 100.0
        content = text.lower()

        if sum(term in content for term in ESG_TERMS) < 3:
            score -= 15
        if sum(term in content for term in FINANCIAL_TERMS) < 2:
            score -= 10

        query_words = [word for word in query.lower().split() if len(word) > 3]
        if query_words:
            matched = sum(word in content for word in query_words)
            if matched / len(query_words) < 0.5:
                score -= 20

        return max(0.0, score)

    def structure_score(self, text: str) -> float:
        score = 100.0
        paragraphs = [p for p in re.split(r"\n\s*\n", text) if p.strip()]
        if len(paragraphs) < 2:
            score -= 20
        if not re.search(r"^\s*(?:[-*•]|\d+\.)\s+", text, re.MULTILINE):
            score -= 10
        if not re.search(r"^\s*(?:#+\s|\*\*[^*]+\*\*)", text, re.MULTILINE):
            score -= 10
        return max(0.0, score)
