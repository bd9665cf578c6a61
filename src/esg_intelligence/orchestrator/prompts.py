"""Prompt construction, query complexity assessment and categorisation."""

from esg_intelligence.orchestrator.selector import QueryComplexity

# Checked in this order; the first level with a matching phrase wins.
COMPLEXITY_INDICATORS = {
    QueryComplexity.HIGH: (
        "competitive analysis",
        "financial impact",
        "strategic",
        "comprehensive",
        "detailed analysis",
    ),
    QueryComplexity.MEDIUM: ("regulatory", "compliance", "market", "trend", "comparison"),
    QueryComplexity.LOW: ("what is", "define", "explain", "simple", "basic"),
}

# First matching category wins; anything else is "strategic".
CATEGORY_KEYWORDS = (
    ("regulatory", ("regulation", "compliance", "cbam", "directive")),
    ("financial", ("financial", "cost", "investment", "revenue")),
    ("competitive", ("competitor", "sabic", "dow", "exxon")),
    ("market", ("market", "trend", "demand")),
    ("environmental", ("environment", "carbon", "emission", "sustainability")),
    ("governance", ("governance", "reporting", "stakeholder")),
)
DEFAULT_CATEGORY = "strategic"

ANALYSIS_SECTIONS = (
    "Executive Summary",
    "Business Impact Assessment",
    "Risk Analysis",
    "Opportunity Assessment",
    "Regulatory Implications",
    "Financial Implications",
    "Strategic Recommendations",
    "ESG Alignment",
)


def assess_query_complexity(query: str) -> QueryComplexity:
    """Classify a query by keyword, defaulting to medium."""
    lowered = query.lower()
    for level, indicators in COMPLEXITY_INDICATORS.items():
        if any(indicator in lowered for indicator in indicators):
            return level
    return QueryComplexity.MEDIUM


def categorize_query(query: str) -> str:
    """Topic bucket used for analytics and query suggestions."""
    lowered = query.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def build_analysis_prompt(query: str) -> str:
    sections = "\n".join(
        f"{i}. **{section}**" for i, section in enumerate(ANALYSIS_SECTIONS, start=1)
    )
    return (
        "You are an ESG intelligence analyst for a petrochemical company.\n\n"
        f'Query: "{query.strip()}"\n\n'
        "Provide a structured analysis covering:\n"
        f"{sections}\n\n"
        "Return the analysis as clear, structured text."
    )
