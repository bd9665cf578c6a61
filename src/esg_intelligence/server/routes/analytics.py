"""Query analytics and suggestion endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from esg_intelligence.bootstrap import ServiceContainer
from esg_intelligence.exceptions import InvalidParameterError

from ..dependencies import get_container
from ..schemas import SuggestedQueriesResponse

router = APIRouter()

MAX_ANALYTICS_DAYS = 30


@router.get("/analytics/search")
async def search_analytics(
    days: int = Query(default=7),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Daily query totals, categories and response times."""
    if not 1 <= days <= MAX_ANALYTICS_DAYS:
        raise InvalidParameterError(
            f"Days must be a number between 1 and {MAX_ANALYTICS_DAYS}",
            error_code="INVALID_DAYS",
        )

    return {
        "success": True,
        "analytics": await container.analytics.search_summary(days),
        "period": f"{days} days",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/suggested-queries", response_model=SuggestedQueriesResponse)
async def suggested_queries(
    container: ServiceContainer = Depends(get_container),
) -> SuggestedQueriesResponse:
    """Most asked queries grouped by category."""
    suggestions = await container.analytics.suggested_queries()
    return SuggestedQueriesResponse(
        queries=suggestions["queries"],
        suggestions=suggestions["queries"],
        categories=suggestions["categories"],
        source=suggestions["source"],
        timestamp=datetime.now(timezone.utc),
    )
