"""
Per-query analytics and the suggestions derived from them.
"""

import time
from collections import Counter, defaultdict
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog

from esg_intelligence.cache.key import DEFAULT_NAMESPACE
from esg_intelligence.exceptions import AnalyticsUnavailableError
from esg_intelligence.orchestrator.prompts import categorize_query
from esg_intelligence.telemetry import metrics

from .models import QueryEvent
from .stores import AnalyticsStore

logger = structlog.get_logger(__name__)

DEFAULT_SUGGESTIONS = (
    "EU plastic waste regulations 2024",
    "Carbon border adjustment mechanism CBAM",
    "Circular economy petrochemicals",
    "REACH compliance requirements",
    "Sustainability reporting standards",
    "ESG disclosure requirements UAE",
    "Plastic recycling technologies",
    "Green hydrogen petrochemicals",
)
DEFAULT_SUGGESTION_CATEGORIES = {
    "regulations": ["EU plastic waste regulations 2024", "REACH compliance requirements"],
    "carbon": ["Carbon border adjustment mechanism CBAM"],
    "circular_economy": ["Circular economy petrochemicals", "Plastic recycling technologies"],
    "reporting": ["Sustainability reporting standards", "ESG disclosure requirements UAE"],
    "innovation": ["Green hydrogen petrochemicals"],
}


class QueryAnalytics:
    """Records request outcomes and summarises them.

    Recording is best effort: a store failure is logged and counted, never
    raised to the request that triggered it.
    """

    def __init__(self, store: AnalyticsStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    async def record(
        self,
        query: str,
        success: bool,
        response_time_ms: float,
        namespace: str = DEFAULT_NAMESPACE,
        provider: Optional[str] = None,
        quality_score: Optional[float] = None,
        cached: bool = False,
        error_code: Optional[str] = None,
    ) -> Optional[QueryEvent]:
        event = QueryEvent(
            query=query,
            category=categorize_query(query),
            namespace=namespace,
            provider=provider,
            success=success,
            cached=cached,
            response_time_ms=max(0.0, response_time_ms),
            quality_score=quality_score,
            error_code=error_code,
            created_at=self._now(),
        )
        try:
            await self.store.add(event)
        except AnalyticsUnavailableError as e:
            metrics.analytics_errors.labels(operation="record").inc()
            logger.warning("analytics_record_failed", error=str(e))
            return None

        metrics.analytics_events.labels(success=str(success).lower()).inc()
        logger.debug(
            "analytics_recorded",
            category=event.category,
            provider=provider,
            success=success,
            response_time_ms=round(event.response_time_ms, 1),
        )
        return event

    async def search_summary(self, days: int = 7) -> List[Dict[str, Any]]:
        """Daily totals for the last ``days`` days, newest day first."""
        now = self._now()
        since = datetime.combine(
            (now - timedelta(days=days - 1)).date(), datetime.min.time(), tzinfo=timezone.utc
        )
        events = await self.store.find_since(since)

        by_day: Dict[str, List[QueryEvent]] = defaultdict(list)
        for event in events:
            by_day[event.created_at.astimezone(timezone.utc).date().isoformat()].append(event)

        summary = []
        for day in sorted(by_day, reverse=True):
            day_events = by_day[day]
            successful = [e for e in day_events if e.success]
            scores = [e.quality_score for e in successful if e.quality_score is not None]
            summary.append(
                {
                    "date": day,
                    "total_queries": len(day_events),
                    "successful_queries": len(successful),
                    "failed_queries": len(day_events) - len(successful),
                    "cached_queries": sum(1 for e in day_events if e.cached),
                    "avg_response_time_ms": round(
                        sum(e.response_time_ms for e in day_events) / len(day_events), 1
                    ),
                    "avg_quality_score": round(sum(scores) / len(scores), 1) if scores else None,
                    "categories": dict(Counter(e.category for e in day_events)),
                }
            )
        return summary

    async def suggested_queries(self, limit: int = 8) -> Dict[str, Any]:
        """Most asked queries grouped by category, or a fixed default set."""
        try:
            popular = await self.store.popular_queries(limit)
        except AnalyticsUnavailableError as e:
            metrics.analytics_errors.labels(operation="suggestions").inc()
            logger.warning("suggested_queries_fallback", error=str(e))
            popular = []

        if not popular:
            return {
                "queries": list(DEFAULT_SUGGESTIONS),
                "categories": {k: list(v) for k, v in DEFAULT_SUGGESTION_CATEGORIES.items()},
                "source": "default",
            }

        categories: Dict[str, List[str]] = defaultdict(list)
        for item in popular:
            categories[item.category].append(item.query)
        return {
            "queries": [item.query for item in popular],
            "categories": dict(categories),
            "source": "database",
        }
