"""Query analytics and suggested queries."""

from .models import PopularQuery, QueryEvent
from .sql_store import SqlAlchemyAnalyticsStore
from .stores import AnalyticsStore, InMemoryAnalyticsStore
from .tracker import DEFAULT_SUGGESTIONS, QueryAnalytics

__all__ = [
    "PopularQuery",
    "QueryEvent",
    "AnalyticsStore",
    "InMemoryAnalyticsStore",
    "SqlAlchemyAnalyticsStore",
    "DEFAULT_SUGGESTIONS",
    "QueryAnalytics",
]
