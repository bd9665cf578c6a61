"""
Analytics store interface, plus an in-memory implementation.
"""

from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from typing import List

from .models import PopularQuery, QueryEvent


class AnalyticsStore(ABC):
    """Append-only store of query events.

    Implementations raise ``AnalyticsUnavailableError`` when the backend fails.
    """

    @abstractmethod
    async def add(self, event: QueryEvent) -> None:
        pass

    @abstractmethod
    async def find_since(self, since: datetime) -> List[QueryEvent]:
        """Events created at or after ``since``, newest first."""

    @abstractmethod
    async def popular_queries(self, limit: int) -> List[PopularQuery]:
        """Most frequent successful queries, most frequent first."""

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryAnalyticsStore(AnalyticsStore):
    """List-backed store for development and tests."""

    def __init__(self):
        self._events: List[QueryEvent] = []

    async def add(self, event: QueryEvent) -> None:
        self._events.append(event.model_copy())

    async def find_since(self, since: datetime) -> List[QueryEvent]:
        matches = [event for event in self._events if event.created_at >= since]
        return sorted(matches, key=lambda e: e.created_at, reverse=True)

    async def popular_queries(self, limit: int) -> List[PopularQuery]:
        counts = Counter(
            (event.query, event.category) for event in self._events if event.success
        )
        # most_common keeps first-seen order for equal counts
        return [
            PopularQuery(query=query, category=category, count=count)
            for (query, category), count in counts.most_common(limit)
        ]

    def __len__(self) -> int:
        return len(self._events)
