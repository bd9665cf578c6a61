"""
Persistent store interface for cache entries, plus an in-memory implementation.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import CacheEntry, CacheKey, Predicate


class PersistentStore(ABC):
    """Key-value store for cache entries.

    Implementations raise ``CacheUnavailableError`` when the backend fails.
    """

    @abstractmethod
    async def upsert_by_key(self, key: CacheKey, entry: CacheEntry) -> None:
        """Insert the entry or replace the one stored under ``key``."""

    @abstractmethod
    async def find_by_key(self, key: CacheKey) -> Optional[CacheEntry]:
        pass

    @abstractmethod
    async def increment_hits(self, key: CacheKey) -> None:
        """Add one to the hit count of the entry under ``key``, if present.

        Touches no other field and never recreates a deleted entry.
        """

    @abstractmethod
    async def delete_where(self, predicate: Predicate) -> int:
        """Delete matching entries and return how many were removed."""

    @abstractmethod
    async def find_where(
        self,
        predicate: Predicate,
        order_by_hits: bool = False,
        limit: Optional[int] = None,
    ) -> List[CacheEntry]:
        pass

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryStore(PersistentStore):
    """Dict-backed store for development and tests."""

    def __init__(self):
        self._entries: Dict[CacheKey, CacheEntry] = {}

    async def upsert_by_key(self, key: CacheKey, entry: CacheEntry) -> None:
        self._entries[key] = entry.model_copy(deep=True)

    async def find_by_key(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        return entry.model_copy(deep=True) if entry else None

    async def increment_hits(self, key: CacheKey) -> None:
        entry = self._entries.get(key)
        if entry is not None:
            entry.hit_count += 1

    async def delete_where(self, predicate: Predicate) -> int:
        doomed = [key for key, entry in self._entries.items() if predicate.matches(entry)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    async def find_where(
        self,
        predicate: Predicate,
        order_by_hits: bool = False,
        limit: Optional[int] = None,
    ) -> List[CacheEntry]:
        matches = [entry for entry in self._entries.values() if predicate.matches(entry)]
        if order_by_hits:
            matches.sort(key=lambda e: e.hit_count, reverse=True)
        if limit is not None:
            matches = matches[:limit]
        return [entry.model_copy(deep=True) for entry in matches]

    def __len__(self) -> int:
        return len(self._entries)
