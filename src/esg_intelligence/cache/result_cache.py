"""
Content-addressed, TTL-bounded cache of analysis results.
"""

import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog

from esg_intelligence.exceptions import CacheUnavailableError
from esg_intelligence.telemetry import metrics

from .key import DEFAULT_NAMESPACE, hash_query
from .models import CacheEntry, CacheKey, ExpiredBefore, LiveAt, QueryContains
from .stores import PersistentStore

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 24 * 3600


@dataclass
class CacheStats:
    """Hit/miss counters since process start."""

    hits: int = 0
    misses: int = 0
    errors: int = 0
    writes: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            **asdict(self),
            "total_requests": self.total_requests,
            "hit_rate": round(self.hit_rate, 2),
        }


class ResultCache:
    """Caches analysis payloads keyed by (namespace, normalized query hash).

    Store failures never reach callers: a failed read is a miss and a failed
    write is logged and dropped.
    """

    def __init__(
        self,
        store: PersistentStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock
        self.stats = CacheStats()

    @staticmethod
    def hash_query(query: str) -> str:
        return hash_query(query)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    async def get(self, query: str, namespace: str = DEFAULT_NAMESPACE) -> Optional[Dict[str, Any]]:
        """Return the live payload for ``query`` or None."""
        key = CacheKey.for_query(query, namespace)
        now = self._now()

        try:
            entry = await self.store.find_by_key(key)
        except CacheUnavailableError as e:
            self._record_error("get", e)
            self._record_miss(namespace)
            return None

        if entry is None or entry.is_expired(now):
            self._record_miss(namespace)
            return None

        self.stats.hits += 1
        metrics.cache_hits.labels(namespace=namespace).inc()
        logger.info(
            "cache_hit",
            namespace=namespace,
            query_hash=key.query_hash[:16],
            hit_count=entry.hit_count + 1,
        )

        try:
            await self.store.increment_hits(key)
        except CacheUnavailableError as e:
            self._record_error("hit_count", e)

        return entry.response_payload

    async def put(
        self, query: str, payload: Dict[str, Any], namespace: str = DEFAULT_NAMESPACE
    ) -> None:
        key = CacheKey.for_query(query, namespace)
        now = self._now()
        entry = CacheEntry(
            namespace=namespace,
            query_hash=key.query_hash,
            query_text=query.strip(),
            response_payload=payload,
            created_at=now,
            expires_at=now + self.ttl,
            hit_count=0,
        )

        try:
            await self.store.upsert_by_key(key, entry)
        except CacheUnavailableError as e:
            self._record_error("put", e)
            return

        self.stats.writes += 1
        logger.info(
            "cache_stored",
            namespace=namespace,
            query_hash=key.query_hash[:16],
            expires_at=entry.expires_at.isoformat(),
        )

    async def sweep_expired(self) -> int:
        """Delete entries whose expiry has passed; returns the count removed."""
        try:
            removed = await self.store.delete_where(ExpiredBefore(self._now()))
        except CacheUnavailableError as e:
            self._record_error("sweep", e)
            return 0

        if removed:
            metrics.cache_swept.inc(removed)
            logger.info("cache_swept", removed=removed)
        return removed

    async def invalidate(self, pattern: str) -> int:
        """Delete entries whose query text contains ``pattern``."""
        removed = await self.store.delete_where(QueryContains(pattern))
        logger.info("cache_invalidated", pattern=pattern, removed=removed)
        return removed

    async def popular(self, limit: int = 10) -> List[Dict[str, Any]]:
        entries = await self.store.find_where(
            LiveAt(self._now()), order_by_hits=True, limit=limit
        )
        return [
            {
                "query": entry.query_text,
                "namespace": entry.namespace,
                "hit_count": entry.hit_count,
                "created_at": entry.created_at.isoformat(),
                "expires_at": entry.expires_at.isoformat(),
            }
            for entry in entries
        ]

    async def get_stats(self) -> Dict[str, Any]:
        """Counters plus live-entry totals from the store."""
        stats = self.stats.to_dict()
        try:
            live = await self.store.find_where(LiveAt(self._now()))
        except CacheUnavailableError as e:
            self._record_error("stats", e)
            stats.update(live_entries=None, total_hits=None, available=False)
            return stats

        stats.update(
            live_entries=len(live),
            total_hits=sum(entry.hit_count for entry in live),
            ttl_hours=self.ttl.total_seconds() / 3600,
            available=True,
        )
        return stats

    async def health_check(self) -> Dict[str, Any]:
        healthy = await self.store.health_check()
        return {"status": "healthy" if healthy else "unhealthy", "hit_rate": self.stats.hit_rate}

    def _record_miss(self, namespace: str) -> None:
        self.stats.misses += 1
        metrics.cache_misses.labels(namespace=namespace).inc()

    def _record_error(self, operation: str, error: Exception) -> None:
        self.stats.errors += 1
        metrics.cache_errors.labels(operation=operation).inc()
        logger.warning("cache_operation_failed", operation=operation, error=str(error))
