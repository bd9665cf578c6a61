"""Cache entry model and store predicates."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field

from .key import DEFAULT_NAMESPACE, hash_query


class CacheKey(BaseModel):
    """Namespace and query hash; the namespace is never folded into the hash."""

    model_config = ConfigDict(frozen=True)

    namespace: str = DEFAULT_NAMESPACE
    query_hash: str = Field(min_length=64, max_length=64)

    @classmethod
    def for_query(cls, query: str, namespace: str = DEFAULT_NAMESPACE) -> "CacheKey":
        return cls(namespace=namespace, query_hash=hash_query(query))


class CacheEntry(BaseModel):
    """A cached analysis."""

    namespace: str = DEFAULT_NAMESPACE
    query_hash: str
    query_text: str
    response_payload: Dict[str, Any]
    created_at: datetime
    expires_at: datetime
    hit_count: int = Field(default=0, ge=0)

    @property
    def key(self) -> CacheKey:
        return CacheKey(namespace=self.namespace, query_hash=self.query_hash)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class ExpiredBefore:
    """Entries with ``expires_at`` earlier than ``timestamp``."""

    timestamp: datetime

    def matches(self, entry: CacheEntry) -> bool:
        return entry.expires_at < self.timestamp


@dataclass(frozen=True)
class LiveAt:
    """Entries still valid at ``timestamp``."""

    timestamp: datetime

    def matches(self, entry: CacheEntry) -> bool:
        return entry.expires_at > self.timestamp


@dataclass(frozen=True)
class QueryContains:
    """Entries whose query text contains ``pattern`` (case-insensitive)."""

    pattern: str

    def matches(self, entry: CacheEntry) -> bool:
        return self.pattern.lower() in entry.query_text.lower()


Predicate = Union[ExpiredBefore, LiveAt, QueryContains]
