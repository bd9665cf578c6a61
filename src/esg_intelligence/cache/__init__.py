"""Result cache and its persistent stores."""

from .key import DEFAULT_NAMESPACE, hash_query, normalize_query
from .models import CacheEntry, CacheKey, ExpiredBefore, LiveAt, QueryContains
from .result_cache import CacheStats, ResultCache
from .sql_store import SqlAlchemyStore
from .stores import InMemoryStore, PersistentStore

__all__ = [
    "DEFAULT_NAMESPACE",
    "hash_query",
    "normalize_query",
    "CacheEntry",
    "CacheKey",
    "ExpiredBefore",
    "LiveAt",
    "QueryContains",
    "CacheStats",
    "ResultCache",
    "PersistentStore",
    "InMemoryStore",
    "SqlAlchemyStore",
]
