"""Database module for the cache and analytics persistence layer."""

from .models import Base, CacheEntryRecord, QueryAnalyticsRecord
from .session import close_db, create_engine, create_session_factory, init_db

__all__ = [
    "Base",
    "CacheEntryRecord",
    "QueryAnalyticsRecord",
    "create_engine",
    "create_session_factory",
    "init_db",
    "close_db",
]
