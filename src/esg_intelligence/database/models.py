"""Database models for the result cache and query analytics."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CacheEntryRecord(Base):
    """Cached analysis, unique per (namespace, query_hash)."""

    __tablename__ = "esg_intelligence_cache"
    __table_args__ = (
        UniqueConstraint("namespace", "query_hash", name="uq_cache_namespace_query_hash"),
        Index("ix_cache_expires_at", "expires_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(64), nullable=False, default="query")
    query_hash = Column(String(64), nullable=False)
    query_text = Column(Text, nullable=False)
    response_payload = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    hit_count = Column(Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "query_hash": self.query_hash,
            "query_text": self.query_text,
            "response_payload": self.response_payload,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "hit_count": self.hit_count,
        }


class QueryAnalyticsRecord(Base):
    """One analysis request outcome, successful or not."""

    __tablename__ = "esg_query_analytics"
    __table_args__ = (
        Index("ix_query_analytics_created_at", "created_at"),
        Index("ix_query_analytics_category", "category"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    query = Column(Text, nullable=False)
    category = Column(String(32), nullable=False)
    namespace = Column(String(64), nullable=False, default="query")
    provider = Column(String(32), nullable=True)
    success = Column(Boolean, nullable=False)
    cached = Column(Boolean, nullable=False, default=False)
    response_time_ms = Column(Float, nullable=False)
    quality_score = Column(Float, nullable=True)
    error_code = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
