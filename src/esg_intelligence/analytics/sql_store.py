"""
SQLAlchemy-backed analytics store.
"""

from datetime import datetime, timezone
from typing import List

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from esg_intelligence.database.models import QueryAnalyticsRecord
from esg_intelligence.database.session import close_db, create_session_factory, init_db
from esg_intelligence.exceptions import AnalyticsUnavailableError

from .models import PopularQuery, QueryEvent
from .stores import AnalyticsStore

logger = structlog.get_logger(__name__)


def _to_event(record: QueryAnalyticsRecord) -> QueryEvent:
    created_at = record.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return QueryEvent(
        query=record.query,
        category=record.category,
        namespace=record.namespace,
        provider=record.provider,
        success=record.success,
        cached=record.cached,
        response_time_ms=record.response_time_ms,
        quality_score=record.quality_score,
        error_code=record.error_code,
        created_at=created_at,
    )


class SqlAlchemyAnalyticsStore(AnalyticsStore):
    """Stores query events in the ``esg_query_analytics`` table."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def initialize(self) -> None:
        try:
            await init_db(self.engine)
        except SQLAlchemyError as e:
            raise AnalyticsUnavailableError(f"Failed to initialize analytics table: {e}") from e

    async def add(self, event: QueryEvent) -> None:
        try:
            async with self.session_factory() as session:
                session.add(QueryAnalyticsRecord(**event.model_dump()))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("analytics_store_write_failed", error=str(e))
            raise AnalyticsUnavailableError(f"Analytics write failed: {e}") from e

    async def find_since(self, since: datetime) -> List[QueryEvent]:
        stmt = (
            select(QueryAnalyticsRecord)
            .where(QueryAnalyticsRecord.created_at >= since)
            .order_by(QueryAnalyticsRecord.created_at.desc(), QueryAnalyticsRecord.id.desc())
        )
        try:
            async with self.session_factory() as session:
                records = (await session.execute(stmt)).scalars().all()
                return [_to_event(record) for record in records]
        except SQLAlchemyError as e:
            logger.error("analytics_store_read_failed", error=str(e))
            raise AnalyticsUnavailableError(f"Analytics query failed: {e}") from e

    async def popular_queries(self, limit: int) -> List[PopularQuery]:
        count = func.count(QueryAnalyticsRecord.id).label("count")
        stmt = (
            select(QueryAnalyticsRecord.query, QueryAnalyticsRecord.category, count)
            .where(QueryAnalyticsRecord.success.is_(True))
            .group_by(QueryAnalyticsRecord.query, QueryAnalyticsRecord.category)
            .order_by(count.desc(), func.min(QueryAnalyticsRecord.id))
            .limit(limit)
        )
        try:
            async with self.session_factory() as session:
                rows = (await session.execute(stmt)).all()
                return [
                    PopularQuery(query=row.query, category=row.category, count=row.count)
                    for row in rows
                ]
        except SQLAlchemyError as e:
            logger.error("analytics_store_read_failed", error=str(e))
            raise AnalyticsUnavailableError(f"Popular query lookup failed: {e}") from e

    async def close(self) -> None:
        await close_db(self.engine)
