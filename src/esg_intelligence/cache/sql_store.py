"""
SQLAlchemy-backed persistent store (PostgreSQL via asyncpg, SQLite via aiosqlite).
"""

from datetime import datetime, timezone
from typing import List, Optional

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from esg_intelligence.database.models import CacheEntryRecord
from esg_intelligence.database.session import close_db, create_session_factory, init_db
from esg_intelligence.exceptions import CacheUnavailableError

from .models import CacheEntry, CacheKey, ExpiredBefore, LiveAt, Predicate, QueryContains
from .stores import PersistentStore

logger = structlog.get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entry(record: CacheEntryRecord) -> CacheEntry:
    return CacheEntry(
        namespace=record.namespace,
        query_hash=record.query_hash,
        query_text=record.query_text,
        response_payload=record.response_payload,
        created_at=_as_utc(record.created_at),
        expires_at=_as_utc(record.expires_at),
        hit_count=record.hit_count,
    )


def _where_clause(predicate: Predicate):
    if isinstance(predicate, ExpiredBefore):
        return CacheEntryRecord.expires_at < predicate.timestamp
    if isinstance(predicate, LiveAt):
        return CacheEntryRecord.expires_at > predicate.timestamp
    if isinstance(predicate, QueryContains):
        return func.lower(CacheEntryRecord.query_text).contains(
            predicate.pattern.lower(), autoescape=True
        )
    raise TypeError(f"Unsupported predicate: {predicate!r}")


class SqlAlchemyStore(PersistentStore):
    """Stores cache entries in the ``esg_intelligence_cache`` table."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def initialize(self) -> None:
        try:
            await init_db(self.engine)
        except SQLAlchemyError as e:
            raise CacheUnavailableError(f"Failed to initialize cache table: {e}") from e

    def _insert(self):
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(CacheEntryRecord)
        if self.engine.dialect.name == "sqlite":
            return sqlite.insert(CacheEntryRecord)
        raise CacheUnavailableError(f"Unsupported database dialect: {self.engine.dialect.name}")

    async def upsert_by_key(self, key: CacheKey, entry: CacheEntry) -> None:
        values = {
            "namespace": key.namespace,
            "query_hash": key.query_hash,
            "query_text": entry.query_text,
            "response_payload": entry.response_payload,
            "created_at": entry.created_at,
            "expires_at": entry.expires_at,
            "hit_count": entry.hit_count,
        }
        stmt = self._insert().values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["namespace", "query_hash"],
            set_={name: stmt.excluded[name] for name in values if name not in ("namespace", "query_hash")},
        )

        try:
            async with self.session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("cache_store_write_failed", error=str(e))
            raise CacheUnavailableError(f"Cache write failed: {e}") from e

    async def find_by_key(self, key: CacheKey) -> Optional[CacheEntry]:
        stmt = select(CacheEntryRecord).where(
            CacheEntryRecord.namespace == key.namespace,
            CacheEntryRecord.query_hash == key.query_hash,
        )
        try:
            async with self.session_factory() as session:
                record = (await session.execute(stmt)).scalar_one_or_none()
                return _to_entry(record) if record else None
        except SQLAlchemyError as e:
            logger.error("cache_store_read_failed", error=str(e))
            raise CacheUnavailableError(f"Cache read failed: {e}") from e

    async def increment_hits(self, key: CacheKey) -> None:
        stmt = (
            update(CacheEntryRecord)
            .where(
                CacheEntryRecord.namespace == key.namespace,
                CacheEntryRecord.query_hash == key.query_hash,
            )
            .values(hit_count=CacheEntryRecord.hit_count + 1)
        )
        try:
            async with self.session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("cache_store_write_failed", error=str(e))
            raise CacheUnavailableError(f"Cache hit count update failed: {e}") from e

    async def delete_where(self, predicate: Predicate) -> int:
        stmt = delete(CacheEntryRecord).where(_where_clause(predicate))
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error("cache_store_delete_failed", error=str(e))
            raise CacheUnavailableError(f"Cache delete failed: {e}") from e

    async def find_where(
        self,
        predicate: Predicate,
        order_by_hits: bool = False,
        limit: Optional[int] = None,
    ) -> List[CacheEntry]:
        stmt = select(CacheEntryRecord).where(_where_clause(predicate))
        if order_by_hits:
            stmt = stmt.order_by(CacheEntryRecord.hit_count.desc(), CacheEntryRecord.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.session_factory() as session:
                records = (await session.execute(stmt)).scalars().all()
                return [_to_entry(record) for record in records]
        except SQLAlchemyError as e:
            logger.error("cache_store_read_failed", error=str(e))
            raise CacheUnavailableError(f"Cache query failed: {e}") from e

    async def health_check(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(select(1))
            return True
        except SQLAlchemyError as e:
            logger.warning("cache_store_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        await close_db(self.engine)
