"""SQLAlchemy-backed translation store (PostgreSQL in production).

Every call opens its own short session through ``session_scope`` so a
failure never leaves a half-open transaction behind. Driver errors surface
as DatabaseConnectionError; the resilient wrapper decides what to do.

Writes are a single INSERT .. ON CONFLICT DO UPDATE on PostgreSQL and
SQLite, so concurrent puts on one key never collide.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import ProgrammingError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tulubot.core.exceptions import DatabaseConnectionError
from tulubot.db.postgres import Base, session_scope
from tulubot.models import ApiCacheRecord, BaseEntryRecord, TaughtEntryRecord
from tulubot.services.store.base import Entry, Table, TranslationStore

logger = structlog.get_logger(__name__)

_MODELS: dict[Table, type[Base]] = {
    Table.BASE: BaseEntryRecord,
    Table.TAUGHT: TaughtEntryRecord,
    Table.API_CACHE: ApiCacheRecord,
}

# Dialects with INSERT .. ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _as_utc(value: Any) -> Any:
    # SQLite drops tzinfo on the way back; every stored timestamp is UTC.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entry(row: Base) -> Entry:
    return {
        column.key: _as_utc(getattr(row, column.key))
        for column in row.__table__.columns
    }


class PostgresTranslationStore(TranslationStore):
    """Translation tables in a relational database via SQLAlchemy async."""

    name = "postgres"

    def __init__(self, engine: AsyncEngine, api_cache_ttl_days: int = 7) -> None:
        self._engine = engine
        self._factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._api_cache_ttl = timedelta(days=api_cache_ttl_days)

    async def ping(self) -> None:
        """Round-trip a trivial query. Raises DatabaseConnectionError."""
        async with session_scope(self._factory) as db:
            await db.execute(select(1))

    async def ensure_indexes(self) -> None:
        """Create the three tables and their indexes, then purge stale API rows.

        ``create_all`` checks for existing objects first; a concurrent
        creator racing us shows up as "already exists", which is success.
        """
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except ProgrammingError as e:
            if "already exists" not in str(e).lower():
                raise DatabaseConnectionError(f"Schema setup failed: {e}") from e
            logger.debug("store_schema_already_exists")
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseConnectionError(f"Schema setup failed: {e}") from e

        cutoff = datetime.now(timezone.utc) - self._api_cache_ttl
        async with session_scope(self._factory) as db:
            result = await db.execute(
                delete(ApiCacheRecord).where(ApiCacheRecord.created_at < cutoff)
            )
        logger.info("store_schema_ready", purged_api_cache_rows=result.rowcount or 0)

    async def get(self, table: Table, key: str) -> Entry | None:
        async with session_scope(self._factory) as db:
            row = await db.get(_MODELS[table], key)
            return _to_entry(row) if row is not None else None

    async def put(self, table: Table, key: str, entry: Entry) -> bool:
        model = _MODELS[table]
        columns = {c.key for c in model.__table__.columns}
        values = {k: v for k, v in entry.items() if k in columns}
        values["english"] = key
        insert = _UPSERT_INSERTS.get(self._engine.dialect.name)
        async with session_scope(self._factory) as db:
            if insert is None:
                await db.merge(model(**values))
                return True
            stmt = insert(model).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["english"],
                set_={k: stmt.excluded[k] for k in values if k != "english"},
            )
            await db.execute(stmt)
        return True

    async def count(self, table: Table) -> int:
        async with session_scope(self._factory) as db:
            result = await db.execute(select(func.count()).select_from(_MODELS[table]))
            return int(result.scalar_one())

    async def list_recent(self, table: Table, limit: int | None = 10) -> list[Entry]:
        model = _MODELS[table]
        stmt = select(model).order_by(getattr(model, table.recency_field).desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        async with session_scope(self._factory) as db:
            result = await db.execute(stmt)
            return [_to_entry(row) for row in result.scalars().all()]

    async def delete(self, table: Table, key: str) -> bool:
        model = _MODELS[table]
        async with session_scope(self._factory) as db:
            result = await db.execute(delete(model).where(model.english == key))
        return (result.rowcount or 0) > 0
