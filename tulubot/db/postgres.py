"""Async SQLAlchemy engine and session factory for PostgreSQL.

All database operations use the SQLAlchemy 2.0 async session pattern.
The engine is created lazily so importing this module never opens a
connection; a bot started without a reachable database simply runs on
the in-memory store.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tulubot.core.config import settings
from tulubot.core.exceptions import DatabaseConnectionError, StoreWriteConflictError

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


_engine: AsyncEngine | None = None


def get_engine(url: str | None = None) -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        url = url or settings.postgres_url
        connect_args = {}
        if url.startswith("postgresql+asyncpg"):
            # asyncpg connect timeout, seconds
            connect_args["timeout"] = settings.store_connect_timeout_seconds
        _engine = create_async_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
    return _engine


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits on success and rolls back on error.

    SQLAlchemy driver errors are caught and re-raised as DatabaseConnectionError.
    Constraint violations become StoreWriteConflictError, which is not an
    outage and never triggers the in-memory fallback.
    """
    try:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning("postgres_write_conflict", error=str(e))
                raise StoreWriteConflictError(f"Write conflict: {e}") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("postgres_session_error", error=str(e))
                raise DatabaseConnectionError(f"Database operation failed: {e}") from e
            except Exception:
                await session.rollback()
                raise
    except DatabaseConnectionError:
        raise
    except (SQLAlchemyError, OSError) as e:
        logger.error("postgres_connection_error", error=str(e))
        raise DatabaseConnectionError(f"Database connection failed: {e}") from e


async def close_postgres() -> None:
    """Gracefully dispose of the async engine connection pool."""
    global _engine
    if _engine is None:
        return
    logger.info("postgres_shutdown")
    await _engine.dispose()
    _engine = None
