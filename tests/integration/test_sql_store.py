"""Integration tests for the SQLAlchemy store and host wiring.

Runs PostgresTranslationStore against ``sqlite+aiosqlite:///:memory:``
(StaticPool, so every session sees the same in-memory database).

Tests:
  - ensure_indexes creates all tables and is idempotent
  - put/get round-trip for every table; put replaces an existing row
  - list_recent ordering, count and delete
  - expired api_cache rows are purged at startup
  - create_bot runs on SQLite and degrades to memory when the DB is unreachable
  - concurrent puts on one key upsert cleanly and never degrade the store
  - a constraint violation surfaces as a write conflict, not an outage
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tests.conftest import ReplyRecorder
from tulubot.core.config import Settings
from tulubot.core.exceptions import StoreWriteConflictError
from tulubot.db.postgres import close_postgres, session_scope
from tulubot.main import create_bot
from tulubot.models import ApiCacheRecord
from tulubot.schemas.events import InboundMessage
from tulubot.services.store.base import Table
from tulubot.services.store.postgres import PostgresTranslationStore
from tulubot.services.store.resilient import ResilientTranslationStore

_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield eng
    await eng.dispose()


@pytest.fixture
async def sql_store(engine: AsyncEngine) -> PostgresTranslationStore:
    store = PostgresTranslationStore(engine, api_cache_ttl_days=7)
    await store.ensure_indexes()
    return store


@pytest.fixture
async def file_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tulubot.db'}")
    yield eng
    await eng.dispose()


class TestSchema:
    @pytest.mark.asyncio
    async def test_ensure_indexes_is_idempotent(self, sql_store: PostgresTranslationStore) -> None:
        await sql_store.ensure_indexes()
        await sql_store.ping()
        for table in Table:
            assert await sql_store.count(table) == 0

    @pytest.mark.asyncio
    async def test_expired_api_rows_purged(self, engine: AsyncEngine) -> None:
        store = PostgresTranslationStore(engine, api_cache_ttl_days=7)
        await store.ensure_indexes()
        now = datetime.now(timezone.utc)
        await store.put(Table.API_CACHE, "old", {"translation": "x", "api_source": "google", "created_at": now - timedelta(days=9)})
        await store.put(Table.API_CACHE, "new", {"translation": "y", "api_source": "google", "created_at": now})

        await store.ensure_indexes()

        assert await store.get(Table.API_CACHE, "old") is None
        assert await store.get(Table.API_CACHE, "new") is not None


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_base_entry(self, sql_store: PostgresTranslationStore) -> None:
        await sql_store.put(
            Table.BASE,
            "hello",
            {"tulu": "namaskara", "category": "greetings", "verified": True, "created_at": _NOW, "updated_at": _NOW},
        )

        entry = await sql_store.get(Table.BASE, "hello")

        assert entry["tulu"] == "namaskara"
        assert entry["category"] == "greetings"
        assert entry["updated_at"] == _NOW

    @pytest.mark.asyncio
    async def test_taught_entry_upsert(self, sql_store: PostgresTranslationStore) -> None:
        first = {
            "tulu": "pattepili",
            "contributor": "asha",
            "created_at": _NOW,
            "updated_at": _NOW,
            "usage_count": 0,
            "votes": 0,
            "verified": False,
        }
        await sql_store.put(Table.TAUGHT, "zebra", first)
        await sql_store.put(
            Table.TAUGHT,
            "zebra",
            {**first, "tulu": "kudure", "usage_count": 1, "updated_at": _NOW + timedelta(minutes=5)},
        )

        entry = await sql_store.get(Table.TAUGHT, "zebra")

        assert entry["tulu"] == "kudure"
        assert entry["usage_count"] == 1
        assert entry["created_at"] == _NOW
        assert await sql_store.count(Table.TAUGHT) == 1

    @pytest.mark.asyncio
    async def test_api_cache_entry(self, sql_store: PostgresTranslationStore) -> None:
        await sql_store.put(Table.API_CACHE, "water", {"translation": "jalu", "api_source": "mymemory", "created_at": _NOW})

        entry = await sql_store.get(Table.API_CACHE, "water")

        assert entry == {"english": "water", "translation": "jalu", "api_source": "mymemory", "created_at": _NOW}

    @pytest.mark.asyncio
    async def test_unknown_columns_ignored(self, sql_store: PostgresTranslationStore) -> None:
        await sql_store.put(Table.API_CACHE, "water", {"translation": "jalu", "api_source": "google", "extra": 1})
        assert (await sql_store.get(Table.API_CACHE, "water"))["translation"] == "jalu"

    @pytest.mark.asyncio
    async def test_missing(self, sql_store: PostgresTranslationStore) -> None:
        assert await sql_store.get(Table.TAUGHT, "nothing") is None


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_recent_and_delete(self, sql_store: PostgresTranslationStore) -> None:
        for i, word in enumerate(["a", "b", "c"]):
            await sql_store.put(
                Table.TAUGHT,
                word,
                {"tulu": word * 2, "contributor": "t", "created_at": _NOW, "updated_at": _NOW + timedelta(minutes=i)},
            )

        rows = await sql_store.list_recent(Table.TAUGHT, limit=2)
        assert [r["english"] for r in rows] == ["c", "b"]
        assert len(await sql_store.list_recent(Table.TAUGHT, limit=None)) == 3

        assert await sql_store.delete(Table.TAUGHT, "c") is True
        assert await sql_store.delete(Table.TAUGHT, "c") is False
        assert await sql_store.count(Table.TAUGHT) == 2


class TestConcurrentWrites:
    @pytest.mark.asyncio
    async def test_same_key_puts_do_not_degrade(self, file_engine: AsyncEngine) -> None:
        store = ResilientTranslationStore(PostgresTranslationStore(file_engine))
        assert await store.connect() is True
        now = datetime.now(timezone.utc)

        results = await asyncio.gather(*(
            store.put(
                Table.API_CACHE,
                "tree house",
                {"translation": f"mara mane {i}", "api_source": "google", "created_at": now},
            )
            for i in range(5)
        ))

        assert all(results)
        assert not store.degraded
        assert store.backend_name == "postgres"
        assert await store.count(Table.API_CACHE) == 1
        assert (await store.get(Table.API_CACHE, "tree house"))["translation"].startswith("mara mane")

    @pytest.mark.asyncio
    async def test_same_word_taught_concurrently(self, file_engine: AsyncEngine) -> None:
        store = PostgresTranslationStore(file_engine)
        await store.ensure_indexes()

        await asyncio.gather(*(
            store.put(
                Table.TAUGHT,
                "zebra",
                {"tulu": tulu, "contributor": "asha", "created_at": _NOW, "updated_at": _NOW},
            )
            for tulu in ("pattepili", "kudure", "pattepili")
        ))

        assert await store.count(Table.TAUGHT) == 1
        assert (await store.get(Table.TAUGHT, "zebra"))["tulu"] in {"pattepili", "kudure"}

    @pytest.mark.asyncio
    async def test_integrity_error_is_a_write_conflict(
        self, engine: AsyncEngine, sql_store: PostgresTranslationStore
    ) -> None:
        await sql_store.put(Table.API_CACHE, "water", {"translation": "jalu", "api_source": "google", "created_at": _NOW})
        factory = async_sessionmaker(engine, expire_on_commit=False)

        with pytest.raises(StoreWriteConflictError):
            async with session_scope(factory) as db:
                db.add(ApiCacheRecord(english="water", translation="neer", api_source="mymemory", created_at=_NOW))

        assert (await sql_store.get(Table.API_CACHE, "water"))["translation"] == "jalu"


class TestCreateBot:
    @pytest.mark.asyncio
    async def test_runs_on_sqlite(self) -> None:
        config = Settings(
            postgres_url="sqlite+aiosqlite:///:memory:",
            redis_url="",
            enable_google_backend=False,
            enable_mymemory_backend=False,
        )
        try:
            bot = await create_bot(config)
            replies = ReplyRecorder()

            assert bot.store.backend_name == "postgres"
            assert await bot.store.count(Table.BASE) == len(bot.lexicon)

            await bot.handle_message(InboundMessage(user_id="u1", chat_id="c1", text="zebra"), replies)
            await bot.handle_message(InboundMessage(user_id="u1", chat_id="c1", text="pattepili"), replies)
            await bot.handle_message(InboundMessage(user_id="u2", chat_id="c2", text="zebra"), replies)

            assert "pattepili" in replies.texts[-1]
            assert (await bot.store.get(Table.TAUGHT, "zebra"))["tulu"] == "pattepili"
        finally:
            await close_postgres()

    @pytest.mark.asyncio
    async def test_unreachable_database_falls_back_to_memory(self) -> None:
        config = Settings(
            postgres_url="postgresql+asyncpg://user:pw@127.0.0.1:1/tulubot",
            redis_url="",
            store_connect_timeout_seconds=2.0,
            enable_google_backend=False,
            enable_mymemory_backend=False,
        )
        try:
            bot = await create_bot(config)
            replies = ReplyRecorder()

            assert bot.store.backend_name == "memory"
            await bot.handle_message(InboundMessage(user_id="u1", chat_id="c1", text="hello"), replies)
            assert "namaskara" in replies.texts[0]
        finally:
            await close_postgres()
