"""Shared pytest fixtures for the tulubot test suite.

Provides:
  - mock_redis: Mock RedisClient with in-memory dict storage
  - FakeBackend: scripted TranslationBackend (reply, delay or error)
  - ReplyRecorder: stand-in for a transport's send_reply coroutine
  - FakeClock: manually advanced clock for timeout tests
  - memory_store / lexicon / cache / states / fetcher: core components
  - make_bot: assembles a TuluBot over the in-memory store

All external services are faked in every test; no network, no database
server and no Redis server are needed.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from tulubot.core.exceptions import RedisConnectionError, TranslationFetchError
from tulubot.services.bot import BotComponents, TuluBot
from tulubot.services.cache.layer import CacheLayer
from tulubot.services.lexicon import BaseLexicon
from tulubot.services.store.memory import InMemoryTranslationStore
from tulubot.services.translation.base import TranslationBackend
from tulubot.services.translation.fetcher import TranslationFetcher
from tulubot.services.workflow.dedup import InMemoryIdempotencyGuard
from tulubot.services.workflow.state import UserStateStore


# ---------------------------------------------------------------------------
# Mock Redis Client
# ---------------------------------------------------------------------------


class MockRedisClient:
    """In-memory mock of RedisClient for testing."""

    def __init__(self, fail: bool = False) -> None:
        self._store: dict[str, str] = {}
        self._ttls: dict[str, int] = {}
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("Redis is down")

    async def ping(self) -> bool:
        self._check()
        return True

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        self._check()
        if key in self._store:
            return False
        self._store[key] = value
        self._ttls[key] = ttl_seconds
        return True

    async def delete(self, key: str) -> int:
        self._check()
        if key in self._store:
            del self._store[key]
            self._ttls.pop(key, None)
            return 1
        return 0


# ---------------------------------------------------------------------------
# Fake translation backend
# ---------------------------------------------------------------------------


class FakeBackend(TranslationBackend):
    """Scripted backend. Records every query it receives."""

    def __init__(
        self,
        name: str,
        reply: str | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.name = name
        self._reply = reply
        self._delay = delay
        self._error = error
        self.calls: list[str] = []
        self.cancelled = False

    async def translate(self, text: str) -> str:
        self.calls.append(text)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        if self._reply is None:
            raise TranslationFetchError(f"{self.name} has no answer")
        return self._reply


# ---------------------------------------------------------------------------
# Transport stand-ins
# ---------------------------------------------------------------------------


class ReplyRecorder:
    """Collects (chat_id, text) pairs the bot sends."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    async def __call__(self, chat_id: str, text: str) -> None:
        self.sent.append((chat_id, text))
        if self.fail:
            raise ConnectionError("transport down")

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.sent]


class FakeClock:
    """Callable clock advanced by hand."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_redis() -> MockRedisClient:
    """Mock Redis client fixture."""
    return MockRedisClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def replies() -> ReplyRecorder:
    return ReplyRecorder()


@pytest.fixture
def memory_store() -> InMemoryTranslationStore:
    return InMemoryTranslationStore()


@pytest.fixture
def lexicon() -> BaseLexicon:
    return BaseLexicon()


@pytest.fixture
def cache(memory_store: InMemoryTranslationStore) -> CacheLayer:
    return CacheLayer(memory_store, taught_ttl_seconds=300, api_cache_ttl_days=7)


@pytest.fixture
def states(clock: FakeClock) -> UserStateStore:
    return UserStateStore(timeout_seconds=600, clock=clock)


@pytest.fixture
def fetcher() -> TranslationFetcher:
    """Fetcher with no backends: every fetch is a miss."""
    return TranslationFetcher([], timeout=1.0)


@pytest.fixture
def make_bot(
    memory_store: InMemoryTranslationStore,
    lexicon: BaseLexicon,
    states: UserStateStore,
) -> Callable[..., TuluBot]:
    """Factory assembling a TuluBot; pass ``backends=[...]`` to enable tier 4."""

    def _make(backends: list[TranslationBackend] | None = None, **overrides: Any) -> TuluBot:
        store = overrides.pop("store", memory_store)
        components = BotComponents(
            lexicon=lexicon,
            store=store,
            cache=overrides.pop("cache", CacheLayer(store)),
            fetcher=TranslationFetcher(backends or [], timeout=1.0),
            states=states,
            guard=overrides.pop("guard", InMemoryIdempotencyGuard()),
        )
        return TuluBot(components, **overrides)

    return _make
