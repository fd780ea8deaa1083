"""Idempotency guard for redelivered inbound events.

A transport with at-least-once delivery can hand us the same message
twice. The first handler to ``claim`` the key (``"{chat_id}:{message_id}"``)
processes it; later claims fail until the key is released or expires.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable

import structlog

from tulubot.core.exceptions import RedisConnectionError
from tulubot.db.redis import RedisClient

logger = structlog.get_logger(__name__)


class IdempotencyGuard(ABC):
    @abstractmethod
    async def claim(self, key: str) -> bool:
        """Return True if this caller now owns *key*."""
        ...

    @abstractmethod
    async def release(self, key: str) -> None:
        ...


class InMemoryIdempotencyGuard(IdempotencyGuard):
    """Process-local guard with TTL-bounded keys."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._keys: dict[str, float] = {}

    def _purge(self, now: float) -> None:
        stale = [k for k, expires in self._keys.items() if expires <= now]
        for key in stale:
            del self._keys[key]

    async def claim(self, key: str) -> bool:
        now = self._clock()
        self._purge(now)
        if key in self._keys:
            return False
        self._keys[key] = now + self._ttl
        return True

    async def release(self, key: str) -> None:
        self._keys.pop(key, None)


class RedisIdempotencyGuard(IdempotencyGuard):
    """Cross-process guard using ``SET NX EX``.

    Falls back to an in-memory guard when Redis errors, so a Redis outage
    degrades to per-process de-duplication instead of dropping messages.
    """

    def __init__(
        self,
        redis: RedisClient,
        ttl_seconds: int = 300,
        fallback: InMemoryIdempotencyGuard | None = None,
    ) -> None:
        self._redis = redis
        self._ttl = ttl_seconds
        self._fallback = fallback or InMemoryIdempotencyGuard(ttl_seconds)

    def _key(self, key: str) -> str:
        return f"tulubot:inbound:{key}"

    async def claim(self, key: str) -> bool:
        try:
            return await self._redis.set_if_absent(self._key(key), "1", self._ttl)
        except RedisConnectionError as e:
            logger.warning("dedup_redis_unavailable", error=e.message)
            return await self._fallback.claim(key)

    async def release(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except RedisConnectionError as e:
            logger.warning("dedup_redis_release_failed", error=e.message)
        await self._fallback.release(key)
