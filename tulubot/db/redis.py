"""Redis async client for short-lived coordination state.

Used for inbound-event idempotency keys so that several bot processes
behind one transport never double-process a redelivered message.
Provides helper methods wrapping raw Redis commands so callers never need
to handle redis.exceptions directly. All connection/command errors are
caught and re-raised as RedisConnectionError.
"""

import structlog
from redis.asyncio import Redis
from redis.asyncio import from_url as redis_from_url
from redis.exceptions import RedisError

from tulubot.core.config import settings
from tulubot.core.exceptions import RedisConnectionError

logger = structlog.get_logger(__name__)

_client: Redis | None = None


def get_redis(url: str | None = None) -> "RedisClient":
    """Return a RedisClient over the process-wide connection pool."""
    global _client
    if _client is None:
        _client = redis_from_url(
            url or settings.redis_url,
            decode_responses=True,
            encoding="utf-8",
            socket_connect_timeout=settings.store_connect_timeout_seconds,
            socket_timeout=settings.store_connect_timeout_seconds,
        )
    return RedisClient(_client)


async def close_redis() -> None:
    """Gracefully close the Redis connection pool."""
    global _client
    if _client is None:
        return
    logger.info("redis_shutdown")
    await _client.aclose()
    _client = None


class RedisClient:
    """Thin wrapper over redis.asyncio.Redis with typed helpers.

    Every public method catches RedisError and re-raises as
    RedisConnectionError so callers get a structured error.
    """

    def __init__(self, client: Redis) -> None:
        self._r = client

    async def ping(self) -> bool:
        try:
            return bool(await self._r.ping())
        except (RedisError, OSError) as e:
            logger.error("redis_ping_failed", error=str(e))
            raise RedisConnectionError(f"Redis PING failed: {e}") from e

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """SET NX EX. Returns True only when this call created the key."""
        try:
            return bool(await self._r.set(name=key, value=value, nx=True, ex=ttl_seconds))
        except RedisError as e:
            logger.error("redis_setnx_failed", key=key, error=str(e))
            raise RedisConnectionError(f"Redis SET NX failed: {e}") from e

    async def delete(self, key: str) -> int:
        """DELETE a key. Returns the number of keys removed (0 or 1)."""
        try:
            return await self._r.delete(key)
        except RedisError as e:
            logger.error("redis_delete_failed", key=key, error=str(e))
            raise RedisConnectionError(f"Redis DELETE failed: {e}") from e

