"""Host wiring for the Tulu bot.

``create_bot`` builds the single long-lived TuluBot: the resilient store
(PostgreSQL primary, in-memory fallback), the seeded base lexicon, the
racing translation fetcher, the caches and the Redis idempotency guard.

``bot_lifespan`` wraps it for a transport: it starts an APScheduler that
sweeps expired teach/correct states every minute and pings the keep-alive
URL during active sessions, and closes every connection on exit.

    async with bot_lifespan(send_reply) as bot:
        await bot.handle_message(InboundMessage(...), send_reply)
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

import httpx
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from tulubot.core.config import Settings, settings
from tulubot.core.exceptions import RedisConnectionError
from tulubot.db.postgres import close_postgres, get_engine
from tulubot.db.redis import close_redis, get_redis
from tulubot.services.bot import BotComponents, TuluBot
from tulubot.services.cache.layer import CacheLayer
from tulubot.services.keepalive import ActivityTracker, KeepAliveService
from tulubot.services.lexicon import BaseLexicon
from tulubot.services.store.postgres import PostgresTranslationStore
from tulubot.services.store.resilient import ResilientTranslationStore
from tulubot.services.translation.base import TranslationBackend
from tulubot.services.translation.fetcher import TranslationFetcher
from tulubot.services.translation.google import GoogleTranslateBackend
from tulubot.services.translation.mymemory import MyMemoryBackend
from tulubot.services.workflow.dedup import (
    IdempotencyGuard,
    InMemoryIdempotencyGuard,
    RedisIdempotencyGuard,
)
from tulubot.services.workflow.latch import SendReply
from tulubot.services.workflow.state import UserStateStore


def _configure_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    processors: list = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.is_production:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


_configure_logging()

logger = structlog.get_logger(__name__)


def _build_backends(
    config: Settings,
    client: httpx.AsyncClient | None,
) -> list[TranslationBackend]:
    backends: list[TranslationBackend] = []
    if config.enable_google_backend:
        backends.append(
            GoogleTranslateBackend(
                target_language=config.target_language,
                client=client,
                timeout=config.fetch_timeout_seconds,
            )
        )
    if config.enable_mymemory_backend:
        backends.append(
            MyMemoryBackend(
                target_language=config.target_language,
                client=client,
                timeout=config.fetch_timeout_seconds,
                email=config.mymemory_email,
            )
        )
    return backends


async def _build_guard(config: Settings) -> IdempotencyGuard:
    """Redis guard when Redis answers a PING, otherwise process-local."""
    fallback = InMemoryIdempotencyGuard(config.dedup_ttl_seconds)
    if not config.redis_url:
        return fallback
    redis = get_redis(config.redis_url)
    try:
        await redis.ping()
    except RedisConnectionError as e:
        logger.warning("dedup_using_memory", error=e.message)
        return fallback
    return RedisIdempotencyGuard(redis, config.dedup_ttl_seconds, fallback=fallback)


async def create_bot(
    config: Settings = settings,
    http_client: httpx.AsyncClient | None = None,
) -> TuluBot:
    """Build and connect every component. Never fails on a missing database."""
    primary = None
    if config.postgres_url:
        primary = PostgresTranslationStore(
            get_engine(config.postgres_url),
            api_cache_ttl_days=config.api_cache_ttl_days,
        )
    store = ResilientTranslationStore(
        primary,
        connect_timeout=config.store_connect_timeout_seconds,
    )
    await store.connect()

    lexicon = BaseLexicon()
    await lexicon.seed_store(store)

    fetcher = TranslationFetcher(
        _build_backends(config, http_client),
        timeout=config.fetch_timeout_seconds,
    )
    components = BotComponents(
        lexicon=lexicon,
        store=store,
        cache=CacheLayer(
            store,
            taught_ttl_seconds=config.taught_cache_ttl_seconds,
            api_cache_ttl_days=config.api_cache_ttl_days,
        ),
        fetcher=fetcher,
        states=UserStateStore(timeout_seconds=config.user_state_timeout_minutes * 60),
        guard=await _build_guard(config),
        tracker=ActivityTracker(),
    )
    bot = TuluBot(
        components,
        min_contribution_length=config.min_contribution_length,
        recent_words_limit=config.recent_words_limit,
    )
    logger.info(
        "bot_ready",
        env=config.app_env,
        store=store.backend_name,
        base_words=len(lexicon),
        backends=fetcher.backend_names,
    )
    return bot


async def _sweep_expired_states(bot: TuluBot, send_reply: SendReply) -> None:
    """Expire stale teach/correct states. Called by APScheduler."""
    try:
        sent = await bot.expire_states(send_reply)
        if sent:
            logger.info("user_states_swept", notices_sent=sent)
    except Exception as e:
        logger.error("user_state_sweep_failed", error=str(e))


@asynccontextmanager
async def bot_lifespan(
    send_reply: SendReply,
    config: Settings = settings,
) -> AsyncGenerator[TuluBot, None]:
    """Bot startup and shutdown lifecycle.

    *send_reply* is the transport's ``(chat_id, text)`` coroutine, used for
    expiry notices that are not replies to any inbound event.
    """
    # --- Startup ---
    logger.info("bot_startup", env=config.app_env)
    http_client = httpx.AsyncClient(timeout=config.fetch_timeout_seconds)
    bot = await create_bot(config, http_client)

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _sweep_expired_states,
        "interval",
        seconds=config.state_sweep_interval_seconds,
        id="user_state_sweep",
        args=[bot, send_reply],
    )
    keepalive = KeepAliveService(
        bot.tracker,
        config.keepalive_url,
        session_minutes=config.keepalive_session_minutes,
        interval_minutes=config.keepalive_interval_minutes,
        client=http_client,
    )
    keepalive.start(scheduler)
    scheduler.start()

    try:
        yield bot
    finally:
        # --- Shutdown ---
        logger.info("bot_shutdown")
        keepalive.stop()
        scheduler.shutdown(wait=False)
        await http_client.aclose()
        await close_redis()
        await close_postgres()
