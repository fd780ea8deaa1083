"""Bot service: the single long-lived object a transport talks to.

Every inbound event goes through the same pipeline:

  1. claim its idempotency key (a redelivery is dropped with no reply)
  2. record activity for the keep-alive job
  3. serialize on the user's lock
  4. route: pending teach/correct state → workflow, else resolution
  5. reply exactly once through a ReplyLatch, even on failure
"""

from __future__ import annotations

import asyncio
import re
import time
import weakref
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

import structlog

from tulubot.schemas.events import InboundCommand, InboundMessage
from tulubot.services import presenter
from tulubot.services.cache.layer import CacheLayer
from tulubot.services.engine import ResolutionEngine
from tulubot.services.keepalive import ActivityTracker
from tulubot.services.lexicon import BaseLexicon, normalize
from tulubot.services.presenter import BotStats
from tulubot.services.store.base import Table, TranslationStore
from tulubot.services.translation.fetcher import TranslationFetcher
from tulubot.services.workflow.contribution import ContributionWorkflow
from tulubot.services.workflow.dedup import IdempotencyGuard, InMemoryIdempotencyGuard
from tulubot.services.workflow.latch import ReplyLatch, SendReply
from tulubot.services.workflow.state import UserStateStore

logger = structlog.get_logger(__name__)

ENGLISH_PATTERN = re.compile(r"""^[a-zA-Z0-9\s.,!?'"-]+$""")

Event = Union[InboundMessage, InboundCommand]


@dataclass
class BotComponents:
    """Everything TuluBot owns. Built by ``tulubot.main.create_bot``."""

    lexicon: BaseLexicon
    store: TranslationStore
    cache: CacheLayer
    fetcher: TranslationFetcher
    states: UserStateStore
    guard: IdempotencyGuard | None = None
    tracker: ActivityTracker | None = None


class TuluBot:
    def __init__(
        self,
        components: BotComponents,
        min_contribution_length: int = 2,
        recent_words_limit: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.lexicon = components.lexicon
        self.store = components.store
        self.cache = components.cache
        self.fetcher = components.fetcher
        self.states = components.states
        self.guard = components.guard or InMemoryIdempotencyGuard()
        self.tracker = components.tracker or ActivityTracker()
        self.engine = ResolutionEngine(self.lexicon, self.cache, self.fetcher, self.states)
        self.workflow = ContributionWorkflow(
            self.store,
            self.cache,
            self.lexicon,
            self.states,
            min_length=min_contribution_length,
        )
        self._recent_limit = recent_words_limit
        self._clock = clock
        self._started_at = clock()
        # A lock lives only while some handler holds or awaits it
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._commands: dict[str, Callable[[InboundCommand, ReplyLatch], Awaitable[None]]] = {
            "start": self._cmd_help,
            "help": self._cmd_help,
            "correct": self._cmd_correct,
            "cancel": self._cmd_cancel,
            "skip": self._cmd_cancel,
            "stats": self._cmd_stats,
            "learned": self._cmd_learned,
            "numbers": self._cmd_numbers,
            "forget": self._cmd_forget,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def handle_message(self, event: InboundMessage, send_reply: SendReply) -> bool:
        """Handle a text message. Returns True if a reply was sent."""
        return await self._handle(event, send_reply, self._on_message)

    async def handle_command(self, event: InboundCommand, send_reply: SendReply) -> bool:
        """Handle a slash command. Returns True if a reply was sent."""
        return await self._handle(event, send_reply, self._on_command)

    async def _handle(
        self,
        event: Event,
        send_reply: SendReply,
        handler: Callable[[Event, ReplyLatch], Awaitable[None]],
    ) -> bool:
        key = event.idempotency_key
        if key is not None and not await self.guard.claim(key):
            logger.info("duplicate_event_dropped", key=key, user_id=event.user_id)
            return False

        self.tracker.record()
        latch = ReplyLatch(send_reply, event.chat_id)
        try:
            async with self._lock_for(event.user_id):
                await handler(event, latch)
        except asyncio.CancelledError:
            if key is not None:
                await self.guard.release(key)
            raise
        except Exception as e:
            logger.error(
                "event_handling_failed",
                user_id=event.user_id,
                chat_id=event.chat_id,
                error=str(e),
                exc_info=True,
            )
            await latch.send(presenter.GENERIC_APOLOGY)
        return latch.fired

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def _on_message(self, event: InboundMessage, latch: ReplyLatch) -> None:
        text = event.text.strip()
        if text.startswith("/"):
            name, *args = text.split()
            command = InboundCommand(
                user_id=event.user_id,
                chat_id=event.chat_id,
                command=name,
                args=args,
                message_id=event.message_id,
                user_name=event.user_name,
            )
            await self._on_command(command, latch)
            return

        state = self.workflow.pending(event.user_id)
        if state is not None:
            outcome = await self.workflow.submit(state, text, event.contributor)
            await latch.send(presenter.format_contribution(outcome))
            return

        if not text or not ENGLISH_PATTERN.match(text):
            await latch.send(presenter.format_invalid_input())
            return

        result = await self.engine.resolve(text, event.user_id, chat_id=event.chat_id)
        if result.found:
            await latch.send(presenter.format_translation(text, result))
        else:
            timeout_minutes = max(1, int(self.states.timeout_seconds // 60))
            await latch.send(presenter.format_teaching_prompt(text, timeout_minutes))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _on_command(self, event: InboundCommand, latch: ReplyLatch) -> None:
        handler = self._commands.get(event.command)
        if handler is None:
            await latch.send(presenter.format_unknown_command(event.command))
            return
        logger.debug("command_received", command=event.command, user_id=event.user_id)
        await handler(event, latch)

    async def _cmd_help(self, event: InboundCommand, latch: ReplyLatch) -> None:
        await latch.send(presenter.format_help())

    async def _cmd_correct(self, event: InboundCommand, latch: ReplyLatch) -> None:
        if not event.argument_text:
            await latch.send(presenter.format_correct_usage())
            return
        outcome = await self.workflow.start_correction(
            event.user_id, event.chat_id, event.argument_text
        )
        await latch.send(presenter.format_correction(outcome))

    async def _cmd_cancel(self, event: InboundCommand, latch: ReplyLatch) -> None:
        await latch.send(presenter.format_cancel(self.workflow.cancel(event.user_id)))

    async def _cmd_stats(self, event: InboundCommand, latch: ReplyLatch) -> None:
        await latch.send(presenter.format_stats(await self.stats()))

    async def _cmd_learned(self, event: InboundCommand, latch: ReplyLatch) -> None:
        rows = await self.store.list_recent(Table.TAUGHT, limit=self._recent_limit)
        total = await self.store.count(Table.TAUGHT)
        entries = [(row["english"], row["tulu"]) for row in rows]
        await latch.send(presenter.format_recent(entries, total))

    async def _cmd_numbers(self, event: InboundCommand, latch: ReplyLatch) -> None:
        await latch.send(presenter.format_numbers(self.lexicon.numbers_reference()))

    async def _cmd_forget(self, event: InboundCommand, latch: ReplyLatch) -> None:
        if not event.argument_text:
            await latch.send("Usage: /forget <english word>")
            return
        word = normalize(event.argument_text)
        deleted = await self.workflow.forget(word)
        await latch.send(presenter.format_forget(word, deleted))

    # ------------------------------------------------------------------
    # Host hooks
    # ------------------------------------------------------------------

    async def stats(self) -> BotStats:
        recent = await self.store.list_recent(Table.TAUGHT, limit=3)
        return BotStats(
            base_words=len(self.lexicon),
            taught_words=await self.store.count(Table.TAUGHT),
            api_cached_words=await self.store.count(Table.API_CACHE),
            recent=[(row["english"], row["tulu"]) for row in recent],
            store_backend=self.store.name,
            uptime_seconds=self._clock() - self._started_at,
            pending_states=len(self.states),
        )

    async def expire_states(self, send_reply: SendReply) -> int:
        """Drop expired states and notify each user once. Returns notices sent."""
        sent = 0
        for state in self.states.pop_expired():
            logger.info("user_state_expired", user_id=state.user_id, mode=state.mode.value)
            if state.chat_id is None:
                continue
            try:
                await send_reply(state.chat_id, presenter.format_expired(state))
            except Exception as e:
                logger.warning("expiry_notice_failed", user_id=state.user_id, error=str(e))
                continue
            sent += 1
        return sent
