"""Store wrapper that silently degrades to memory.

``connect()`` probes the durable store with a bounded timeout and prepares
its schema. If that fails, or if any later call fails, the wrapper switches
to its in-memory store for the rest of the process. Callers see the same
contract either way; only ``backend_name`` tells them apart.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from tulubot.core.exceptions import StoreUnavailableError
from tulubot.services.store.base import Entry, Table, TranslationStore
from tulubot.services.store.memory import InMemoryTranslationStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ResilientTranslationStore(TranslationStore):
    """Durable primary with a process-lifetime in-memory fallback."""

    def __init__(
        self,
        primary: TranslationStore | None,
        fallback: InMemoryTranslationStore | None = None,
        connect_timeout: float = 5.0,
    ) -> None:
        self._primary = primary
        self._fallback = fallback or InMemoryTranslationStore()
        self._connect_timeout = connect_timeout
        self._degraded = primary is None

    @property
    def degraded(self) -> bool:
        return self._degraded

    @property
    def backend_name(self) -> str:
        if self._degraded or self._primary is None:
            return self._fallback.name
        return self._primary.name

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.backend_name

    async def connect(self) -> bool:
        """Probe the primary and ensure its schema. Returns True when durable."""
        if self._primary is None:
            logger.warning("store_no_primary_configured", backend=self._fallback.name)
            return False
        try:
            await asyncio.wait_for(self._primary.ensure_indexes(), self._connect_timeout)
        except asyncio.TimeoutError:
            self._degrade("connect_timeout")
            return False
        except StoreUnavailableError as e:
            self._degrade("connect_failed", error=e.message)
            return False
        count = await self.count(Table.TAUGHT)
        logger.info("store_connected", backend=self._primary.name, taught_words=count)
        return not self._degraded

    async def ensure_indexes(self) -> None:
        await self.connect()

    def _degrade(self, reason: str, **context: Any) -> None:
        if not self._degraded:
            logger.warning(
                "store_degraded_to_memory",
                reason=reason,
                primary=self._primary.name if self._primary else None,
                **context,
            )
        self._degraded = True

    async def _call(
        self,
        op: str,
        primary_call: Callable[[TranslationStore], Awaitable[T]],
    ) -> T:
        if not self._degraded and self._primary is not None:
            try:
                return await primary_call(self._primary)
            except StoreUnavailableError as e:
                self._degrade(f"{op}_failed", error=e.message)
        return await primary_call(self._fallback)

    async def get(self, table: Table, key: str) -> Entry | None:
        return await self._call("get", lambda s: s.get(table, key))

    async def put(self, table: Table, key: str, entry: Entry) -> bool:
        return await self._call("put", lambda s: s.put(table, key, entry))

    async def count(self, table: Table) -> int:
        return await self._call("count", lambda s: s.count(table))

    async def list_recent(self, table: Table, limit: int | None = 10) -> list[Entry]:
        return await self._call("list_recent", lambda s: s.list_recent(table, limit))

    async def delete(self, table: Table, key: str) -> bool:
        return await self._call("delete", lambda s: s.delete(table, key))
