"""Cache layer over the taught-words table and the API-result table.

Taught words: a full ``english → tulu`` snapshot, read-through with a
short TTL, updated in place on every successful contribution so a word is
visible on the very next lookup.

API results: point lookups straight against the store, filtered at read
time. Entries past the expiry window, or whose text would fail validation
today, are treated as absent even if the store has not purged them.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog

from tulubot.core.exceptions import StoreUnavailableError, StoreWriteConflictError
from tulubot.services.cache.ttl import TTLCache
from tulubot.services.store.base import Entry, Table, TranslationStore
from tulubot.services.translation.validation import is_valid_translation

logger = structlog.get_logger(__name__)


class CacheLayer:
    """Owns the taught snapshot and mediates API-cache reads/writes."""

    def __init__(
        self,
        store: TranslationStore,
        taught_ttl_seconds: float = 300,
        api_cache_ttl_days: int = 7,
    ) -> None:
        self._store = store
        self._taught: TTLCache[dict[str, str]] = TTLCache(taught_ttl_seconds)
        self._api_ttl = timedelta(days=api_cache_ttl_days)

    # ------------------------------------------------------------------
    # Taught snapshot
    # ------------------------------------------------------------------

    async def _load_taught(self) -> dict[str, str]:
        rows = await self._store.list_recent(Table.TAUGHT, limit=None)
        snapshot = {row["english"]: row["tulu"] for row in rows}
        logger.debug("taught_snapshot_loaded", words=len(snapshot))
        return snapshot

    async def get_taught_snapshot(self) -> dict[str, str]:
        """Copy of the taught snapshot; mutating it never touches the cache."""
        try:
            snapshot = await self._taught.get_or_refresh(self._load_taught)
        except StoreUnavailableError as e:
            logger.warning("taught_snapshot_unavailable", error=e.message)
            snapshot = self._taught.peek() or {}
        return dict(snapshot)

    def record_taught(self, english: str, tulu: str) -> None:
        """Write-through after a successful contribution."""
        self._taught.update(lambda snapshot: snapshot.__setitem__(english, tulu))

    def forget_taught(self, english: str) -> None:
        self._taught.update(lambda snapshot: snapshot.pop(english, None))

    def invalidate_taught(self) -> None:
        self._taught.invalidate()

    # ------------------------------------------------------------------
    # API-result cache
    # ------------------------------------------------------------------

    def _expired(self, entry: Entry, now: datetime) -> bool:
        created_at = entry.get("created_at")
        if not isinstance(created_at, datetime):
            return True
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return now - created_at >= self._api_ttl

    async def get_api_cache_entry(self, key: str) -> Entry | None:
        try:
            entry = await self._store.get(Table.API_CACHE, key)
        except StoreUnavailableError as e:
            logger.warning("api_cache_read_failed", english=key, error=e.message)
            return None
        if entry is None:
            return None
        if self._expired(entry, datetime.now(timezone.utc)):
            logger.debug("api_cache_entry_expired", english=key)
            return None
        if not is_valid_translation(key, entry.get("translation")):
            logger.warning("api_cache_entry_invalid", english=key, source=entry.get("api_source"))
            return None
        return entry

    async def put_api_cache_entry(self, key: str, translation: str, source: str) -> bool:
        if not is_valid_translation(key, translation):
            logger.warning("api_cache_write_refused", english=key, source=source)
            return False
        entry = {
            "english": key,
            "translation": translation,
            "api_source": source,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            saved = await self._store.put(Table.API_CACHE, key, entry)
        except (StoreUnavailableError, StoreWriteConflictError) as e:
            logger.warning("api_cache_write_failed", english=key, error=e.message)
            return False
        if saved:
            logger.info("api_cache_entry_saved", english=key, source=source)
        return saved
