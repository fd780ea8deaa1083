"""In-process dict-backed store.

Used directly in tests and as the fallback when no durable store is
reachable. Data lives for the lifetime of the process only.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone

from tulubot.services.store.base import Entry, Table, TranslationStore, recency_of

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class InMemoryTranslationStore(TranslationStore):
    """Same contract as the SQL store, backed by one dict per table."""

    name = "memory"

    def __init__(self) -> None:
        self._tables: dict[Table, dict[str, Entry]] = {table: {} for table in Table}

    async def get(self, table: Table, key: str) -> Entry | None:
        entry = self._tables[table].get(key)
        return copy.deepcopy(entry) if entry is not None else None

    async def put(self, table: Table, key: str, entry: Entry) -> bool:
        stored = copy.deepcopy(entry)
        stored["english"] = key
        self._tables[table][key] = stored
        return True

    async def count(self, table: Table) -> int:
        return len(self._tables[table])

    async def list_recent(self, table: Table, limit: int | None = 10) -> list[Entry]:
        rows = sorted(
            self._tables[table].values(),
            key=lambda e: recency_of(table, e) or _EPOCH,
            reverse=True,
        )
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(e) for e in rows]

    async def delete(self, table: Table, key: str) -> bool:
        return self._tables[table].pop(key, None) is not None
