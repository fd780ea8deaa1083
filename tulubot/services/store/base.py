"""Abstract key-value store over the three translation tables.

Business logic never imports a concrete store directly. The concrete store
is built once at process start (see ``tulubot.main.create_bot``) and
injected everywhere else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any

Entry = dict[str, Any]


class Table(str, Enum):
    BASE = "base_entries"
    TAUGHT = "taught_entries"
    API_CACHE = "api_cache"

    @property
    def recency_field(self) -> str:
        """Timestamp column that orders list_recent() for this table."""
        return "created_at" if self is Table.API_CACHE else "updated_at"


def recency_of(table: Table, entry: Entry) -> datetime | None:
    return entry.get(table.recency_field) or entry.get("created_at")


class TranslationStore(ABC):
    """Get/put/count/list-recent/delete over the translation tables.

    Keys are normalized English text. Entries are plain dicts whose keys
    match the ORM column names.
    """

    name: str = "abstract"

    @abstractmethod
    async def get(self, table: Table, key: str) -> Entry | None:
        """Return the entry stored under *key*, or None."""
        ...

    @abstractmethod
    async def put(self, table: Table, key: str, entry: Entry) -> bool:
        """Insert or replace the entry under *key*. Returns True on success."""
        ...

    @abstractmethod
    async def count(self, table: Table) -> int:
        ...

    @abstractmethod
    async def list_recent(self, table: Table, limit: int | None = 10) -> list[Entry]:
        """Entries ordered most-recently-updated first. ``limit=None`` returns all."""
        ...

    @abstractmethod
    async def delete(self, table: Table, key: str) -> bool:
        """Remove *key*. Returns True when a row was deleted."""
        ...

    async def ensure_indexes(self) -> None:
        """Create tables/indexes if missing. Idempotent; default is a no-op."""
        return None
