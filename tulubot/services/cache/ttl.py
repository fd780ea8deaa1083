"""Single-value time-boxed cache with a coalescing refresh."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Holds one value until ``expires_at``; ``get_or_refresh`` reloads it.

    A refresh happens when the value is missing, expired, or empty
    (an empty snapshot is never trusted). Concurrent callers wait on one
    lock so a cold cache triggers a single load.
    Updates made while a load is in flight are replayed onto the loaded
    value, so a write that lands after the loader read its rows survives.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._value: T | None = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()
        self._pending: list[Callable[[T], None]] | None = None

    @property
    def expires_at(self) -> float:
        return self._expires_at

    def _fresh(self) -> bool:
        return bool(self._value) and self._clock() < self._expires_at

    def peek(self) -> T | None:
        """Last loaded value, fresh or stale, without refreshing."""
        return self._value

    async def get_or_refresh(self, loader: Callable[[], Awaitable[T]]) -> T:
        if self._fresh():
            return self._value  # type: ignore[return-value]
        async with self._lock:
            if self._fresh():
                return self._value  # type: ignore[return-value]
            self._pending = []
            try:
                value = await loader()
                for fn in self._pending:
                    fn(value)
            finally:
                self._pending = None
            self.set(value)
            return value

    def set(self, value: T) -> None:
        self._value = value
        self._expires_at = self._clock() + self._ttl

    def update(self, fn: Callable[[T], None]) -> bool:
        """Mutate the cached value in place. Returns True if applied or queued.

        During a load *fn* is also queued for the incoming value.
        """
        if self._pending is not None:
            self._pending.append(fn)
        if self._value is None:
            return self._pending is not None
        fn(self._value)
        return True

    def invalidate(self) -> None:
        self._value = None
        self._expires_at = 0.0
