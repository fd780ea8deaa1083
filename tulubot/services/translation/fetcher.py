"""Concurrent machine-translation fetcher.

Starts every configured backend at once and returns the first result that
settles AND passes validation; the rest are cancelled. Total latency is
bounded by the slowest single backend (each capped at ``timeout``), not by
their sum. Each backend is tried at most once per call and every failure
is swallowed: the caller only ever sees a FetchResult or None.
"""

from __future__ import annotations

import asyncio
import re

import structlog

from tulubot.core.exceptions import TranslationFetchError, TranslationRejectedError
from tulubot.services.translation.base import FetchResult, TranslationBackend
from tulubot.services.translation.validation import validate_translation

logger = structlog.get_logger(__name__)

_NUMERIC = re.compile(r"^[\d\s.,]+$")
_MIN_FETCH_LENGTH = 3


def should_skip_fetch(text: str) -> bool:
    """Very short or purely numeric input is left to the base lexicon."""
    query = text.strip()
    return len(query) < _MIN_FETCH_LENGTH or bool(_NUMERIC.match(query))


class TranslationFetcher:
    """Races a list of backends, in preference order for simultaneous finishes."""

    def __init__(self, backends: list[TranslationBackend], timeout: float = 6.0) -> None:
        self._backends = list(backends)
        self._timeout = timeout
        logger.info(
            "translation_fetcher_initialized",
            backends=[b.name for b in self._backends],
            timeout=timeout,
        )

    @property
    def backend_names(self) -> list[str]:
        return [b.name for b in self._backends]

    async def fetch(self, text: str) -> FetchResult | None:
        query = text.strip()
        if should_skip_fetch(query) or not self._backends:
            return None

        tasks = {
            asyncio.create_task(self._attempt(backend, query)): index
            for index, backend in enumerate(self._backends)
        }
        pending: set[asyncio.Task] = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )
                for task in sorted(done, key=lambda t: tasks[t]):
                    result = task.result()
                    if result is not None:
                        logger.info(
                            "translation_fetched",
                            source=result.source,
                            text_len=len(query),
                        )
                        return result
            logger.info("translation_fetch_miss", text_len=len(query))
            return None
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _attempt(self, backend: TranslationBackend, query: str) -> FetchResult | None:
        """One bounded call to one backend. Never raises."""
        try:
            raw = await asyncio.wait_for(backend.translate(query), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("translation_backend_timeout", backend=backend.name, timeout=self._timeout)
            return None
        except TranslationFetchError as e:
            logger.warning("translation_backend_failed", backend=backend.name, error=e.message)
            return None
        except Exception as e:
            logger.error("translation_backend_unexpected_error", backend=backend.name, error=str(e))
            return None

        try:
            translation = validate_translation(query, raw)
        except TranslationRejectedError as e:
            logger.info("translation_rejected", backend=backend.name, reason=e.message)
            return None
        return FetchResult(translation=translation, source=backend.name)
