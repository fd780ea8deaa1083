"""Abstract translation backend interface.

All third-party machine-translation integrations inherit from this class.
The fetcher never imports a concrete backend directly; backends are built
once at process start and handed to ``TranslationFetcher``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class FetchResult:
    """A validated machine translation and the backend that produced it."""

    translation: str
    source: str


class TranslationBackend(ABC):
    """Abstract base class for English → Tulu machine-translation APIs."""

    name: str = "abstract"

    def __init__(
        self,
        target_language: str = "tcy",
        client: httpx.AsyncClient | None = None,
        timeout: float = 6.0,
    ) -> None:
        self._target = target_language
        self._client = client
        self._timeout = timeout

    async def _get(self, url: str, params: dict[str, str]) -> httpx.Response:
        """GET with the shared client when one was injected, else a one-off client."""
        if self._client is not None:
            return await self._client.get(url, params=params, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params)

    @abstractmethod
    async def translate(self, text: str) -> str:
        """Translate English *text* into the target language.

        Args:
            text: Trimmed English input.

        Returns:
            The raw translated text, unvalidated.

        Raises:
            TranslationFetchError: On non-success HTTP status, transport
                failure or an unparseable response body.
        """
        ...
