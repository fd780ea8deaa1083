"""MyMemory translation memory API.

Reports errors inside a 200 response (``responseStatus`` field and
upper-case warning strings in ``translatedText``), so both are checked.
"""

from __future__ import annotations

import httpx
import structlog

from tulubot.core.exceptions import TranslationFetchError
from tulubot.services.translation.base import TranslationBackend

logger = structlog.get_logger(__name__)

_MYMEMORY_URL = "https://api.mymemory.translated.net/get"


class MyMemoryBackend(TranslationBackend):
    name = "mymemory"

    def __init__(
        self,
        target_language: str = "tcy",
        client: httpx.AsyncClient | None = None,
        timeout: float = 6.0,
        email: str = "",
    ) -> None:
        super().__init__(target_language=target_language, client=client, timeout=timeout)
        self._email = email

    async def translate(self, text: str) -> str:
        params = {"q": text, "langpair": f"en|{self._target}"}
        if self._email:
            params["de"] = self._email
        try:
            response = await self._get(_MYMEMORY_URL, params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("mymemory_translate_failed", error=str(e), text_len=len(text))
            raise TranslationFetchError(f"MyMemory translate failed: {e}") from e

        if not isinstance(payload, dict):
            raise TranslationFetchError("MyMemory returned an unexpected body")

        status = str(payload.get("responseStatus", ""))
        if status != "200" or payload.get("quotaFinished"):
            logger.warning(
                "mymemory_translate_rejected",
                status=status,
                details=payload.get("responseDetails"),
            )
            raise TranslationFetchError(f"MyMemory responded with status {status}")

        data = payload.get("responseData") or {}
        translated = data.get("translatedText") or ""
        logger.debug("mymemory_translate_ok", text_len=len(text), out_len=len(translated))
        return translated
