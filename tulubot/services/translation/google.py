"""Google Translate public web endpoint (``client=gtx``).

Returns a nested JSON array; element 0 is a list of sentence segments
whose first item is the translated text.
"""

from __future__ import annotations

import httpx
import structlog

from tulubot.core.exceptions import TranslationFetchError
from tulubot.services.translation.base import TranslationBackend

logger = structlog.get_logger(__name__)

_GOOGLE_URL = "https://translate.googleapis.com/translate_a/single"


class GoogleTranslateBackend(TranslationBackend):
    name = "google"

    async def translate(self, text: str) -> str:
        params = {
            "client": "gtx",
            "sl": "en",
            "tl": self._target,
            "dt": "t",
            "q": text,
        }
        try:
            response = await self._get(_GOOGLE_URL, params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("google_translate_failed", error=str(e), text_len=len(text))
            raise TranslationFetchError(f"Google translate failed: {e}") from e

        try:
            segments = payload[0] or []
            translated = "".join(seg[0] for seg in segments if seg and seg[0])
        except (IndexError, TypeError) as e:
            logger.warning("google_translate_unparseable", error=str(e))
            raise TranslationFetchError("Google translate returned an unexpected body") from e

        logger.debug("google_translate_ok", text_len=len(text), out_len=len(translated))
        return translated
