"""Tiered translation resolution — the main decision engine.

Strict tier order, first hit wins, no tier skipped:
  1 BASE_LEXICON       → verified static entries (authoritative)
  2 TAUGHT             → community dictionary snapshot
  3 API_CACHE          → previously fetched machine translation
  4 API_FETCH          → live machine translation, cached before returning
  5 TEACHING_REQUIRED  → nobody knows; the user is asked to teach it

Tiers 3 and 4 are flagged ``needs_verification``. Store and fetcher
failures degrade into misses; tier 5 is a normal terminal state, not an
error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import structlog

from tulubot.services.cache.layer import CacheLayer
from tulubot.services.lexicon import BaseLexicon, normalize
from tulubot.services.translation.fetcher import TranslationFetcher
from tulubot.services.workflow.state import UserStateStore

logger = structlog.get_logger(__name__)


class Tier(IntEnum):
    BASE_LEXICON = 1
    TAUGHT = 2
    API_CACHE = 3
    API_FETCH = 4
    TEACHING_REQUIRED = 5


SOURCE_BASE = "base_dictionary"
SOURCE_COMMUNITY = "community"
SOURCE_UNKNOWN = "unknown"


@dataclass
class TranslationResult:
    """Output of a single resolve() call."""

    english: str
    translation: str | None
    found: bool
    source: str
    tier: Tier
    needs_verification: bool = False


class ResolutionEngine:
    """Resolves English text through the five tiers."""

    def __init__(
        self,
        lexicon: BaseLexicon,
        cache: CacheLayer,
        fetcher: TranslationFetcher,
        states: UserStateStore,
    ) -> None:
        self._lexicon = lexicon
        self._cache = cache
        self._fetcher = fetcher
        self._states = states

    async def resolve(
        self,
        text: str,
        user_id: str,
        chat_id: str | None = None,
    ) -> TranslationResult:
        key = normalize(text)

        # Tier 1: base lexicon
        tulu = self._lexicon.lookup(key)
        if tulu is not None:
            logger.info("resolved", tier=Tier.BASE_LEXICON.value, english=key)
            return TranslationResult(key, tulu, True, SOURCE_BASE, Tier.BASE_LEXICON)

        # Tier 2: community dictionary
        taught = await self._cache.get_taught_snapshot()
        tulu = taught.get(key)
        if tulu is not None:
            logger.info("resolved", tier=Tier.TAUGHT.value, english=key)
            return TranslationResult(key, tulu, True, SOURCE_COMMUNITY, Tier.TAUGHT)

        # Tier 3: cached machine translation
        cached = await self._cache.get_api_cache_entry(key)
        if cached is not None:
            logger.info("resolved", tier=Tier.API_CACHE.value, english=key)
            return TranslationResult(
                key,
                cached["translation"],
                True,
                f"api_cache:{cached.get('api_source', 'unknown')}",
                Tier.API_CACHE,
                needs_verification=True,
            )

        # Tier 4: live fetch (short / numeric input is skipped inside the fetcher)
        fetched = await self._fetcher.fetch(key)
        if fetched is not None:
            await self._cache.put_api_cache_entry(key, fetched.translation, fetched.source)
            logger.info("resolved", tier=Tier.API_FETCH.value, english=key, source=fetched.source)
            return TranslationResult(
                key,
                fetched.translation,
                True,
                f"api:{fetched.source}",
                Tier.API_FETCH,
                needs_verification=True,
            )

        # Tier 5: ask the user
        self._states.begin_learning(user_id, key, text.strip(), chat_id=chat_id)
        logger.info("resolution_needs_teaching", english=key, user_id=user_id)
        return TranslationResult(key, None, False, SOURCE_UNKNOWN, Tier.TEACHING_REQUIRED)

