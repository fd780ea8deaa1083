"""Community teaching and correction workflow.

  idle → learning   (engine tier 5)     → next text is the new word
  idle → correcting (/correct <word>)   → next text replaces the translation
  learning|correcting → idle            on save, cancel or timeout

Only this workflow creates or mutates taught entries. The base lexicon is
immutable: ``/correct`` on a base word is refused with an explanation and
no state is created, so ``UserMode.CORRECTING_BASE`` is never entered.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import structlog

from tulubot.core.exceptions import (
    BaseEntryImmutableError,
    ContributionValidationError,
    StoreUnavailableError,
    StoreWriteConflictError,
    WordNotFoundError,
)
from tulubot.services.cache.layer import CacheLayer
from tulubot.services.lexicon import BaseLexicon, normalize
from tulubot.services.store.base import Entry, Table, TranslationStore
from tulubot.services.workflow.state import UserMode, UserState, UserStateStore

logger = structlog.get_logger(__name__)


class CorrectionStatus(str, Enum):
    STARTED = "started"
    NOT_FOUND = "not_found"
    BASE_IMMUTABLE = "base_immutable"


class ContributionStatus(str, Enum):
    SAVED = "saved"
    CORRECTED = "corrected"
    INVALID = "invalid"
    STORE_ERROR = "store_error"
    REFUSED = "refused"


@dataclass
class CorrectionOutcome:
    status: CorrectionStatus
    english: str
    current_translation: str | None = None
    source: str | None = None


@dataclass
class ContributionOutcome:
    status: ContributionStatus
    english: str
    original_text: str
    translation: str | None = None
    old_translation: str | None = None
    error: str | None = None


class ContributionWorkflow:
    """Owns the per-user states and every write to the taught table."""

    def __init__(
        self,
        store: TranslationStore,
        cache: CacheLayer,
        lexicon: BaseLexicon,
        states: UserStateStore,
        min_length: int = 2,
    ) -> None:
        self._store = store
        self._cache = cache
        self._lexicon = lexicon
        self._states = states
        self._min_length = min_length

    def pending(self, user_id: str) -> UserState | None:
        """The user's live (non-expired) state, if any."""
        return self._states.get(user_id)

    async def _locate(self, key: str) -> tuple[str, str]:
        """Return ``(translation, source)`` for a correctable word.

        Raises:
            BaseEntryImmutableError: The word lives in the base lexicon.
            WordNotFoundError: No table knows the word.
        """
        if self._lexicon.lookup(key) is not None:
            raise BaseEntryImmutableError(f'"{key}" is a base dictionary word')
        try:
            taught = await self._store.get(Table.TAUGHT, key)
        except StoreUnavailableError as e:
            logger.warning("correction_lookup_failed", english=key, error=e.message)
            taught = None
        if taught is not None:
            return taught["tulu"], "community"
        cached = await self._cache.get_api_cache_entry(key)
        if cached is not None:
            return cached["translation"], "api_cache"
        raise WordNotFoundError(f'"{key}" is not in any dictionary')

    async def start_correction(
        self,
        user_id: str,
        chat_id: str | None,
        word: str,
    ) -> CorrectionOutcome:
        key = normalize(word)
        try:
            current, source = await self._locate(key)
        except BaseEntryImmutableError:
            logger.info("correction_refused_base_word", english=key, user_id=user_id)
            return CorrectionOutcome(
                CorrectionStatus.BASE_IMMUTABLE,
                key,
                current_translation=self._lexicon.lookup(key),
                source="base_dictionary",
            )
        except WordNotFoundError:
            logger.info("correction_word_not_found", english=key, user_id=user_id)
            return CorrectionOutcome(CorrectionStatus.NOT_FOUND, key)

        self._states.set(
            UserState(
                user_id=user_id,
                mode=UserMode.CORRECTING,
                english_word=key,
                original_text=word.strip(),
                chat_id=chat_id,
                old_translation=current,
                timestamp=self._states.now(),
            )
        )
        logger.info("correction_started", english=key, user_id=user_id, source=source)
        return CorrectionOutcome(CorrectionStatus.STARTED, key, current, source)

    def _validate(self, text: str) -> str:
        translation = text.strip()
        if len(translation) < self._min_length:
            raise ContributionValidationError(
                f"Translation must be at least {self._min_length} characters"
            )
        return translation

    async def submit(
        self,
        state: UserState,
        text: str,
        contributor: str,
    ) -> ContributionOutcome:
        """Take *text* as the answer to the user's pending state."""
        key = state.english_word
        if state.mode is UserMode.CORRECTING_BASE:
            self._states.clear(state.user_id)
            return ContributionOutcome(
                ContributionStatus.REFUSED, key, state.original_text,
                error="Base dictionary entries cannot be edited",
            )

        try:
            translation = self._validate(text)
        except ContributionValidationError as e:
            # State is kept so the user can simply try again.
            return ContributionOutcome(
                ContributionStatus.INVALID, key, state.original_text, error=e.message
            )

        now = datetime.now(timezone.utc)
        try:
            existing = await self._store.get(Table.TAUGHT, key)
            entry = self._merge(existing, key, translation, contributor, now)
            saved = await self._store.put(Table.TAUGHT, key, entry)
        except (StoreUnavailableError, StoreWriteConflictError) as e:
            logger.error("contribution_save_failed", english=key, error=e.message)
            saved, existing = False, None

        if not saved:
            self._states.clear(state.user_id)
            return ContributionOutcome(
                ContributionStatus.STORE_ERROR, key, state.original_text,
                translation=translation, error="Could not save the translation",
            )

        self._cache.record_taught(key, translation)
        self._states.clear(state.user_id)

        corrected = existing is not None or state.mode is UserMode.CORRECTING
        old_translation = state.old_translation or (existing or {}).get("tulu")
        logger.info(
            "word_corrected" if corrected else "word_taught",
            english=key,
            contributor=contributor,
            usage_count=entry["usage_count"],
        )
        return ContributionOutcome(
            ContributionStatus.CORRECTED if corrected else ContributionStatus.SAVED,
            key,
            state.original_text,
            translation=translation,
            old_translation=old_translation,
        )

    @staticmethod
    def _merge(
        existing: Entry | None,
        key: str,
        translation: str,
        contributor: str,
        now: datetime,
    ) -> Entry:
        if existing is None:
            return {
                "english": key,
                "tulu": translation,
                "contributor": contributor,
                "created_at": now,
                "updated_at": now,
                "usage_count": 0,
                "votes": 0,
                "verified": False,
            }
        entry = dict(existing)
        entry.update(
            tulu=translation,
            contributor=contributor,
            updated_at=now,
            usage_count=int(existing.get("usage_count") or 0) + 1,
        )
        return entry

    def cancel(self, user_id: str) -> bool:
        cleared = self._states.clear(user_id)
        if cleared:
            logger.info("user_state_cancelled", user_id=user_id)
        return cleared

    async def forget(self, word: str) -> bool:
        """Delete a community entry outright. Base words are never deleted."""
        key = normalize(word)
        try:
            deleted = await self._store.delete(Table.TAUGHT, key)
        except StoreUnavailableError as e:
            logger.error("forget_failed", english=key, error=e.message)
            return False
        if deleted:
            self._cache.forget_taught(key)
            logger.info("word_forgotten", english=key)
        return deleted
