"""Pending teach/correct interactions, one per user.

A state older than the timeout is treated as if it never existed: ``get``
drops it and returns None, so the user's next message goes through normal
resolution instead of being taken as a stale answer.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


class UserMode(str, Enum):
    LEARNING = "learning"
    CORRECTING = "correcting"
    CORRECTING_BASE = "correcting_base"


@dataclass
class UserState:
    user_id: str
    mode: UserMode
    english_word: str
    original_text: str
    chat_id: str | None = None
    old_translation: str | None = None
    timestamp: float = field(default_factory=time.time)


class UserStateStore:
    """In-process map of user id → UserState with timeout expiry.

    Setting a state always replaces any previous one for that user.
    """

    def __init__(
        self,
        timeout_seconds: float = 600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._timeout = timeout_seconds
        self._clock = clock
        self._states: dict[str, UserState] = {}

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def now(self) -> float:
        return self._clock()

    def _is_expired(self, state: UserState, now: float) -> bool:
        return now - state.timestamp >= self._timeout

    def get(self, user_id: str) -> UserState | None:
        state = self._states.get(user_id)
        if state is None:
            return None
        if self._is_expired(state, self._clock()):
            del self._states[user_id]
            logger.info("user_state_expired", user_id=user_id, mode=state.mode.value)
            return None
        return state

    def set(self, state: UserState) -> UserState:
        previous = self._states.get(state.user_id)
        self._states[state.user_id] = state
        logger.debug(
            "user_state_set",
            user_id=state.user_id,
            mode=state.mode.value,
            english=state.english_word,
            replaced=previous.mode.value if previous else None,
        )
        return state

    def begin_learning(
        self,
        user_id: str,
        english_word: str,
        original_text: str,
        chat_id: str | None = None,
    ) -> UserState:
        return self.set(
            UserState(
                user_id=user_id,
                mode=UserMode.LEARNING,
                english_word=english_word,
                original_text=original_text,
                chat_id=chat_id,
                timestamp=self._clock(),
            )
        )

    def clear(self, user_id: str) -> bool:
        return self._states.pop(user_id, None) is not None

    def pop_expired(self) -> list[UserState]:
        """Remove and return every expired state (for expiry notices)."""
        now = self._clock()
        expired = [s for s in self._states.values() if self._is_expired(s, now)]
        for state in expired:
            del self._states[state.user_id]
        return expired

    def __len__(self) -> int:
        return len(self._states)
