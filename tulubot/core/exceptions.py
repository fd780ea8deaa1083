"""Custom exception classes for structured error handling.

These never reach the chat user directly. Component boundaries convert
them into misses, ``None`` results or crafted reply text.
"""

from typing import Any


class TuluBotError(Exception):
    """Base exception for all tulubot errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}


class StoreUnavailableError(TuluBotError):
    def __init__(
        self,
        message: str = "Persistent store unavailable",
        code: str = "STORE_UNAVAILABLE",
    ) -> None:
        super().__init__(code=code, message=message)


class DatabaseConnectionError(StoreUnavailableError):
    def __init__(self, message: str = "Database connection failed") -> None:
        super().__init__(message=message, code="DATABASE_CONNECTION_ERROR")


class RedisConnectionError(TuluBotError):
    def __init__(self, message: str = "Redis connection failed") -> None:
        super().__init__(code="REDIS_CONNECTION_ERROR", message=message)


class TranslationFetchError(TuluBotError):
    def __init__(self, message: str = "Translation backend request failed") -> None:
        super().__init__(code="FETCH_FAILED", message=message)


class TranslationRejectedError(TuluBotError):
    def __init__(self, message: str = "Translation rejected by validation") -> None:
        super().__init__(code="TRANSLATION_REJECTED", message=message)


class ContributionValidationError(TuluBotError):
    def __init__(self, message: str = "Contribution is not a valid translation") -> None:
        super().__init__(code="INVALID_CONTRIBUTION", message=message)


class WordNotFoundError(TuluBotError):
    def __init__(self, message: str = "Word not found in any dictionary") -> None:
        super().__init__(code="WORD_NOT_FOUND", message=message)


class BaseEntryImmutableError(TuluBotError):
    def __init__(self, message: str = "Base dictionary entries cannot be edited") -> None:
        super().__init__(code="BASE_ENTRY_IMMUTABLE", message=message)


class StoreWriteConflictError(TuluBotError):
    """A write lost a constraint race. The store itself is healthy."""

    def __init__(self, message: str = "Conflicting write to the store") -> None:
        super().__init__(code="STORE_WRITE_CONFLICT", message=message)
