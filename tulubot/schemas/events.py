"""Inbound chat event schemas.

The transport layer (Telegram, a web hook, a test) turns whatever it
receives into one of these before handing it to the bot service.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InboundMessage(BaseModel):
    """A plain text message from a user."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    chat_id: str
    text: str
    timestamp: datetime = Field(default_factory=_utcnow)
    message_id: str | None = None
    user_name: str | None = None

    @property
    def idempotency_key(self) -> str | None:
        """Transport-level delivery key; ``None`` when the transport has no ids."""
        if self.message_id is None:
            return None
        return f"{self.chat_id}:{self.message_id}"

    @property
    def contributor(self) -> str:
        return self.user_name or self.user_id


class InboundCommand(BaseModel):
    """A slash command such as ``/correct hello``."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    chat_id: str
    command: str
    args: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)
    message_id: str | None = None
    user_name: str | None = None

    @field_validator("command")
    @classmethod
    def _strip_command(cls, value: str) -> str:
        # "/Correct@TuluBot" → "correct"
        return value.lstrip("/").split("@", 1)[0].strip().lower()

    @property
    def idempotency_key(self) -> str | None:
        if self.message_id is None:
            return None
        return f"{self.chat_id}:{self.message_id}"

    @property
    def contributor(self) -> str:
        return self.user_name or self.user_id

    @property
    def argument_text(self) -> str:
        return " ".join(self.args).strip()
