"""Verified base lexicon ORM model."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from tulubot.db.postgres import Base


class BaseEntryRecord(Base):
    __tablename__ = "base_entries"

    english: Mapped[str] = mapped_column(Text, primary_key=True)
    tulu: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        Text, nullable=False, default="general", index=True
    )  # 'greetings' | 'numbers' | 'family' | 'colors' | 'common' | ...
    verified: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
