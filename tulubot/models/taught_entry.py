"""Community-taught entry ORM model."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from tulubot.db.postgres import Base


class TaughtEntryRecord(Base):
    __tablename__ = "taught_entries"

    english: Mapped[str] = mapped_column(Text, primary_key=True)
    tulu: Mapped[str] = mapped_column(Text, nullable=False)
    contributor: Mapped[str] = mapped_column(Text, nullable=False, default="anonymous")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    votes: Mapped[int] = mapped_column(Integer, default=0)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
