"""Machine-translation result cache ORM model."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from tulubot.db.postgres import Base


class ApiCacheRecord(Base):
    __tablename__ = "api_cache"

    english: Mapped[str] = mapped_column(Text, primary_key=True)
    translation: Mapped[str] = mapped_column(Text, nullable=False)
    api_source: Mapped[str] = mapped_column(Text, nullable=False)
    # Rows older than API_CACHE_TTL_DAYS are ignored on read and purged on startup.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
