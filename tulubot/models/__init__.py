"""SQLAlchemy ORM models.

Individual models should be imported explicitly:
    from tulubot.models.taught_entry import TaughtEntryRecord

All models are imported here so Alembic and ``Base.metadata.create_all``
see every table.
"""

from tulubot.models.api_cache import ApiCacheRecord
from tulubot.models.base_entry import BaseEntryRecord
from tulubot.models.taught_entry import TaughtEntryRecord

__all__ = [
    "BaseEntryRecord",
    "TaughtEntryRecord",
    "ApiCacheRecord",
]
