"""
SQLAlchemy model for the `counters` table.

Each row is the hit count for one key in one minute window.
Composite PK: (key, minute_window) — one row per bucket.

Design notes:
  • The parent table is PARTITION BY HASH (key) on PostgreSQL, so every
    row of a key lives in the same partition and unrelated keys spread
    across partitions. Partitions are created by the migration
    (see hits.services.partitions); other dialects ignore the option.
  • Rows are created lazily by INSERT … ON CONFLICT DO UPDATE and only
    ever incremented.
"""

import datetime

from sqlalchemy import CheckConstraint, Integer, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from hits.core.database import Base


class Counter(Base):
    """Per-key, per-minute hit counter."""

    __tablename__ = "counters"

    key: Mapped[str] = mapped_column(
        Text,
        primary_key=True,
    )
    minute_window: Mapped[datetime.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        primary_key=True,
    )
    count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    __table_args__ = (
        CheckConstraint("count >= 0", name="ck_counters_count_non_neg"),
        {"postgresql_partition_by": "HASH (key)"},
    )

    def __repr__(self) -> str:
        return (
            f"<Counter key={self.key!r} "
            f"window={self.minute_window:%Y-%m-%dT%H:%M} count={self.count}>"
        )
