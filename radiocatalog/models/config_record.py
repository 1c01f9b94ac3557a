"""ConfigRecord ORM — one stored record of one named context.

Invariants:
    - (context_name, position) is unique; positions of a context are dense from 0
    - payload holds the record verbatim: a JSON object or a bare string

Design Decisions:
    - Generic JSON payload over one table per entity kind: the store is an
      object tree, entity shape is the codec's business (ADR: schema stays stable
      when a record kind gains fields)
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from radiocatalog.db.base import Base


class ConfigRecord(Base):
    """A record at a position of a context."""
    __tablename__ = "config_records"
    __table_args__ = (
        UniqueConstraint("context_name", "position", name="uq_config_records_slot"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    context_name: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
