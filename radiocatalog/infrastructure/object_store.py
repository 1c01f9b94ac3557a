"""Object Store — named, ordered record contexts in memory or in a SQL database.

Invariants:
    - A context is a dense sequence: positions run 0..len-1 with no gaps
    - put(record, p): p < len overwrites, p == len appends, anything else raises
      StorePositionError; remove(p) outside 0..len-1 raises StorePositionError
    - Records cross the boundary as deep copies: callers never alias store state
    - persist() writes only contexts whose save flag is set and that changed since
      the last persist; a SYSTEM context is never written back
    - SqlObjectStore.persist() is one transaction: all contexts or none

Design Decisions:
    - RecordList shared by both stores: positional semantics written once
    - SqlObjectStore loads a context lazily on first open and keeps it in memory;
      the database is touched only by open (read) and persist (write)
    - One row per record in config_records (models/config_record.py)
"""

import copy
import logging

from sqlalchemy import delete, select

from radiocatalog.core.errors import StorePositionError
from radiocatalog.core.store_protocols import Record
from radiocatalog.infrastructure.database import DatabaseSessionManager
from radiocatalog.models.config_record import ConfigRecord

logger = logging.getLogger(__name__)


class RecordList:
    """In-memory StoreContext."""

    def __init__(self, name: str, records: list[Record] | None = None):
        self.name = name
        self._records: list[Record] = copy.deepcopy(records) if records else []
        self._save = False
        self.changed = False

    @property
    def save(self) -> bool:
        return self._save

    def set_save(self, save: bool) -> None:
        self._save = save

    def __len__(self) -> int:
        return len(self._records)

    def list(self) -> list[Record]:
        return copy.deepcopy(self._records)

    def clear(self) -> None:
        if self._records:
            self._records.clear()
            self.changed = True

    def append(self, record: Record) -> int:
        self._records.append(copy.deepcopy(record))
        self.changed = True
        return len(self._records) - 1

    def put(self, record: Record, position: int) -> None:
        if position == len(self._records):
            self.append(record)
            return
        if not 0 <= position < len(self._records):
            raise StorePositionError(position, len(self._records), "put", self.name)
        self._records[position] = copy.deepcopy(record)
        self.changed = True

    def remove(self, position: int) -> None:
        if not 0 <= position < len(self._records):
            raise StorePositionError(position, len(self._records), "remove", self.name)
        del self._records[position]
        self.changed = True


class MemoryObjectStore:
    """ObjectStore kept entirely in process memory; seed it with `contexts`."""

    def __init__(self, contexts: dict[str, list[Record]] | None = None):
        self._contexts: dict[str, RecordList] = {
            name: RecordList(name, records)
            for name, records in (contexts or {}).items()
        }
        self.persist_count = 0

    def open_context(self, name: str) -> RecordList:
        ctx = self._contexts.get(name)
        if ctx is None:
            ctx = self._contexts[name] = RecordList(name)
        return ctx

    def persist(self) -> None:
        for ctx in self._contexts.values():
            if ctx.save:
                ctx.changed = False
        self.persist_count += 1


class SqlObjectStore:
    """ObjectStore backed by the config_records table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db
        self._contexts: dict[str, RecordList] = {}

    def open_context(self, name: str) -> RecordList:
        ctx = self._contexts.get(name)
        if ctx is not None:
            return ctx

        with self._db.session() as session:
            rows = session.scalars(
                select(ConfigRecord)
                .where(ConfigRecord.context_name == name)
                .order_by(ConfigRecord.position)
            ).all()
            records = [row.payload for row in rows]

        ctx = self._contexts[name] = RecordList(name, records)
        logger.debug(
            f"Opened context '{name}' ({len(records)} records)",
            extra={"context": name},
        )
        return ctx

    def persist(self) -> None:
        dirty = [c for c in self._contexts.values() if c.save and c.changed]
        if not dirty:
            return

        with self._db.session() as session:
            for ctx in dirty:
                session.execute(
                    delete(ConfigRecord).where(ConfigRecord.context_name == ctx.name)
                )
                session.add_all(
                    ConfigRecord(context_name=ctx.name, position=i, payload=record)
                    for i, record in enumerate(ctx.list())
                )
            session.commit()

        for ctx in dirty:
            ctx.changed = False
        logger.info(
            f"Persisted {len(dirty)} contexts: {', '.join(c.name for c in dirty)}",
        )
