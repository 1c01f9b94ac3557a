"""Synchronizer — reconcile in-memory registry state back into store contexts.

Invariants:
    - Full rewrite (recent, user_locations, qth, user_tle): clear, then append one
      freshly encoded record per USER-owned entity, in registry order
    - Positional reconciliation (bookmarks, uiconfig):
        * Unassigned bookmark -> append, then report the new slot to the registry
        * dirty bookmark / not-borrowed UI entry -> put at its slot, append if the
          slot no longer exists, and move the entry to the appended position
    - Bookmark removal is immediate: release_bookmark_slot deletes at the slot now
    - A record that fails to encode or persist is logged and skipped; the pass
      always runs to the end and nothing escapes to the caller
    - SYSTEM contexts are never written

Design Decisions:
    - Explicit ordered step table in sync_all (ADR: every step visible in one place)
    - Slot reported back right after append: a second sync never appends twice
    - Store-level persist() failure is reported in SyncReport, not raised
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from radiocatalog.core.domain_types import At, ContextName, Unassigned
from radiocatalog.core.entities import Bookmark
from radiocatalog.core.entity_codec import (
    BookmarkCodec, EntityCodec, LocationCodec, RecentCodec, TLESourceCodec,
    UIConfigCodec,
)
from radiocatalog.core.errors import (
    CatalogError, PersistenceError, RecordEncodeError,
)
from radiocatalog.core.registry import Registry
from radiocatalog.core.store_protocols import ObjectStore, StoreContext

logger = logging.getLogger(__name__)

_RECOVERABLE = (RecordEncodeError, PersistenceError)


@dataclass
class SyncReport:
    """Outcome of one sync pass."""
    written: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)
    persisted: bool = False

    @property
    def total_written(self) -> int:
        return sum(self.written.values())

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    def _count(self, context: str, ok: bool) -> None:
        bucket = self.written if ok else self.skipped
        bucket[context] = bucket.get(context, 0) + 1


def _log_skip(ctx: StoreContext, what: str, error: CatalogError) -> None:
    error.context.context_name = ctx.name
    logger.warning(
        f"Sync of '{ctx.name}' skipped {what}: {error.message}",
        extra=error.log_extra(),
    )


class Synchronizer:
    """Writes the registry back through the object store."""

    def __init__(self, store: ObjectStore, registry: Registry):
        self._store = store
        self._registry = registry
        self._locations = LocationCodec()
        self._tle_sources = TLESourceCodec()
        self._bookmarks = BookmarkCodec()
        self._ui = UIConfigCodec()
        self._recent = RecentCodec()

    # --- Full rewrite ----------------------------------------------------------

    def _rewrite(
        self,
        context: str,
        values: Iterable,
        codec: EntityCodec,
        report: SyncReport,
    ) -> None:
        ctx = self._store.open_context(context)
        ctx.clear()
        for value in values:
            try:
                ctx.append(codec.encode(value))
            except _RECOVERABLE as e:
                _log_skip(ctx, codec.entity, e)
                report._count(context, False)
                continue
            report._count(context, True)

    def sync_recent(self, report: SyncReport) -> None:
        self._rewrite(
            ContextName.RECENT.value, self._registry.recent(), self._recent, report,
        )

    def sync_locations(self, report: SyncReport) -> None:
        self._rewrite(
            ContextName.USER_LOCATIONS.value,
            self._registry.user_locations(), self._locations, report,
        )
        qth = self._registry.qth
        if qth is not None:
            self._rewrite(ContextName.QTH.value, [qth], self._locations, report)

    def sync_tle_sources(self, report: SyncReport) -> None:
        self._rewrite(
            ContextName.USER_TLE.value,
            self._registry.user_tle_sources(), self._tle_sources, report,
        )

    # --- Positional reconciliation ---------------------------------------------

    def sync_ui(self, report: SyncReport) -> None:
        context = ContextName.UI_CONFIG.value
        ctx = self._store.open_context(context)
        for position, entry in enumerate(self._registry.ui_config()):
            if entry is None or entry.borrowed:
                continue
            try:
                record = self._ui.encode(entry)
                try:
                    ctx.put(record, position)
                    landed = position
                except PersistenceError:
                    landed = ctx.append(record)
            except _RECOVERABLE as e:
                _log_skip(ctx, f"UI entry {position}", e)
                report._count(context, False)
                continue
            if landed != position:
                self._registry.move_ui_config(position, landed)
            report._count(context, True)

    def sync_bookmarks(self, report: SyncReport) -> None:
        context = ContextName.BOOKMARKS.value
        ctx = self._store.open_context(context)
        for bookmark in list(self._registry.bookmarks()):
            if isinstance(bookmark.slot, At) and not bookmark.dirty:
                continue
            was_dirty = bookmark.dirty
            try:
                position = self._write_bookmark(ctx, bookmark)
            except _RECOVERABLE as e:
                _log_skip(ctx, f"bookmark {bookmark.frequency}", e)
                report._count(context, False)
                continue
            # edited bookmarks stay dirty: every later sync rewrites them in place
            self._registry.mark_bookmark_saved(
                bookmark.frequency, position, dirty=was_dirty,
            )
            report._count(context, True)

    def _write_bookmark(self, ctx: StoreContext, bookmark: Bookmark) -> int:
        record = self._bookmarks.encode(bookmark)
        slot = bookmark.slot
        if isinstance(slot, Unassigned):
            return ctx.append(record)
        try:
            ctx.put(record, slot.position)
            return slot.position
        except PersistenceError as e:
            logger.debug(
                f"Bookmark slot {slot.position} gone, appending instead: {e.message}",
                extra={"context": ctx.name, "position": slot.position},
            )
            return ctx.append(record)

    def release_bookmark_slot(self, bookmark: Bookmark) -> bool:
        """Delete the record behind `bookmark` right away. False if the store refused."""
        slot = bookmark.slot
        if not isinstance(slot, At):
            return True
        ctx = self._store.open_context(ContextName.BOOKMARKS.value)
        try:
            ctx.remove(slot.position)
        except PersistenceError as e:
            _log_skip(ctx, f"delete of bookmark {bookmark.frequency}", e)
            return False
        logger.debug(
            f"Released bookmark slot {slot.position}",
            extra={"context": ctx.name, "position": slot.position},
        )
        return True

    # --- Entry point -----------------------------------------------------------

    def sync_all(self, persist: bool = True) -> SyncReport:
        """Reconcile every persistable collection, then persist writable contexts."""
        report = SyncReport()
        steps: list[tuple[str, Callable[[SyncReport], None]]] = [
            ("recent", self.sync_recent),
            ("ui", self.sync_ui),
            ("bookmarks", self.sync_bookmarks),
            ("locations", self.sync_locations),
            ("tle_sources", self.sync_tle_sources),
        ]
        for name, step in steps:
            logger.debug(f"Syncing {name}")
            step(report)

        if persist:
            try:
                self._store.persist()
                report.persisted = True
            except PersistenceError as e:
                logger.error(
                    f"Persisting catalog contexts failed: {e.message}",
                    extra=e.log_extra(),
                )

        logger.info(
            f"Sync complete: {report.total_written} written, "
            f"{report.total_skipped} skipped, persisted={report.persisted}",
        )
        return report
