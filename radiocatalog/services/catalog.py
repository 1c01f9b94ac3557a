"""Catalog — lifecycle facade over registry, synchronizer, discovery and gates.

Invariants:
    - One Catalog per store; nothing is global
    - open() creates the background task controller, then runs every load pass;
      close() optionally syncs, then shuts the controller down
    - A failed open() shuts the controller down and leaves the catalog closed,
      so open() can be retried
    - Library-facing mutations call the library first: on LibraryError the
      registry is unchanged
    - sync() and background_tasks need an open catalog; opening twice or closing
      a closed catalog raises CatalogStateError
    - Load passes never raise for bad records: malformed entries are skipped
    - Library failures (init, discovery, registration) always reach the caller
    - Bookmark removal reaches the store immediately through the synchronizer

Design Decisions:
    - Facade over a singleton: tests build as many catalogs as they like
      (ADR: explicit lifecycle, no import side effects)
    - The registry is exposed read/write as `catalog.registry`; the facade only
      adds the operations that cross into the store, the library or the disk
    - Load order mirrors dependency order: read-only tables, bookmarks,
      locations + QTH, TLE sources, satellites, UI config, recent list
"""

import logging
from pathlib import Path
from typing import Callable

from radiocatalog.core.domain_types import ContextName, GateState, Subsystem
from radiocatalog.core.entities import Location
from radiocatalog.core.entity_codec import (
    LOCATION_CLASS, BookmarkCodec, LocationCodec, NamedRecordCodec, RecentCodec,
    TLESourceCodec, UIConfigCodec,
)
from radiocatalog.core.errors import (
    CatalogStateError, LibraryError, MalformedRecordError, PersistenceError,
    TLEFormatError,
)
from radiocatalog.core.layered_loader import ContextSpec, load_layered
from radiocatalog.core.registry import Registry
from radiocatalog.core.store_protocols import (
    ObjectStore, SignalLibrary, SourceConfig, TaskController,
)
from radiocatalog.core.tle import parse_tle
from radiocatalog.infrastructure.task_controller import BackgroundTaskController
from radiocatalog.infrastructure.tle_directory import TLEDirectory
from radiocatalog.services.discovery import DiscoveryBridge
from radiocatalog.services.subsystem_gate import SubsystemGate, build_gates
from radiocatalog.services.synchronizer import Synchronizer, SyncReport

logger = logging.getLogger(__name__)


class Catalog:
    """The merged configuration catalog of one SDR application instance."""

    def __init__(
        self,
        store: ObjectStore,
        library: SignalLibrary,
        *,
        tle_directory: str | Path | None = None,
        task_controller_factory: Callable[[], TaskController] = BackgroundTaskController,
        registry: Registry | None = None,
    ):
        self._store = store
        self._library = library
        self._tle_directory = tle_directory
        self._task_controller_factory = task_controller_factory
        self._task_controller: TaskController | None = None
        self._open = False

        self.registry = registry if registry is not None else Registry()
        self.synchronizer = Synchronizer(store, self.registry)
        self.registry.slot_releaser = self.synchronizer.release_bookmark_slot
        self.discovery = DiscoveryBridge(self.registry, library)
        self._gates: dict[Subsystem, SubsystemGate] = build_gates(
            library, self.discovery,
        )

    # --- Lifecycle -------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._open

    def _require_open(self, operation: str) -> None:
        if not self._open:
            raise CatalogStateError(f"{operation} called on a closed catalog")

    def open(self) -> "Catalog":
        if self._open:
            raise CatalogStateError("catalog is already open")
        self._task_controller = self._task_controller_factory()
        self._open = True
        try:
            self.load_palettes()
            self.load_auto_gains()
            self.load_frequency_allocations()
            self.load_bookmarks()
            self.load_locations()
            self.load_tle_sources()
            self.load_satellites()
            self.load_ui_config()
            self.load_recent()
        except Exception as e:
            logger.error(f"Catalog open failed: {e}")
            self._task_controller.shutdown(wait=False)
            self._task_controller = None
            self._open = False
            raise
        logger.info("Catalog opened")
        return self

    def close(self, sync: bool = True) -> SyncReport | None:
        if not self._open:
            raise CatalogStateError("catalog is not open")
        report = self.synchronizer.sync_all() if sync else None
        if self._task_controller is not None:
            self._task_controller.shutdown(wait=True)
            self._task_controller = None
        self._open = False
        logger.info("Catalog closed")
        return report

    def __enter__(self) -> "Catalog":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._open:
            self.close()

    @property
    def background_tasks(self) -> TaskController:
        self._require_open("background_tasks")
        return self._task_controller

    # --- Load passes -----------------------------------------------------------

    def _load_named(self, context: ContextName, entity: str) -> list[dict]:
        merged = load_layered(
            self._store, [ContextSpec.system(context)], NamedRecordCodec(entity),
        )
        return [entry.value for entry in merged.values()]

    def load_palettes(self) -> None:
        self.registry.load_palettes(self._load_named(ContextName.PALETTES, "palette"))

    def load_auto_gains(self) -> None:
        self.registry.load_auto_gains(
            self._load_named(ContextName.AUTOGAINS, "auto_gain"),
        )

    def load_frequency_allocations(self) -> None:
        self.registry.load_frequency_allocations(
            self._load_named(ContextName.FREQUENCY_ALLOCATIONS, "frequency_allocation"),
        )

    def load_bookmarks(self) -> None:
        merged = load_layered(
            self._store, [ContextSpec.user(ContextName.BOOKMARKS)], BookmarkCodec(),
        )
        self.registry.load_bookmarks(entry.value for entry in merged.values())

    def load_locations(self) -> None:
        merged = load_layered(
            self._store,
            [
                ContextSpec.system(ContextName.LOCATIONS),
                ContextSpec.user(ContextName.USER_LOCATIONS),
            ],
            LocationCodec(),
        )
        self.registry.load_locations(merged.values())
        self._load_qth()

    def _load_qth(self) -> None:
        ctx = self._store.open_context(ContextName.QTH.value)
        ctx.set_save(True)
        records = ctx.list()
        if not records:
            return
        first = records[0]
        if not isinstance(first, dict) or first.get("class") != LOCATION_CLASS:
            logger.warning(
                "QTH record is not a Location, ignored",
                extra={"context": ctx.name, "position": 0},
            )
            return
        try:
            self.registry.set_qth(LocationCodec().decode(first, 0))
        except MalformedRecordError as e:
            e.context.context_name = ctx.name
            logger.warning(f"QTH record ignored: {e.reason}", extra=e.log_extra())

    def load_tle_sources(self) -> None:
        merged = load_layered(
            self._store,
            [
                ContextSpec.system(ContextName.TLE),
                ContextSpec.user(ContextName.USER_TLE),
            ],
            TLESourceCodec(),
        )
        self.registry.load_tle_sources(merged.values())

    def load_satellites(self) -> int:
        """Register every orbit found in the TLE directory. Returns how many."""
        directory = self._resolve_tle_directory()
        if directory is None:
            logger.debug("No TLE directory configured, satellites not loaded")
            return 0
        count = 0
        for orbit in directory.scan():
            self.registry.replace_satellite(orbit)
            count += 1
        logger.info(f"Loaded {count} satellites from {directory.path}")
        return count

    def load_ui_config(self) -> None:
        merged = load_layered(
            self._store, [ContextSpec.user(ContextName.UI_CONFIG)], UIConfigCodec(),
        )
        self.registry.load_ui_config(
            {position: entry.value for position, entry in merged.items()},
        )

    def load_recent(self) -> None:
        merged = load_layered(
            self._store, [ContextSpec.user(ContextName.RECENT)], RecentCodec(),
        )
        self.registry.load_recent(entry.value for entry in merged.values())

    # --- Subsystem gates -------------------------------------------------------

    def gate_state(self, subsystem: Subsystem) -> GateState:
        return self._gates[subsystem].state

    def init_sources(self) -> bool:
        return self._gates[Subsystem.SOURCES].ensure()

    def init_estimators(self) -> bool:
        return self._gates[Subsystem.ESTIMATORS].ensure()

    def init_spectrum_sources(self) -> bool:
        return self._gates[Subsystem.SPECTRUM_SOURCES].ensure()

    def init_inspectors(self) -> bool:
        return self._gates[Subsystem.INSPECTORS].ensure()

    # --- Discovery -------------------------------------------------------------

    def refresh_devices(self) -> int:
        return self.discovery.refresh_devices()

    def refresh_network_profiles(self) -> int:
        return self.discovery.refresh_network_profiles()

    def detect_devices(self) -> int:
        return self.discovery.detect_devices()

    # --- Library-facing operations ---------------------------------------------

    def save_profile(self, config: SourceConfig) -> None:
        """Register the profile with the library, then store it in the registry."""
        try:
            self._library.register_source_config(config)
        except Exception as e:
            raise LibraryError(str(e), "source config registration") from e
        self.registry.replace_profile(config)

    def set_qth(self, location: Location) -> None:
        try:
            self._library.set_qth(location.site)
        except Exception as e:
            raise LibraryError(str(e), "QTH update") from e
        self.registry.set_qth(location)

    def library_version(self) -> str:
        try:
            return self._library.version()
        except Exception as e:
            raise LibraryError(str(e), "version query") from e

    # --- TLE -------------------------------------------------------------------

    def _resolve_tle_directory(self) -> TLEDirectory | None:
        if self._tle_directory is not None:
            return TLEDirectory(self._tle_directory)
        path = self._library.local_tle_path()
        return TLEDirectory(path) if path else None

    def register_tle(self, text: str) -> bool:
        """Parse, save to the TLE directory and register. False on any failure."""
        try:
            orbit = parse_tle(text)
        except TLEFormatError as e:
            logger.warning(f"TLE rejected: {e.reason}", extra=e.log_extra())
            return False

        directory = self._resolve_tle_directory()
        if directory is None:
            logger.warning(
                f"No TLE directory available, {orbit.name} not saved",
                extra={"entity_key": orbit.name},
            )
            return False
        try:
            directory.save(orbit)
        except PersistenceError as e:
            logger.warning(f"TLE not saved: {e.message}", extra=e.log_extra())
            return False

        self.registry.replace_satellite(orbit)
        return True

    # --- Sync ------------------------------------------------------------------

    def sync(self) -> SyncReport:
        self._require_open("sync")
        return self.synchronizer.sync_all()
