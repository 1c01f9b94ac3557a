"""Registry — the merged, queryable, mutable in-memory catalog.

Invariants:
    - One typed collection per entity kind, keyed by its natural key
    - register_* inserts iff the key is absent and reports collisions as False
    - replace_* upserts; for layered kinds it refuses to overwrite SYSTEM entries
    - remove_* returns False when the key is absent or the entry is SYSTEM-owned
    - A refused or failed mutation leaves every collection exactly as it was
    - Removing a bookmark with an At(p) slot releases the slot first (positional
      delete in the store), then shifts every later slot down by one
    - At most one QTH
    - location() and tle_source() hand out copies; stored entries change only
      through register_/replace_/remove_

Design Decisions:
    - Pure in-memory state, no store handle: positional deletes go through an
      injected slot releaser so the registry stays testable without IO
    - Layered collections share one set of helpers (_register_layered & co)
      instead of per-type user flags
    - Not thread-safe: a single control thread owns the registry
"""

import copy
import math
from typing import Callable, Iterable, Iterator

from radiocatalog.core.domain_types import (
    At, Frequency, Layer, NULL_PROFILE_LABEL,
)
from radiocatalog.core.entities import (
    Bookmark, BookmarkInfo, Layered, Location, Orbit, SourceDevice,
    SpectrumUnit, TLESource, UIConfigEntry,
)
from radiocatalog.core.sorted_map import SortedMap
from radiocatalog.core.store_protocols import SourceConfig


# Releases the store record behind a bookmark slot; False if the store refused.
SlotReleaser = Callable[[Bookmark], bool]

# The AB magnitude zero point sits at 3631 Jy; 1 mag = -4 dB.
BUILTIN_SPECTRUM_UNITS: tuple[SpectrumUnit, ...] = (
    SpectrumUnit("dBFS", 1.0, 0.0),
    SpectrumUnit("dBK", 1.0, -228.6),
    SpectrumUnit("dBW/Hz", 1.0, 0.0),
    SpectrumUnit("dBm/Hz", 1.0, -30.0),
    SpectrumUnit("dBJy", 1.0, 0.0),
    SpectrumUnit("mag (AB)", -4.0, -2.5 * math.log10(3631.0)),
)


def _profile_label(config: SourceConfig) -> str:
    return config.label if config.label is not None else NULL_PROFILE_LABEL


class Registry:
    """Every catalog collection, merged and indexed."""

    def __init__(
        self,
        *,
        slot_releaser: SlotReleaser | None = None,
        builtin_spectrum_units: bool = True,
    ):
        self.slot_releaser = slot_releaser

        self._profiles: SortedMap[str, SourceConfig] = SortedMap()
        self._network_profiles: dict[str, SourceConfig] = {}
        self._devices: list[SourceDevice] = []

        self._bookmarks: SortedMap[int, Bookmark] = SortedMap()
        self._locations: SortedMap[str, Layered[Location]] = SortedMap()
        self._qth: Location | None = None
        self._tle_sources: SortedMap[str, Layered[TLESource]] = SortedMap()
        self._satellites: SortedMap[str, Orbit] = SortedMap()
        self._spectrum_units: SortedMap[str, SpectrumUnit] = SortedMap()

        self._ui_config: list[UIConfigEntry | None] = []
        self._recent: list[str] = []

        self._palettes: list[dict] = []
        self._auto_gains: list[dict] = []
        self._frequency_allocations: list[dict] = []

        if builtin_spectrum_units:
            for unit in BUILTIN_SPECTRUM_UNITS:
                self._spectrum_units[unit.name] = unit

    # --- Layered helpers -------------------------------------------------------

    @staticmethod
    def _register_layered(collection: SortedMap, key: str, value) -> bool:
        if key in collection:
            return False
        collection[key] = Layered(copy.copy(value), Layer.USER)
        return True

    @staticmethod
    def _replace_layered(collection: SortedMap, key: str, value) -> bool:
        existing = collection.get(key)
        if existing is not None and not existing.is_user:
            return False
        collection[key] = Layered(copy.copy(value), Layer.USER)
        return True

    @staticmethod
    def _remove_layered(collection: SortedMap, key: str) -> bool:
        existing = collection.get(key)
        if existing is None or not existing.is_user:
            return False
        del collection[key]
        return True

    # --- Profiles --------------------------------------------------------------

    def register_profile(self, config: SourceConfig) -> bool:
        label = _profile_label(config)
        if label in self._profiles:
            return False
        self._profiles[label] = config
        return True

    def replace_profile(self, config: SourceConfig) -> None:
        self._profiles[_profile_label(config)] = config

    def remove_profile(self, label: str) -> bool:
        if label not in self._profiles:
            return False
        del self._profiles[label]
        return True

    def profile(self, label: str) -> SourceConfig | None:
        return self._profiles.get(label)

    def profiles(self) -> Iterator[tuple[str, SourceConfig]]:
        return self._profiles.items()

    # --- Network profiles ------------------------------------------------------

    def replace_network_profile(self, config: SourceConfig) -> None:
        self._network_profiles[_profile_label(config)] = config

    def remove_network_profile(self, label: str) -> bool:
        return self._network_profiles.pop(label, None) is not None

    def network_profile(self, label: str) -> SourceConfig | None:
        return self._network_profiles.get(label)

    def network_profiles(self) -> Iterator[tuple[str, SourceConfig]]:
        return iter(list(self._network_profiles.items()))

    def clear_network_profiles(self) -> None:
        self._network_profiles.clear()

    # --- Devices ---------------------------------------------------------------

    def add_device(self, device: SourceDevice) -> None:
        self._devices.append(device)

    def clear_devices(self) -> None:
        self._devices.clear()

    def devices(self) -> tuple[SourceDevice, ...]:
        return tuple(self._devices)

    def device_at(self, index: int) -> SourceDevice | None:
        if 0 <= index < len(self._devices):
            return self._devices[index]
        return None

    # --- Bookmarks -------------------------------------------------------------

    def register_bookmark(self, info: BookmarkInfo) -> bool:
        if info.frequency in self._bookmarks:
            return False
        self._bookmarks[info.frequency] = Bookmark(copy.copy(info))
        return True

    def replace_bookmark(self, info: BookmarkInfo) -> bool:
        """Upsert; the previous record (if any) is released and the new one starts unsaved."""
        existing = self._bookmarks.get(info.frequency)
        if existing is not None and not self._drop_bookmark(existing):
            return False
        self._bookmarks[info.frequency] = Bookmark(copy.copy(info))
        return True

    def modify_bookmark(self, info: BookmarkInfo) -> bool:
        """Edit a bookmark in place, keeping its slot; the next sync rewrites it there."""
        existing = self._bookmarks.get(info.frequency)
        if existing is None:
            return False
        existing.info = copy.copy(info)
        existing.dirty = True
        return True

    def remove_bookmark(self, frequency: int) -> bool:
        existing = self._bookmarks.get(frequency)
        if existing is None:
            return False
        return self._drop_bookmark(existing)

    def _drop_bookmark(self, bookmark: Bookmark) -> bool:
        slot = bookmark.slot
        if isinstance(slot, At) and self.slot_releaser is not None:
            if not self.slot_releaser(bookmark):
                return False
            del self._bookmarks[bookmark.frequency]
            for other in self._bookmarks.values():
                if isinstance(other.slot, At):
                    other.slot = other.slot.shifted_after_removal(slot.position)
            return True

        del self._bookmarks[bookmark.frequency]
        return True

    def mark_bookmark_saved(
        self, frequency: int, position: int, dirty: bool = False,
    ) -> None:
        """Record that the bookmark now lives at `position` of its context."""
        bookmark = self._bookmarks[frequency]
        bookmark.slot = At(position)
        bookmark.dirty = dirty

    def bookmark(self, frequency: int) -> Bookmark | None:
        return self._bookmarks.get(frequency)

    def bookmarks(self) -> Iterator[Bookmark]:
        return self._bookmarks.values()

    def bookmarks_from(self, frequency: int) -> Iterator[Bookmark]:
        """Bookmarks at or above `frequency`, ascending."""
        return (bm for _, bm in self._bookmarks.lower_bound(Frequency(frequency)))

    def load_bookmarks(self, bookmarks: Iterable[Bookmark]) -> None:
        self._bookmarks.clear()
        for bm in bookmarks:
            if bm.frequency not in self._bookmarks:
                self._bookmarks[bm.frequency] = bm

    # --- Locations -------------------------------------------------------------

    def register_location(self, location: Location) -> bool:
        return self._register_layered(self._locations, location.name, location)

    def replace_location(self, location: Location) -> bool:
        return self._replace_layered(self._locations, location.name, location)

    def remove_location(self, name: str) -> bool:
        return self._remove_layered(self._locations, name)

    def location(self, name: str) -> Location | None:
        entry = self._locations.get(name)
        return copy.copy(entry.value) if entry is not None else None

    def location_entry(self, name: str) -> Layered[Location] | None:
        return self._locations.get(name)

    def locations(self) -> Iterator[Layered[Location]]:
        return self._locations.values()

    def user_locations(self) -> Iterator[Location]:
        return (e.value for e in self._locations.values() if e.is_user)

    def load_locations(self, entries: Iterable[Layered[Location]]) -> None:
        self._locations.clear()
        for entry in entries:
            if entry.value.name not in self._locations:
                self._locations[entry.value.name] = entry

    # --- QTH -------------------------------------------------------------------

    @property
    def qth(self) -> Location | None:
        return self._qth

    @property
    def has_qth(self) -> bool:
        return self._qth is not None

    def set_qth(self, location: Location) -> None:
        self._qth = copy.copy(location)

    # --- TLE sources -----------------------------------------------------------

    def register_tle_source(self, source: TLESource) -> bool:
        return self._register_layered(self._tle_sources, source.name, source)

    def replace_tle_source(self, source: TLESource) -> bool:
        return self._replace_layered(self._tle_sources, source.name, source)

    def remove_tle_source(self, name: str) -> bool:
        return self._remove_layered(self._tle_sources, name)

    def tle_source(self, name: str) -> TLESource | None:
        entry = self._tle_sources.get(name)
        return copy.copy(entry.value) if entry is not None else None

    def tle_sources(self) -> Iterator[Layered[TLESource]]:
        return self._tle_sources.values()

    def user_tle_sources(self) -> Iterator[TLESource]:
        return (e.value for e in self._tle_sources.values() if e.is_user)

    def load_tle_sources(self, entries: Iterable[Layered[TLESource]]) -> None:
        self._tle_sources.clear()
        for entry in entries:
            if entry.value.name not in self._tle_sources:
                self._tle_sources[entry.value.name] = entry

    # --- Satellites ------------------------------------------------------------

    def register_satellite(self, orbit: Orbit) -> bool:
        if orbit.name in self._satellites:
            return False
        self._satellites[orbit.name] = orbit
        return True

    def replace_satellite(self, orbit: Orbit) -> None:
        self._satellites[orbit.name] = orbit

    def remove_satellite(self, name: str) -> bool:
        if name not in self._satellites:
            return False
        del self._satellites[name]
        return True

    def satellite(self, name: str) -> Orbit | None:
        return self._satellites.get(name)

    def satellites(self) -> Iterator[Orbit]:
        return self._satellites.values()

    # --- Spectrum units --------------------------------------------------------

    def register_spectrum_unit(
        self, name: str, db_per_unit: float, zero_point: float,
    ) -> bool:
        if name in self._spectrum_units:
            return False
        self._spectrum_units[name] = SpectrumUnit(name, db_per_unit, zero_point)
        return True

    def replace_spectrum_unit(
        self, name: str, db_per_unit: float, zero_point: float,
    ) -> None:
        self._spectrum_units[name] = SpectrumUnit(name, db_per_unit, zero_point)

    def remove_spectrum_unit(self, name: str) -> bool:
        if name not in self._spectrum_units:
            return False
        del self._spectrum_units[name]
        return True

    def spectrum_unit(self, name: str) -> SpectrumUnit | None:
        return self._spectrum_units.get(name)

    def spectrum_units(self) -> Iterator[SpectrumUnit]:
        return self._spectrum_units.values()

    def spectrum_units_from(self, name: str) -> Iterator[SpectrumUnit]:
        """Units whose name sorts at or after `name`."""
        return (unit for _, unit in self._spectrum_units.lower_bound(name))

    # --- UI config -------------------------------------------------------------

    def ui_config(self) -> list[UIConfigEntry | None]:
        return list(self._ui_config)

    def ui_config_at(self, position: int) -> UIConfigEntry | None:
        if 0 <= position < len(self._ui_config):
            return self._ui_config[position]
        return None

    def put_ui_config(self, position: int, record: dict) -> None:
        if position < 0:
            raise ValueError(f"UI config position must be >= 0, got {position}")
        if position >= len(self._ui_config):
            self._ui_config.extend([None] * (position + 1 - len(self._ui_config)))
        self._ui_config[position] = UIConfigEntry(
            record=copy.deepcopy(record), borrowed=False,
        )

    def move_ui_config(self, position: int, new_position: int) -> None:
        """Re-key an entry after the store placed it elsewhere; a gap is left behind."""
        entry = self.ui_config_at(position)
        if entry is None or position == new_position:
            return
        self._ui_config[position] = None
        if new_position >= len(self._ui_config):
            self._ui_config.extend([None] * (new_position + 1 - len(self._ui_config)))
        self._ui_config[new_position] = entry
        while self._ui_config and self._ui_config[-1] is None:
            self._ui_config.pop()

    def load_ui_config(self, entries: dict[int, UIConfigEntry]) -> None:
        size = max(entries, default=-1) + 1
        self._ui_config = [entries.get(i) for i in range(size)]

    # --- Recent profiles -------------------------------------------------------

    def recent(self) -> tuple[str, ...]:
        return tuple(self._recent)

    def notify_recent(self, label: str) -> bool:
        """Move `label` to the head. True if it was already in the list."""
        found = self.remove_recent(label)
        self._recent.insert(0, label)
        return found

    def remove_recent(self, label: str) -> bool:
        before = len(self._recent)
        self._recent = [r for r in self._recent if r != label]
        return len(self._recent) != before

    def clear_recent(self) -> None:
        self._recent.clear()

    def load_recent(self, labels: Iterable[str]) -> None:
        self._recent = list(labels)

    # --- Read-only named collections -------------------------------------------

    @staticmethod
    def _have_named(records: list[dict], name: str) -> bool:
        return any(r.get("name") == name for r in records)

    def palettes(self) -> tuple[dict, ...]:
        return tuple(self._palettes)

    def have_palette(self, name: str) -> bool:
        return self._have_named(self._palettes, name)

    def load_palettes(self, records: Iterable[dict]) -> None:
        self._palettes = list(records)

    def auto_gains(self) -> tuple[dict, ...]:
        return tuple(self._auto_gains)

    def have_auto_gain(self, name: str) -> bool:
        return self._have_named(self._auto_gains, name)

    def load_auto_gains(self, records: Iterable[dict]) -> None:
        self._auto_gains = list(records)

    def frequency_allocations(self) -> tuple[dict, ...]:
        return tuple(self._frequency_allocations)

    def have_frequency_allocation(self, name: str) -> bool:
        return self._have_named(self._frequency_allocations, name)

    def load_frequency_allocations(self, records: Iterable[dict]) -> None:
        self._frequency_allocations = list(records)
