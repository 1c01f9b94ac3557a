"""Catalog Entities — plain dataclasses owned by the Registry.

Invariants:
    - Entities carry no IO and no store handles
    - Layered[T] is the only place provenance lives (no per-type `user` flags)
    - Location.altitude is metres; Site.height is kilometres (library convention)
    - Bookmark.slot is Unassigned until the bookmark is first written to its context

Design Decisions:
    - Generic Layered wrapper: merge/dedup/immutability written once for every layered type
    - SourceDevice frozen: devices are compared and hashed by (desc, driver, remote)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from radiocatalog.core.domain_types import (
    BackingSlot, Frequency, Layer, UNASSIGNED,
)

T = TypeVar("T")


@dataclass
class Layered(Generic[T]):
    """An entry tagged with the layer that owns it."""
    value: T
    owner: Layer

    @property
    def is_user(self) -> bool:
        return self.owner is Layer.USER


# ─── Locations ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Site:
    """Observer coordinates as the library expects them."""
    latitude: float
    longitude: float
    height: float  # km


@dataclass
class Location:
    name: str
    country: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0  # m

    @property
    def site(self) -> Site:
        return Site(self.latitude, self.longitude, self.altitude * 1e-3)

    @property
    def display_name(self) -> str:
        if self.country:
            return f"{self.name}, {self.country}"
        return self.name


# ─── Satellites ──────────────────────────────────────────────────

@dataclass
class TLESource:
    name: str
    url: str = ""


@dataclass
class Orbit:
    """Element set read from TLE text. Propagation is out of scope."""
    name: str
    catalog_number: int
    classification: str
    international_designator: str
    epoch: datetime
    inclination: float           # deg
    right_ascension: float       # deg
    eccentricity: float
    argument_of_perigee: float   # deg
    mean_anomaly: float          # deg
    mean_motion: float           # rev/day
    revolution_number: int
    line1: str
    line2: str

    def to_tle(self) -> str:
        return f"{self.name}\n{self.line1}\n{self.line2}\n"


# ─── Spectrum ────────────────────────────────────────────────────

@dataclass(frozen=True)
class SpectrumUnit:
    name: str
    db_per_unit: float
    zero_point: float


# ─── Bookmarks ───────────────────────────────────────────────────

@dataclass
class BookmarkInfo:
    name: str
    frequency: Frequency
    color: str = "#ffffff"
    modulation: str | None = None
    low_freq_cut: int | None = None
    high_freq_cut: int | None = None

    @property
    def has_band_edges(self) -> bool:
        return (
            self.modulation is not None
            and self.low_freq_cut is not None
            and self.high_freq_cut is not None
        )


@dataclass
class Bookmark:
    info: BookmarkInfo
    slot: BackingSlot = UNASSIGNED
    dirty: bool = False

    @property
    def frequency(self) -> Frequency:
        return self.info.frequency


# ─── UI state ────────────────────────────────────────────────────

@dataclass
class UIConfigEntry:
    """Opaque widget record. `borrowed` means unmodified since load."""
    record: dict = field(default_factory=dict)
    borrowed: bool = True


# ─── Devices ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class SourceDevice:
    desc: str
    driver: str
    remote: bool = False
