"""Domain Types — rich types that replace bare primitives across the catalog.

Invariants:
    - Frequency wraps int Hz — bookmark keys are never floats
    - BackingSlot is either Unassigned or At(position); no -1 sentinel anywhere
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: context names and layers serialize to JSON/log extras without encoders
    - Frozen dataclasses for the slot variant: hashable, comparable, isinstance-dispatch
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType, Union


# ─── Value Types ─────────────────────────────────────────────────

Frequency = NewType("Frequency", int)      # Hz

NULL_PROFILE_LABEL = "(Null profile)"


# ─── Enums ───────────────────────────────────────────────────────

class Layer(str, Enum):
    """Provenance of a layered entry. Only USER entries are writable."""
    SYSTEM = "system"
    USER = "user"


class Subsystem(str, Enum):
    """Optional library subsystems, each behind its own gate."""
    SOURCES = "sources"
    ESTIMATORS = "estimators"
    SPECTRUM_SOURCES = "spectrum_sources"
    INSPECTORS = "inspectors"


class GateState(str, Enum):
    """Gate lifecycle — FAILED may transition back to INITIALIZING."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class ContextName(str, Enum):
    """Named contexts of the object store."""
    LOCATIONS = "locations"
    USER_LOCATIONS = "user_locations"
    QTH = "qth"
    TLE = "tle"
    USER_TLE = "user_tle"
    BOOKMARKS = "bookmarks"
    PALETTES = "palettes"
    AUTOGAINS = "autogains"
    FREQUENCY_ALLOCATIONS = "frequency_allocations"
    UI_CONFIG = "uiconfig"
    RECENT = "recent"


# ─── Backing slot (tagged variant) ───────────────────────────────

@dataclass(frozen=True)
class Unassigned:
    """Entity never written to its positional context."""

    def __repr__(self) -> str:
        return "Unassigned"


@dataclass(frozen=True)
class At:
    """Entity backed by the record at `position` of its context."""
    position: int

    def shifted_after_removal(self, removed: int) -> "At":
        """Slot after the record at `removed` was deleted from the same context."""
        if self.position > removed:
            return At(self.position - 1)
        return self


BackingSlot = Union[Unassigned, At]

UNASSIGNED = Unassigned()
