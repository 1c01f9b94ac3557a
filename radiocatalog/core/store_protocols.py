"""Boundary Protocols — contracts between the catalog core and its collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The object store and the signal library are only reached through these Protocols
    - Implementations provided by the shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - Synchronous methods: backing-store and library calls are in-process, the
      catalog has no async contract
    - Discovery walks return iterables instead of taking visitor callbacks
"""

from typing import Any, Iterable, Protocol, Union

from radiocatalog.core.entities import Site, SourceDevice

# A record is an object (dict, optional "class" tag) or a bare field (str).
Record = Union[dict[str, Any], str]


class StoreContext(Protocol):
    """Named, ordered, persistent sequence of records."""
    name: str

    @property
    def save(self) -> bool: ...
    def set_save(self, save: bool) -> None: ...
    def list(self) -> list[Record]: ...
    def clear(self) -> None: ...
    def append(self, record: Record) -> int: ...
    def put(self, record: Record, position: int) -> None: ...
    def remove(self, position: int) -> None: ...


class ObjectStore(Protocol):
    """Contract for the object-tree store — implemented by shell."""
    def open_context(self, name: str) -> StoreContext: ...
    def persist(self) -> None: ...


class SourceConfig(Protocol):
    """Opaque source profile handle owned by the library."""
    @property
    def label(self) -> str | None: ...
    def clone(self) -> "SourceConfig": ...


class SignalLibrary(Protocol):
    """Contract for the signal-processing / device-discovery library."""
    def init_sources(self) -> None: ...
    def init_estimators(self) -> None: ...
    def init_spectrum_sources(self) -> None: ...
    def init_inspectors(self) -> None: ...

    def walk_source_configs(self) -> Iterable[SourceConfig]: ...
    def walk_devices(self) -> Iterable[SourceDevice]: ...
    def walk_remote_profiles(self) -> Iterable[SourceConfig]: ...
    def detect_devices(self) -> None: ...

    def register_source_config(self, config: SourceConfig) -> None: ...
    def set_qth(self, site: Site) -> None: ...
    def local_tle_path(self) -> str | None: ...
    def version(self) -> str: ...


class TaskController(Protocol):
    """Background job runner owned (not used) by the catalog."""
    def shutdown(self, wait: bool = True) -> None: ...
