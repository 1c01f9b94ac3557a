"""Root conftest — shared fakes and fixtures.

Invariants:
    - Every test gets a fresh in-memory store and a fresh fake library
    - SQL fixtures use an in-memory SQLite database, schema created per test

Design Decisions:
    - Fakes are plain classes satisfying the core Protocols structurally
    - Failure injection through attributes (fail_remove, errors) instead of mocks
"""

import os

import pytest

from radiocatalog.core.entities import Site, SourceDevice
from radiocatalog.core.errors import PersistenceError
from radiocatalog.infrastructure.database import DatabaseSessionManager
from radiocatalog.infrastructure.object_store import MemoryObjectStore, RecordList

# Ensure tests never pick up a developer's database
os.environ.setdefault("CATALOG_DATABASE_URL", "sqlite:///:memory:")


class FakeSourceConfig:
    def __init__(self, label: str | None, params: dict | None = None):
        self._label = label
        self.params = dict(params or {})
        self.clones = 0

    @property
    def label(self) -> str | None:
        return self._label

    def clone(self) -> "FakeSourceConfig":
        self.clones += 1
        return FakeSourceConfig(self._label, self.params)


class FakeLibrary:
    """SignalLibrary double: serves canned walks, records every call."""

    def __init__(self):
        self.source_configs: list[FakeSourceConfig] = []
        self.devices: list[SourceDevice] = []
        self.remote_profiles: list[FakeSourceConfig] = []
        self.detected_devices: list[SourceDevice] = []
        self.tle_path: str | None = None
        self.calls: list[str] = []
        self.registered: list[FakeSourceConfig] = []
        self.qth: Site | None = None
        # method name -> exception raised when that method is called
        self.errors: dict[str, Exception] = {}

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    def init_sources(self) -> None:
        self._call("init_sources")

    def init_estimators(self) -> None:
        self._call("init_estimators")

    def init_spectrum_sources(self) -> None:
        self._call("init_spectrum_sources")

    def init_inspectors(self) -> None:
        self._call("init_inspectors")

    def walk_source_configs(self):
        self._call("walk_source_configs")
        return list(self.source_configs)

    def walk_devices(self):
        self._call("walk_devices")
        return list(self.devices)

    def walk_remote_profiles(self):
        self._call("walk_remote_profiles")
        return list(self.remote_profiles)

    def detect_devices(self) -> None:
        self._call("detect_devices")
        self.devices.extend(self.detected_devices)

    def register_source_config(self, config) -> None:
        self._call("register_source_config")
        self.registered.append(config)

    def set_qth(self, site: Site) -> None:
        self._call("set_qth")
        self.qth = site

    def local_tle_path(self) -> str | None:
        self._call("local_tle_path")
        return self.tle_path

    def version(self) -> str:
        self._call("version")
        return "0.3.0-test"


class FlakyRecordList(RecordList):
    """RecordList whose positional operations can be made to fail."""

    def __init__(self, name, records=None):
        super().__init__(name, records)
        self.fail_remove = False
        self.fail_append = False

    def remove(self, position: int) -> None:
        if self.fail_remove:
            raise PersistenceError("disk full", "remove")
        super().remove(position)

    def append(self, record) -> int:
        if self.fail_append:
            raise PersistenceError("disk full", "append")
        return super().append(record)


class FlakyObjectStore(MemoryObjectStore):
    def __init__(self, contexts=None):
        super().__init__()
        self._contexts = {
            name: FlakyRecordList(name, records)
            for name, records in (contexts or {}).items()
        }
        self.fail_persist = False

    def open_context(self, name: str) -> FlakyRecordList:
        ctx = self._contexts.get(name)
        if ctx is None:
            ctx = self._contexts[name] = FlakyRecordList(name)
        return ctx

    def persist(self) -> None:
        if self.fail_persist:
            raise PersistenceError("read-only file system", "persist")
        super().persist()


@pytest.fixture
def memory_store():
    return MemoryObjectStore()


@pytest.fixture
def flaky_store():
    return FlakyObjectStore()


@pytest.fixture
def library():
    return FakeLibrary()


@pytest.fixture
def make_config():
    return FakeSourceConfig


@pytest.fixture
def db_manager():
    manager = DatabaseSessionManager("sqlite:///:memory:")
    manager.create_schema()
    yield manager
    manager.dispose()
