"""Catalog facade — lifecycle, load passes and library-facing operations.

Tests:
    - open() loads every collection with the right provenance
    - close() syncs and shuts the task controller down; misuse raises
    - QTH loading, save_profile, set_qth, register_tle
    - Library failures reach the caller as LibraryError and leave the registry as it was
    - A failed open() can be retried
    - An unsaved bookmark becomes exactly one stored record across SQL reloads
"""

import pytest

from radiocatalog.core.domain_types import At, Frequency, GateState, Layer, Subsystem
from radiocatalog.core.entities import BookmarkInfo, Location, SourceDevice
from radiocatalog.core.errors import CatalogStateError, LibraryError, LibraryInitError
from radiocatalog.infrastructure.object_store import MemoryObjectStore, SqlObjectStore
from radiocatalog.services.catalog import Catalog

LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"


class RecordingController:
    def __init__(self):
        self.shutdowns = 0

    def shutdown(self, wait: bool = True) -> None:
        self.shutdowns += 1


def _seeded_store():
    return MemoryObjectStore({
        "locations": [{"class": "Location", "name": "Madrid", "lat": 40.4, "lon": -3.7}],
        "user_locations": [
            {"class": "Location", "name": "Madrid", "lat": 0.0},
            {"class": "Location", "name": "Home", "lat": 41.0},
        ],
        "qth": [{"class": "Location", "name": "Home", "lat": 41.0, "alt": 100}],
        "tle": [{"class": "tle_source", "name": "CelesTrak", "url": "https://celestrak.org"}],
        "bookmarks": [
            {"name": "ISS", "frequency": "145800000"},
            {"name": "", "frequency": "1"},
            {"name": "NOAA 19", "frequency": 137_100_000},
        ],
        "palettes": [{"name": "Magma"}, {"name": "Magma"}, {"stops": []}],
        "uiconfig": [{"class": "Waterfall"}],
        "recent": ["Airspy", "RTL-SDR"],
    })


@pytest.fixture
def catalog(library, tmp_path):
    cat = Catalog(
        _seeded_store(), library,
        tle_directory=tmp_path / "tle",
        task_controller_factory=RecordingController,
    )
    cat.open()
    yield cat
    if cat.is_open:
        cat.close(sync=False)


# --- Lifecycle -----------------------------------------------------------------

def test_open_loads_layered_locations(catalog):
    entry = catalog.registry.location_entry("Madrid")
    assert entry.owner is Layer.SYSTEM
    assert entry.value.latitude == 40.4
    assert catalog.registry.location_entry("Home").owner is Layer.USER


def test_open_loads_qth(catalog):
    assert catalog.registry.has_qth
    assert catalog.registry.qth.site.height == pytest.approx(0.1)


def test_open_skips_malformed_bookmarks_and_keeps_positions(catalog):
    bookmarks = {bm.frequency: bm for bm in catalog.registry.bookmarks()}
    assert set(bookmarks) == {137_100_000, 145_800_000}
    assert bookmarks[137_100_000].slot.position == 2


def test_open_loads_read_only_tables_and_state(catalog):
    assert catalog.registry.palettes() == ({"name": "Magma"},)
    assert catalog.registry.tle_source("CelesTrak") is not None
    assert catalog.registry.ui_config_at(0).borrowed
    assert catalog.registry.recent() == ("Airspy", "RTL-SDR")


def test_open_twice_raises(catalog):
    with pytest.raises(CatalogStateError):
        catalog.open()


def test_close_syncs_and_shuts_down_controller(library):
    store = MemoryObjectStore()
    controllers = []

    def factory():
        controllers.append(RecordingController())
        return controllers[-1]

    cat = Catalog(store, library, task_controller_factory=factory)
    cat.open()
    cat.registry.register_location(Location("Home"))
    report = cat.close()

    assert report.persisted
    assert store.open_context("user_locations").list()[0]["name"] == "Home"
    assert controllers[0].shutdowns == 1
    with pytest.raises(CatalogStateError):
        cat.sync()
    with pytest.raises(CatalogStateError):
        cat.close()


def test_context_manager(library):
    with Catalog(MemoryObjectStore(), library, task_controller_factory=RecordingController) as cat:
        assert cat.is_open
        assert isinstance(cat.background_tasks, RecordingController)
    assert not cat.is_open


def test_qth_with_wrong_class_is_ignored(library):
    store = MemoryObjectStore({"qth": [{"class": "Site", "name": "x"}]})
    cat = Catalog(store, library, task_controller_factory=RecordingController).open()
    assert not cat.registry.has_qth


# --- Library-facing ------------------------------------------------------------

def test_save_profile_registers_with_library(catalog, library, make_config):
    config = make_config("My SDR")
    catalog.save_profile(config)
    assert catalog.registry.profile("My SDR") is config
    assert library.registered == [config]


def test_save_profile_library_failure(catalog, library, make_config):
    library.errors["register_source_config"] = RuntimeError("invalid")
    with pytest.raises(LibraryError):
        catalog.save_profile(make_config("Bad"))


def test_set_qth_updates_library_site(catalog, library):
    catalog.set_qth(Location("Peak", latitude=10.0, longitude=20.0, altitude=2000.0))
    assert catalog.registry.qth.name == "Peak"
    assert library.qth.height == pytest.approx(2.0)


def test_library_version(catalog):
    assert catalog.library_version() == "0.3.0-test"


def test_init_sources_gate(catalog, library, make_config):
    library.source_configs = [make_config("Airspy")]
    library.devices = [SourceDevice("Airspy", "airspy")]

    assert catalog.init_sources()
    assert catalog.gate_state(Subsystem.SOURCES) is GateState.READY
    assert catalog.registry.profile("Airspy") is not None


def test_failed_gate_reported(catalog, library):
    library.errors["init_estimators"] = RuntimeError("no FFTW wisdom")
    with pytest.raises(LibraryInitError):
        catalog.init_estimators()
    assert catalog.gate_state(Subsystem.ESTIMATORS) is GateState.FAILED


def test_discovery_refreshes(catalog, library, make_config):
    library.devices = [SourceDevice("RTL", "rtlsdr")]
    library.remote_profiles = [make_config("remote")]
    assert catalog.refresh_devices() == 1
    assert catalog.refresh_network_profiles() == 1
    assert catalog.detect_devices() == 1


# --- TLE -----------------------------------------------------------------------

def test_register_tle_saves_file_and_satellite(catalog, tmp_path):
    assert catalog.register_tle(f"ISS (ZARYA)\n{LINE1}\n{LINE2}\n")
    assert (tmp_path / "tle" / "ISS_(ZARYA).tle").exists()
    assert catalog.registry.satellite("ISS (ZARYA)").catalog_number == 25544


def test_register_tle_rejects_garbage(catalog):
    assert not catalog.register_tle("not a tle")
    assert list(catalog.registry.satellites()) == []


def test_register_tle_without_directory(library):
    cat = Catalog(MemoryObjectStore(), library, task_controller_factory=RecordingController)
    assert not cat.register_tle(f"ISS\n{LINE1}\n{LINE2}")


def test_satellites_loaded_from_library_tle_path(library, tmp_path):
    (tmp_path / "iss.tle").write_text(f"ISS\n{LINE1}\n{LINE2}\n")
    (tmp_path / "broken.tle").write_text("garbage\n")
    library.tle_path = str(tmp_path)

    cat = Catalog(MemoryObjectStore(), library, task_controller_factory=RecordingController)
    cat.open()

    assert [o.name for o in cat.registry.satellites()] == ["ISS"]


# --- Failure paths -------------------------------------------------------------

def test_save_profile_failure_leaves_registry_unchanged(catalog, library, make_config):
    original = make_config("My SDR")
    catalog.save_profile(original)
    library.errors["register_source_config"] = RuntimeError("invalid")

    with pytest.raises(LibraryError):
        catalog.save_profile(make_config("My SDR", {"gain": 40}))
    with pytest.raises(LibraryError):
        catalog.save_profile(make_config("Other"))

    assert catalog.registry.profile("My SDR") is original
    assert catalog.registry.profile("Other") is None


def test_set_qth_failure_leaves_registry_unchanged(catalog, library):
    catalog.set_qth(Location("Old"))
    library.errors["set_qth"] = RuntimeError("site rejected")

    with pytest.raises(LibraryError):
        catalog.set_qth(Location("New"))

    assert catalog.registry.qth.name == "Old"


def test_failed_open_can_be_retried(library):
    controllers = []

    def factory():
        controllers.append(RecordingController())
        return controllers[-1]

    library.errors["local_tle_path"] = RuntimeError("no data directory")
    cat = Catalog(MemoryObjectStore(), library, task_controller_factory=factory)

    with pytest.raises(RuntimeError):
        cat.open()
    assert not cat.is_open
    assert controllers[0].shutdowns == 1
    with pytest.raises(CatalogStateError):
        cat.background_tasks

    del library.errors["local_tle_path"]
    cat.open()
    assert cat.is_open
    cat.close(sync=False)


# --- SQL-backed round trips ----------------------------------------------------

def test_unsaved_bookmark_stored_once_across_reloads(library, db_manager):
    def sql_catalog():
        return Catalog(
            SqlObjectStore(db_manager), library,
            task_controller_factory=RecordingController,
        ).open()

    cat = sql_catalog()
    cat.registry.register_bookmark(BookmarkInfo("ISS", Frequency(145_800_000)))
    cat.sync()
    cat.sync()
    cat.close()

    cat = sql_catalog()
    assert cat.registry.bookmark(145_800_000).slot == At(0)
    cat.sync()
    cat.close()

    cat = sql_catalog()
    assert [bm.frequency for bm in cat.registry.bookmarks()] == [145_800_000]
    cat.close(sync=False)
    assert len(SqlObjectStore(db_manager).open_context("bookmarks").list()) == 1
