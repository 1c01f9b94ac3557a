"""Registry — collection semantics, immutability and slot bookkeeping.

Tests:
    - register_* collides on existing keys, replace_* upserts
    - SYSTEM entries cannot be replaced or removed
    - Bookmark key uniqueness, removal releases and shifts slots
    - Spectrum-unit lower bound, recent list, UI config growth
"""

import copy

import pytest

from radiocatalog.core.domain_types import (
    At, Frequency, Layer, NULL_PROFILE_LABEL, UNASSIGNED,
)
from radiocatalog.core.entities import (
    Bookmark, BookmarkInfo, Layered, Location, SourceDevice, TLESource,
    UIConfigEntry,
)
from radiocatalog.core.registry import BUILTIN_SPECTRUM_UNITS, Registry


def _info(freq, name="bm"):
    return BookmarkInfo(name=name, frequency=Frequency(freq))


def _registry_with_slots(*frequencies, releaser=None):
    reg = Registry(slot_releaser=releaser)
    reg.load_bookmarks(
        Bookmark(_info(f), slot=At(i)) for i, f in enumerate(frequencies)
    )
    return reg


# --- Layered collections -------------------------------------------------------

def test_register_location_marks_user_owned():
    reg = Registry()
    assert reg.register_location(Location("Home"))
    assert reg.location_entry("Home").owner is Layer.USER


def test_register_location_collides_on_existing_name():
    reg = Registry()
    reg.register_location(Location("Home", latitude=1.0))
    assert not reg.register_location(Location("Home", latitude=2.0))
    assert reg.location("Home").latitude == 1.0


def test_system_location_is_immutable():
    reg = Registry()
    reg.load_locations([Layered(Location("Madrid", latitude=40.4), Layer.SYSTEM)])

    assert not reg.replace_location(Location("Madrid", latitude=0.0))
    assert not reg.remove_location("Madrid")
    assert reg.location("Madrid").latitude == 40.4


def test_user_location_can_be_replaced_and_removed():
    reg = Registry()
    reg.register_location(Location("Home", latitude=1.0))
    assert reg.replace_location(Location("Home", latitude=2.0))
    assert reg.location("Home").latitude == 2.0
    assert reg.remove_location("Home")
    assert reg.location("Home") is None


def test_registered_location_is_copied():
    reg = Registry()
    loc = Location("Home")
    reg.register_location(loc)
    loc.latitude = 50.0
    assert reg.location("Home").latitude == 0.0


def test_looked_up_system_entries_cannot_be_mutated():
    reg = Registry()
    reg.load_locations([Layered(Location("Madrid", latitude=40.4), Layer.SYSTEM)])
    reg.load_tle_sources([Layered(TLESource("CelesTrak", "u"), Layer.SYSTEM)])

    reg.location("Madrid").latitude = 0.0
    reg.tle_source("CelesTrak").url = "tampered"

    assert reg.location("Madrid").latitude == 40.4
    assert reg.tle_source("CelesTrak").url == "u"


def test_user_locations_excludes_system_entries():
    reg = Registry()
    reg.load_locations([Layered(Location("Madrid"), Layer.SYSTEM)])
    reg.register_location(Location("Home"))
    assert [loc.name for loc in reg.user_locations()] == ["Home"]


def test_system_tle_source_is_immutable():
    reg = Registry()
    reg.load_tle_sources([Layered(TLESource("CelesTrak", "u"), Layer.SYSTEM)])
    assert not reg.register_tle_source(TLESource("CelesTrak", "other"))
    assert not reg.remove_tle_source("CelesTrak")
    assert reg.register_tle_source(TLESource("Mine", "m"))
    assert [s.name for s in reg.user_tle_sources()] == ["Mine"]


# --- Bookmarks -----------------------------------------------------------------

def test_bookmark_key_is_unique():
    reg = Registry()
    assert reg.register_bookmark(_info(100, "a"))
    assert not reg.register_bookmark(_info(100, "b"))
    assert reg.bookmark(100).info.name == "a"


def test_replace_bookmark_resets_slot_and_releases_old_record():
    released = []
    reg = _registry_with_slots(100, 200, releaser=lambda bm: released.append(bm.frequency) or True)

    assert reg.replace_bookmark(_info(100, "new"))

    assert released == [100]
    assert reg.bookmark(100).slot == UNASSIGNED
    assert reg.bookmark(100).info.name == "new"
    assert reg.bookmark(200).slot == At(0)


def test_remove_bookmark_shifts_later_slots():
    reg = _registry_with_slots(100, 200, 300, releaser=lambda bm: True)
    assert reg.remove_bookmark(200)
    assert reg.bookmark(100).slot == At(0)
    assert reg.bookmark(300).slot == At(1)


def test_failed_release_leaves_registry_unchanged():
    reg = _registry_with_slots(100, 200, releaser=lambda bm: False)
    before = [copy.deepcopy(bm) for bm in reg.bookmarks()]

    assert not reg.remove_bookmark(100)
    assert not reg.replace_bookmark(_info(100, "new"))
    assert list(reg.bookmarks()) == before


def test_remove_unsaved_bookmark_needs_no_release():
    reg = Registry(slot_releaser=lambda bm: pytest.fail("released an unsaved bookmark"))
    reg.register_bookmark(_info(100))
    assert reg.remove_bookmark(100)
    assert not reg.remove_bookmark(100)


def test_modify_bookmark_keeps_slot_and_marks_dirty():
    reg = _registry_with_slots(100)
    assert reg.modify_bookmark(_info(100, "renamed"))
    bm = reg.bookmark(100)
    assert bm.slot == At(0)
    assert bm.dirty
    assert not reg.modify_bookmark(_info(999))


def test_bookmarks_from_is_lower_bound():
    reg = Registry()
    for f in (300, 100, 200):
        reg.register_bookmark(_info(f))
    assert [bm.frequency for bm in reg.bookmarks_from(150)] == [200, 300]
    assert [bm.frequency for bm in reg.bookmarks()] == [100, 200, 300]


# --- Spectrum units ------------------------------------------------------------

def test_builtin_spectrum_units_registered():
    reg = Registry()
    assert [u.name for u in reg.spectrum_units()] == sorted(
        u.name for u in BUILTIN_SPECTRUM_UNITS
    )
    assert reg.spectrum_unit("dBK").zero_point == pytest.approx(-228.6)
    assert reg.spectrum_unit("mag (AB)").zero_point == pytest.approx(-8.9, abs=0.01)


def test_spectrum_unit_lower_bound():
    reg = Registry(builtin_spectrum_units=False)
    reg.register_spectrum_unit("dBFS", 1.0, 0.0)
    reg.register_spectrum_unit("dBK", 1.0, -228.6)
    reg.register_spectrum_unit("dBW/Hz", 1.0, 0.0)

    first = next(reg.spectrum_units_from("dBJy"))
    assert first.name == "dBK"


def test_register_spectrum_unit_collides():
    reg = Registry()
    assert not reg.register_spectrum_unit("dBFS", 2.0, 1.0)
    reg.replace_spectrum_unit("dBFS", 2.0, 1.0)
    assert reg.spectrum_unit("dBFS").db_per_unit == 2.0
    assert reg.remove_spectrum_unit("dBFS")
    assert not reg.remove_spectrum_unit("dBFS")


# --- Profiles and devices ------------------------------------------------------

def test_profile_without_label_uses_null_label(make_config):
    reg = Registry()
    reg.replace_profile(make_config(None))
    assert reg.profile(NULL_PROFILE_LABEL) is not None


def test_register_profile_collides(make_config):
    reg = Registry()
    assert reg.register_profile(make_config("Airspy"))
    assert not reg.register_profile(make_config("Airspy"))
    assert [label for label, _ in reg.profiles()] == ["Airspy"]


def test_device_at_out_of_range_is_none():
    reg = Registry()
    reg.add_device(SourceDevice("RTL-SDR", "rtlsdr"))
    assert reg.device_at(0).driver == "rtlsdr"
    assert reg.device_at(1) is None
    assert reg.device_at(-1) is None


# --- Recent / UI config --------------------------------------------------------

def test_notify_recent_moves_to_head():
    reg = Registry()
    reg.load_recent(["a", "b", "a", "c"])
    assert reg.notify_recent("a")
    assert reg.recent() == ("a", "b", "c")
    assert not reg.notify_recent("d")
    assert reg.recent()[0] == "d"


def test_put_ui_config_grows_with_gaps():
    reg = Registry()
    reg.put_ui_config(2, {"zoom": 3})
    config = reg.ui_config()
    assert config[:2] == [None, None]
    assert config[2] == UIConfigEntry({"zoom": 3}, borrowed=False)
    assert reg.ui_config_at(5) is None


def test_move_ui_config_rekeys_entry_and_trims_gaps():
    reg = Registry()
    reg.put_ui_config(3, {"zoom": 3})
    reg.move_ui_config(3, 0)
    assert reg.ui_config() == [UIConfigEntry({"zoom": 3}, borrowed=False)]
    reg.move_ui_config(7, 1)
    assert len(reg.ui_config()) == 1


def test_put_ui_config_rejects_negative_position():
    with pytest.raises(ValueError):
        Registry().put_ui_config(-1, {})


# --- Read-only tables ----------------------------------------------------------

def test_have_palette():
    reg = Registry()
    reg.load_palettes([{"name": "Magma"}])
    assert reg.have_palette("Magma")
    assert not reg.have_palette("Viridis")
