"""Entity Codecs — translate between stored records and catalog entities.

Invariants:
    - decode() raises MalformedRecordError, never a pydantic or type error
    - encode() raises RecordEncodeError, never a pydantic or type error
    - key() is the deduplication key used by the layered loader
    - decode() receives the record position; positional entities keep it as their slot

Design Decisions:
    - One small codec class per entity kind over a generic reflection codec:
      every wire quirk (alt in metres, band-edge trio, "class" tags) stays explicit
    - Validation delegated to schemas/records.py (Pydantic) so decode and encode
      enforce the same bounds
"""

import copy
from typing import Any, Hashable, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from radiocatalog.core.domain_types import At, Frequency
from radiocatalog.core.entities import (
    Bookmark, BookmarkInfo, Location, TLESource, UIConfigEntry,
)
from radiocatalog.core.errors import (
    ErrorContext, MalformedRecordError, RecordEncodeError,
)
from radiocatalog.core.store_protocols import Record
from radiocatalog.schemas.records import (
    BookmarkRecord, LocationRecord, NamedRecord, TLESourceRecord,
)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

LOCATION_CLASS = "Location"
TLE_SOURCE_CLASS = "tle_source"


class EntityCodec(Protocol[T]):
    """Per-entity record codec."""
    entity: str

    def key(self, value: T, position: int) -> Hashable: ...
    def decode(self, record: Record, position: int) -> T: ...
    def encode(self, value: T) -> Record: ...


def describe_validation_error(exc: ValidationError) -> str:
    """Compact one-line summary of a pydantic ValidationError."""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in e['loc']) or '<record>'}: {e['msg']}"
        for e in exc.errors()
    )


def _require_object(record: Record, entity: str, position: int) -> dict[str, Any]:
    if not isinstance(record, dict):
        raise MalformedRecordError(
            f"{entity} record is a {type(record).__name__}, expected an object",
            ErrorContext(position=position),
        )
    return record


def _validate(model: type[M], data: Any, entity: str, position: int) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedRecordError(
            f"{entity}: {describe_validation_error(e)}",
            ErrorContext(position=position),
        ) from e


def _build(model: type[M], entity: str, key: str, **fields: Any) -> M:
    try:
        return model(**fields)
    except ValidationError as e:
        raise RecordEncodeError(
            entity, describe_validation_error(e), ErrorContext(entity_key=key),
        ) from e


class LocationCodec:
    entity = "location"

    def key(self, value: Location, position: int) -> Hashable:
        return value.name

    def decode(self, record: Record, position: int) -> Location:
        data = _require_object(record, self.entity, position)
        rec = _validate(LocationRecord, data, self.entity, position)
        return Location(
            name=rec.name, country=rec.country,
            latitude=rec.lat, longitude=rec.lon, altitude=rec.alt,
        )

    def encode(self, value: Location) -> Record:
        rec = _build(
            LocationRecord, self.entity, value.name,
            name=value.name, country=value.country,
            lat=value.latitude, lon=value.longitude, alt=value.altitude,
        )
        return {"class": LOCATION_CLASS, **rec.model_dump()}


class TLESourceCodec:
    entity = "tle_source"

    def key(self, value: TLESource, position: int) -> Hashable:
        return value.name

    def decode(self, record: Record, position: int) -> TLESource:
        data = _require_object(record, self.entity, position)
        rec = _validate(TLESourceRecord, data, self.entity, position)
        return TLESource(name=rec.name, url=rec.url)

    def encode(self, value: TLESource) -> Record:
        rec = _build(
            TLESourceRecord, self.entity, value.name,
            name=value.name, url=value.url,
        )
        return {"class": TLE_SOURCE_CLASS, **rec.model_dump()}


class BookmarkCodec:
    entity = "bookmark"

    def key(self, value: Bookmark, position: int) -> Hashable:
        return value.frequency

    def decode(self, record: Record, position: int) -> Bookmark:
        data = _require_object(record, self.entity, position)
        rec = _validate(BookmarkRecord, data, self.entity, position)
        info = BookmarkInfo(
            name=rec.name,
            frequency=Frequency(int(rec.frequency)),
            color=rec.color,
            modulation=rec.modulation,
            low_freq_cut=rec.low_freq_cut,
            high_freq_cut=rec.high_freq_cut,
        )
        return Bookmark(info=info, slot=At(position))

    def encode(self, value: Bookmark) -> Record:
        info = value.info
        rec = _build(
            BookmarkRecord, self.entity, str(info.frequency),
            name=info.name, frequency=info.frequency, color=info.color,
            modulation=info.modulation,
            low_freq_cut=info.low_freq_cut, high_freq_cut=info.high_freq_cut,
        )
        return rec.model_dump(exclude_none=True)


class NamedRecordCodec:
    """Palettes, auto-gain presets and frequency allocation tables."""

    def __init__(self, entity: str):
        self.entity = entity

    def key(self, value: dict, position: int) -> Hashable:
        return value["name"]

    def decode(self, record: Record, position: int) -> dict:
        data = _require_object(record, self.entity, position)
        _validate(NamedRecord, data, self.entity, position)
        return copy.deepcopy(data)

    def encode(self, value: dict) -> Record:
        return copy.deepcopy(value)


class RecentCodec:
    """Most-recently-used profile labels, stored as bare fields."""
    entity = "recent"

    def key(self, value: str, position: int) -> Hashable:
        return value

    def decode(self, record: Record, position: int) -> str:
        if not isinstance(record, str):
            raise MalformedRecordError(
                "recent entry is not a field", ErrorContext(position=position),
            )
        return record

    def encode(self, value: str) -> Record:
        return value


class UIConfigCodec:
    """Widget state records, kept verbatim and keyed by position."""
    entity = "ui_config"

    def key(self, value: UIConfigEntry, position: int) -> Hashable:
        return position

    def decode(self, record: Record, position: int) -> UIConfigEntry:
        data = _require_object(record, self.entity, position)
        return UIConfigEntry(record=copy.deepcopy(data), borrowed=True)

    def encode(self, value: UIConfigEntry) -> Record:
        return copy.deepcopy(value.record)
