"""Record Schemas — Pydantic models for the wire shape of stored records.

Invariants:
    - Unknown fields are ignored, never fatal
    - A record that fails validation is malformed as a whole (the codec skips it)
    - Bookmark band edges are all-or-nothing: modulation, low_freq_cut and
      high_freq_cut are kept only when all three are present
    - Field names match the store's historical layout (lat/lon/alt, low_freq_cut, ...)

Design Decisions:
    - Lax mode kept on purpose: frequency "1.0e8" and cut "1200" stored as strings still load
    - allow_inf_nan=False: a NaN coordinate is an encode failure, not a silent write
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LocationRecord(BaseModel):
    """Observer location — class "Location"."""
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    name: str = Field(min_length=1)
    country: str = ""
    lat: float = Field(0.0, ge=-90.0, le=90.0)
    lon: float = Field(0.0, ge=-180.0, le=180.0)
    alt: float = 0.0  # m

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("location name cannot be empty or whitespace")
        return v


class TLESourceRecord(BaseModel):
    """TLE download source — class "tle_source"."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    url: str = ""


class BookmarkRecord(BaseModel):
    """Frequency bookmark."""
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    name: str = Field(min_length=1)
    frequency: float = Field(ge=0.0)
    color: str = "#ffffff"
    modulation: str | None = None
    low_freq_cut: int | None = None
    high_freq_cut: int | None = None

    @model_validator(mode="after")
    def band_edges_all_or_nothing(self):
        if None in (self.modulation, self.low_freq_cut, self.high_freq_cut):
            self.modulation = None
            self.low_freq_cut = None
            self.high_freq_cut = None
        return self


class NamedRecord(BaseModel):
    """Any object record identified by a `name` field (palettes, presets, tables)."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
