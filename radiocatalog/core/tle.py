"""TLE Parsing — read NORAD two-line element sets into Orbit entities.

Invariants:
    - Accepts 2-line (no name) and 3-line (name first) sets; a leading "0 " on
      the name line is dropped
    - Line 1 starts with "1 ", line 2 with "2 ", both at least 69 columns,
      both carry the same catalog number and a valid mod-10 checksum
    - Any violation raises TLEFormatError
    - Only fixed-column fields are read; propagation is out of scope

Design Decisions:
    - Pure functions, no IO: file scanning lives in infrastructure/tle_directory.py
    - Column slices follow the CelesTrak format definition (1-based columns in comments)
"""

import re
from datetime import datetime, timedelta, timezone

from radiocatalog.core.entities import Orbit
from radiocatalog.core.errors import TLEFormatError

TLE_LINE_LENGTH = 69

_UNSAFE_NAME_CHARS = re.compile(r"[^-a-zA-Z0-9()]")


def normalize_tle_name(name: str) -> str:
    """File-system safe satellite name: trims, then maps every char outside [-a-zA-Z0-9()] to '_'."""
    return _UNSAFE_NAME_CHARS.sub("_", name.strip())


def tle_checksum(line: str) -> int:
    """Mod-10 checksum over columns 1-68: digits count as themselves, '-' as 1."""
    total = 0
    for ch in line[:68]:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1
    return total % 10


def _check_line(line: str, number: str) -> None:
    if not line.startswith(f"{number} "):
        raise TLEFormatError(f"line {number} must start with '{number} '")
    if len(line) < TLE_LINE_LENGTH:
        raise TLEFormatError(
            f"line {number} has {len(line)} columns, expected {TLE_LINE_LENGTH}"
        )
    if not line[68].isdigit() or int(line[68]) != tle_checksum(line):
        raise TLEFormatError(f"line {number} checksum mismatch")


def _implied_decimal(field: str) -> float:
    return float(f"0.{field.strip()}")


def _epoch(field: str) -> datetime:
    # Columns 19-32: two-digit year, fractional day of year (day 1.0 = Jan 1 00:00).
    year = int(field[:2])
    year += 2000 if year < 57 else 1900
    day = float(field[2:])
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day - 1.0)


def parse_tle(text: str) -> Orbit:
    """Parse the first element set found in `text`."""
    lines = [ln.rstrip() for ln in text.strip().splitlines() if ln.strip()]
    if len(lines) < 2:
        raise TLEFormatError("need at least two lines")

    if lines[0].startswith("1 ") and lines[1].startswith("2 "):
        name_line, line1, line2 = None, lines[0], lines[1]
    elif len(lines) >= 3:
        name_line, line1, line2 = lines[0], lines[1], lines[2]
    else:
        raise TLEFormatError("element lines not found")

    _check_line(line1, "1")
    _check_line(line2, "2")

    catalog_number = line1[2:7].strip()
    if catalog_number != line2[2:7].strip():
        raise TLEFormatError("catalog numbers of line 1 and line 2 differ")

    if name_line is None:
        name = catalog_number
    else:
        name = name_line[2:] if name_line.startswith("0 ") else name_line
        name = name.strip() or catalog_number

    try:
        return Orbit(
            name=name,
            catalog_number=int(catalog_number),
            classification=line1[7],
            international_designator=line1[9:17].strip(),
            epoch=_epoch(line1[18:32]),
            inclination=float(line2[8:16]),
            right_ascension=float(line2[17:25]),
            eccentricity=_implied_decimal(line2[26:33]),
            argument_of_perigee=float(line2[34:42]),
            mean_anomaly=float(line2[43:51]),
            mean_motion=float(line2[52:63]),
            revolution_number=int(line2[63:68].strip() or 0),
            line1=line1,
            line2=line2,
        )
    except ValueError as e:
        raise TLEFormatError(f"bad numeric field ({e})") from e
