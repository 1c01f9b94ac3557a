"""TLE Directory — the on-disk folder of `*.tle` element-set files.

Invariants:
    - scan() reads the first element set of every `*.tle` file, in file-name order
    - An unreadable or unparseable file is logged and skipped
    - save() writes `<normalized name>.tle`, creating the directory if needed,
      and overwrites an existing file of the same name
"""

import logging
from pathlib import Path
from typing import Iterator

from radiocatalog.core.entities import Orbit
from radiocatalog.core.errors import ErrorContext, PersistenceError, TLEFormatError
from radiocatalog.core.tle import normalize_tle_name, parse_tle

logger = logging.getLogger(__name__)

TLE_SUFFIX = ".tle"


class TLEDirectory:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def file_for(self, name: str) -> Path:
        return self.path / f"{normalize_tle_name(name)}{TLE_SUFFIX}"

    def scan(self) -> Iterator[Orbit]:
        if not self.path.is_dir():
            logger.debug(f"TLE directory {self.path} does not exist")
            return
        for file in sorted(self.path.glob(f"*{TLE_SUFFIX}")):
            try:
                text = file.read_text(encoding="utf-8", errors="replace")
                yield parse_tle(text)
            except TLEFormatError as e:
                logger.warning(
                    f"Skipping {file.name}: {e.reason}",
                    extra={"entity_key": file.name, "error_code": e.code},
                )
            except OSError as e:
                logger.warning(
                    f"Cannot read {file.name}: {e}",
                    extra={"entity_key": file.name},
                )

    def save(self, orbit: Orbit) -> Path:
        target = self.file_for(orbit.name)
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            target.write_text(orbit.to_tle(), encoding="utf-8")
        except OSError as e:
            raise PersistenceError(
                str(e), "TLE write", ErrorContext(entity_key=orbit.name),
            ) from e
        logger.info(
            f"Saved TLE for {orbit.name} to {target}",
            extra={"entity_key": orbit.name},
        )
        return target
