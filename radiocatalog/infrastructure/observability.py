"""Structured Logging — JSON records carrying catalog context.

Invariants:
    - Every record has timestamp (taken from the record, UTC), level, logger, message
    - Catalog fields (CATALOG_FIELDS) are copied only when a call site set them
    - Text format appends the store context in brackets when present
    - setup_logging owns exactly one root handler, named "radiocatalog"

Design Decisions:
    - Hand-written JSONFormatter, no logging library: the catalog adds five
      fields and nothing else (ADR: a config layer should not pull in a logging stack)
    - Re-running setup_logging swaps the handler, so repeated open_catalog()
      calls never double every line
"""

import json
import logging
from datetime import datetime, timezone

HANDLER_NAME = "radiocatalog"

# Extras attached by catalog call sites via `extra={...}`.
CATALOG_FIELDS = ("context", "entity_key", "position", "subsystem", "error_code")


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name))
            for name in CATALOG_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable lines for development, tagged with the store context."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        return f"{line} [{context}]" if context else line


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the catalog handler on the root logger, replacing a previous one."""
    root = logging.getLogger()
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
