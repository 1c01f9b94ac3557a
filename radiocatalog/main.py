"""Radio Catalog — process entry point: settings, logging, database, catalog.

Invariants:
    - open_catalog() is the only place that wires infrastructure to services
    - Logging configured before the first catalog log record
    - The catalog is closed (and synced, per settings) and the engine disposed
      even when the body raises

Design Decisions:
    - Context manager over a global instance: mirrors a lifespan hook, cleanup
      is guaranteed (ADR: no import side effects)
"""

import logging
from contextlib import contextmanager
from functools import partial
from typing import Iterator

from radiocatalog.config import Settings, get_settings
from radiocatalog.core.store_protocols import SignalLibrary
from radiocatalog.infrastructure.database import DatabaseSessionManager
from radiocatalog.infrastructure.object_store import SqlObjectStore
from radiocatalog.infrastructure.observability import setup_logging
from radiocatalog.infrastructure.task_controller import BackgroundTaskController
from radiocatalog.services.catalog import Catalog

logger = logging.getLogger(__name__)


@contextmanager
def open_catalog(
    library: SignalLibrary, settings: Settings | None = None,
) -> Iterator[Catalog]:
    """Open a SQL-backed catalog for the lifetime of the `with` block."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        if settings.create_schema:
            db.create_schema()
        catalog = Catalog(
            SqlObjectStore(db),
            library,
            tle_directory=settings.tle_directory,
            task_controller_factory=partial(
                BackgroundTaskController, settings.background_workers,
            ),
        )
        catalog.open()
        try:
            logger.info(f"Catalog started (library {catalog.library_version()})")
            yield catalog
        finally:
            catalog.close(sync=settings.sync_on_close)
            logger.info("Catalog shut down")
    finally:
        db.dispose()
