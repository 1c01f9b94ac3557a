"""Background Task Controller — thread pool owned by an open catalog.

Invariants:
    - Created by Catalog.open(), shut down by Catalog.close()
    - submit() after shutdown raises CatalogStateError, never RuntimeError
    - shutdown() is idempotent

Design Decisions:
    - ThreadPoolExecutor with a named thread prefix: worker threads are easy to
      spot in dumps and log records
    - The catalog only owns the controller; callers submit their own jobs
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from radiocatalog.core.errors import CatalogStateError

logger = logging.getLogger(__name__)


class BackgroundTaskController:
    """Runs long jobs (downloads, device probes) off the control thread."""

    def __init__(self, max_workers: int = 2):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="catalog-bg",
        )
        self._closed = False
        logger.debug(f"Background task controller started ({max_workers} workers)")

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        if self._closed:
            raise CatalogStateError("background task controller is shut down")
        return self._executor.submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        logger.debug("Background task controller stopped")
