"""Discovery Bridge — feed library walks into the registry.

Invariants:
    - Profiles upsert by label; network profiles upsert a clone (the library
      reuses its walk objects)
    - Devices are appended in walk order
    - refresh_* clears its collection first: the last completed walk wins
    - Any exception raised while walking surfaces as DiscoveryError, chained to
      the cause; entries consumed before the failure stay registered

Design Decisions:
    - Walks are plain iterables consumed with for-loops (no visitor callbacks)
    - Bridge holds no state of its own: the registry is the single source of truth
"""

import logging
from typing import Callable, Iterable, TypeVar

from radiocatalog.core.errors import DiscoveryError
from radiocatalog.core.registry import Registry
from radiocatalog.core.store_protocols import SignalLibrary

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DiscoveryBridge:
    """Turns library enumerations into registry entries."""

    def __init__(self, registry: Registry, library: SignalLibrary):
        self._registry = registry
        self._library = library

    def _consume(
        self, walk: str, items: Callable[[], Iterable[T]], sink: Callable[[T], None],
    ) -> int:
        count = 0
        try:
            for item in items():
                sink(item)
                count += 1
        except Exception as e:
            logger.error(
                f"{walk} walk aborted after {count} entries: {e}",
                extra={"error_code": "DISCOVERY_ERROR"},
            )
            raise DiscoveryError(walk, str(e)) from e
        logger.debug(f"{walk} walk yielded {count} entries")
        return count

    def walk_profiles(self) -> int:
        return self._consume(
            "source config",
            self._library.walk_source_configs,
            self._registry.replace_profile,
        )

    def walk_devices(self) -> int:
        return self._consume(
            "device", self._library.walk_devices, self._registry.add_device,
        )

    def walk_network_profiles(self) -> int:
        return self._consume(
            "remote profile",
            self._library.walk_remote_profiles,
            lambda config: self._registry.replace_network_profile(config.clone()),
        )

    def refresh_devices(self) -> int:
        """Replace the device list with a fresh walk."""
        self._registry.clear_devices()
        count = self.walk_devices()
        logger.info(f"Device list refreshed: {count} devices")
        return count

    def refresh_network_profiles(self) -> int:
        """Replace the network profile table with a fresh walk."""
        self._registry.clear_network_profiles()
        count = self.walk_network_profiles()
        logger.info(f"Network profiles refreshed: {count} profiles")
        return count

    def detect_devices(self) -> int:
        """Ask the library to probe for hardware, then refresh the device list."""
        try:
            self._library.detect_devices()
        except Exception as e:
            raise DiscoveryError("device detection", str(e)) from e
        return self.refresh_devices()
