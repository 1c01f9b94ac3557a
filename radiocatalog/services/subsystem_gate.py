"""Lazy Subsystem Gate — run each optional library initializer at most once.

Invariants:
    - UNINITIALIZED -> INITIALIZING -> READY | FAILED
    - FAILED -> INITIALIZING on the next ensure() (retry is allowed)
    - ensure() on a READY gate is a no-op and never calls the initializer
    - ensure() while INITIALIZING returns False instead of re-entering
    - A failing initializer leaves the gate FAILED and raises LibraryInitError
      chained to the original exception

Design Decisions:
    - Explicit state machine over a pair of booleans: FAILED is observable and retryable
    - Initializers are plain callables, so the sources gate can chain
      init + profile walk + device refresh without a subclass
"""

import logging
from typing import Callable

from radiocatalog.core.domain_types import GateState, Subsystem
from radiocatalog.core.errors import LibraryInitError
from radiocatalog.core.store_protocols import SignalLibrary
from radiocatalog.services.discovery import DiscoveryBridge

logger = logging.getLogger(__name__)


class SubsystemGate:
    """Lazy, retryable initializer for one library subsystem."""

    def __init__(self, subsystem: Subsystem, initializer: Callable[[], None]):
        self.subsystem = subsystem
        self._initializer = initializer
        self._state = GateState.UNINITIALIZED

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is GateState.READY

    def ensure(self) -> bool:
        """Initialize if needed. True once the subsystem is ready."""
        if self._state is GateState.READY:
            return True
        if self._state is GateState.INITIALIZING:
            logger.warning(
                f"Re-entrant initialization of {self.subsystem.value} ignored",
                extra={"subsystem": self.subsystem.value},
            )
            return False

        if self._state is GateState.FAILED:
            logger.info(
                f"Retrying {self.subsystem.value} initialization",
                extra={"subsystem": self.subsystem.value},
            )
        self._state = GateState.INITIALIZING
        try:
            self._initializer()
        except Exception as e:
            self._state = GateState.FAILED
            logger.error(
                f"{self.subsystem.value} initialization failed: {e}",
                extra={"subsystem": self.subsystem.value, "error_code": "LIBRARY_INIT_FAILED"},
            )
            raise LibraryInitError(self.subsystem.value, str(e)) from e

        self._state = GateState.READY
        logger.info(
            f"{self.subsystem.value} initialized",
            extra={"subsystem": self.subsystem.value},
        )
        return True


def build_gates(
    library: SignalLibrary, discovery: DiscoveryBridge,
) -> dict[Subsystem, SubsystemGate]:
    """One gate per subsystem, wired to the library's initializers."""

    def init_sources() -> None:
        library.init_sources()
        discovery.walk_profiles()
        discovery.refresh_devices()

    initializers: dict[Subsystem, Callable[[], None]] = {
        Subsystem.SOURCES: init_sources,
        Subsystem.ESTIMATORS: library.init_estimators,
        Subsystem.SPECTRUM_SOURCES: library.init_spectrum_sources,
        Subsystem.INSPECTORS: library.init_inspectors,
    }
    return {
        subsystem: SubsystemGate(subsystem, init)
        for subsystem, init in initializers.items()
    }
