"""Error Hierarchy — typed, categorized exceptions for all catalog failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Record-level errors (malformed, encode, persistence) are recoverable: callers
      log and skip the record, the surrounding pass continues
    - External library errors are critical and always reach the caller
    - Collisions and immutability violations are NOT exceptions — they are False returns

Design Decisions:
    - Single hierarchy with CatalogError base: one except clause covers every
      catalog failure the shell wants to contain
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    PERSISTENCE = "persistence"
    DATABASE = "database"
    EXTERNAL_LIBRARY = "external_library"
    LIFECYCLE = "lifecycle"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    context_name: str | None = None
    entity_key: str | None = None
    position: int | None = None
    subsystem: str | None = None
    debug_info: dict[str, Any] | None = None


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_dict(self) -> dict:
        """Convert to a JSON-safe error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "recoverable": self.recoverable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "context_name": self.context.context_name,
                    "entity_key": self.context.entity_key,
                    "position": self.context.position,
                    "subsystem": self.context.subsystem,
                },
            }
        }

    def log_extra(self) -> dict:
        """Structured fields for logger.*(..., extra=...)."""
        extra: dict[str, Any] = {"error_code": self.code}
        if self.context.context_name is not None:
            extra["context"] = self.context.context_name
        if self.context.entity_key is not None:
            extra["entity_key"] = self.context.entity_key
        if self.context.position is not None:
            extra["position"] = self.context.position
        if self.context.subsystem is not None:
            extra["subsystem"] = self.context.subsystem
        return extra


# ─── Record Errors (recoverable) ────────────────────────────────

class MalformedRecordError(CatalogError):
    """A stored record could not be decoded into its entity type."""
    def __init__(
        self, reason: str, context: ErrorContext | None = None,
        code: str = "MALFORMED_RECORD",
    ):
        super().__init__(
            f"Malformed record: {reason}",
            code, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context,
        )
        self.reason = reason


class TLEFormatError(MalformedRecordError):
    """Text is not a valid two- or three-line element set."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(f"invalid TLE ({reason})", context, code="TLE_FORMAT")


class RecordEncodeError(CatalogError):
    """An in-memory entity could not be serialized into a record."""
    def __init__(self, entity: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot encode {entity}: {reason}",
            "RECORD_ENCODE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context,
        )
        self.entity = entity


class PersistenceError(CatalogError):
    """A backing-store operation failed."""
    def __init__(
        self,
        message: str,
        operation: str,
        context: ErrorContext | None = None,
        code: str = "PERSISTENCE_ERROR",
        category: ErrorCategory = ErrorCategory.PERSISTENCE,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ):
        super().__init__(
            f"Store {operation} failed: {message}",
            code, category, severity, context,
        )
        self.operation = operation


class StorePositionError(PersistenceError):
    """Positional operation targeted a slot that does not exist."""
    def __init__(self, position: int, length: int, operation: str, context_name: str):
        super().__init__(
            f"position {position} out of range (length {length})", operation,
            ErrorContext(context_name=context_name, position=position),
            code="STORE_POSITION",
        )
        self.position = position


# ─── Infrastructure Errors (critical) ───────────────────────────

class DatabaseError(PersistenceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            message, operation, context,
            code="DATABASE_ERROR", category=ErrorCategory.DATABASE,
            severity=ErrorSeverity.CRITICAL,
        )


class LibraryError(CatalogError):
    """A call into the external signal-processing library failed."""
    def __init__(
        self, message: str, operation: str, context: ErrorContext | None = None,
        code: str = "LIBRARY_ERROR",
    ):
        super().__init__(
            f"Library {operation} failed: {message}",
            code, ErrorCategory.EXTERNAL_LIBRARY,
            ErrorSeverity.CRITICAL, context,
        )
        self.operation = operation


class DiscoveryError(LibraryError):
    """A discovery walk aborted before the library ran out of items."""
    def __init__(self, walk: str, message: str, context: ErrorContext | None = None):
        super().__init__(message, f"{walk} walk", context, code="DISCOVERY_ERROR")
        self.walk = walk


class LibraryInitError(LibraryError):
    """A subsystem initializer failed — the gate stays retryable."""
    def __init__(self, subsystem: str, message: str):
        super().__init__(
            message, f"{subsystem} initialization",
            ErrorContext(subsystem=subsystem), code="LIBRARY_INIT_FAILED",
        )
        self.subsystem = subsystem


class CatalogStateError(CatalogError):
    """Catalog used outside its open()/close() lifecycle."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CATALOG_STATE", ErrorCategory.LIFECYCLE,
            ErrorSeverity.ERROR, context,
        )
