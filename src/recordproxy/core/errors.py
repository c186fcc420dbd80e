"""
Structured error types for recordproxy.

Provides a small hierarchy of typed errors carrying a category, structured
context, and an optional chained cause. Nothing in the proxy retries; an
error either reaches the caller or is reported on the operation.

Manifesto:
    - **Typed Error Hierarchy:** Configuration, storage, and data errors
      are distinct types so callers can react to each
    - **Rich Context:** Errors carry database/object store/record metadata
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        ProxyError                            │
        │  (category, context, cause)                                  │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigError            StorageError        DatabaseConnec-  │
        │  (CONFIG)               (STORAGE)           tionError        │
        │       │                      │                   │           │
        │  MissingConfigError     VersionError        (DATABASE)       │
        │  InvalidConfigError     ObjectStoreNot-                      │
        │  StorageUnsupported-    FoundError                           │
        │  Error                  DataError                            │
        └─────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Catch storage errors inside the CRUD pipeline
    ✅ DO: Let them propagate to the caller with the cause chained

    ❌ DON'T: Raise for a missing record on read
    ✅ DO: Report it on the operation (``Operation.set_exception``)

Usage:
    from recordproxy.core.errors import StorageError

    try:
        await conn.execute(sql, params)
    except sqlite3.Error as e:
        raise StorageError("put failed", cause=e).with_context(object_store="searches")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        DATABASE: Connection or open failures
        STORAGE: Object store reads/writes, versioning
        VALIDATION: Invalid keys or values
        CONFIG: Missing config, invalid settings, unsupported engine
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    DATABASE = "DATABASE"         # Connection, open failures
    STORAGE = "STORAGE"           # Object store I/O, versioning
    VALIDATION = "VALIDATION"     # Key/value constraint violations
    CONFIG = "CONFIG"             # Missing config, invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        database: Name of the database being accessed
        object_store: Name of the object store (collection)
        record_id: Identity of the record involved
        operation: Proxy operation (create, read, update, destroy, clear)
        metadata: Additional key-value pairs
    """

    database: str | None = None
    object_store: str | None = None
    record_id: Any = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["database", "object_store", "record_id", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value

        if self.metadata:
            result.update(self.metadata)

        return result


class ProxyError(Exception):
    """
    Base exception for all recordproxy errors.

    Subclasses set ``default_category`` to give a sensible default for
    their domain.

    Examples:
        >>> error = ProxyError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(database="twitter").context.database
        'twitter'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ProxyError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StorageError("Failed").with_context(
                database="twitter",
                object_store="searches",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }

        if self.context:
            context_dict = self.context.to_dict()
            if context_dict:
                result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONNECTION ERRORS
# =============================================================================


class DatabaseConnectionError(ProxyError):
    """Database file could not be opened or connected."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ProxyError):
    """
    Configuration error.

    Raised synchronously at construction; the configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


class StorageUnsupportedError(ConfigError):
    """The storage engine is not usable in this environment."""


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageError(ProxyError):
    """
    Object store read/write failure.

    Propagates to the caller unchanged; the proxy never retries it.
    """

    default_category = ErrorCategory.STORAGE

class VersionError(StorageError):
    """Requested database version is lower than the stored one."""

    def __init__(self, name: str, requested: int, current: int):
        self.requested = requested
        self.current = current
        super().__init__(
            f"Database {name!r} is at version {current}, cannot open at version {requested}"
        )
        self.with_context(database=name)


class ObjectStoreNotFoundError(StorageError):
    """Named object store does not exist in the database."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Object store not found: {name}")
        self.with_context(object_store=name)


class DataError(StorageError):
    """Key or value cannot be stored."""

    default_category = ErrorCategory.VALIDATION


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ProxyError",
    "DatabaseConnectionError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "StorageUnsupportedError",
    "StorageError",
    "VersionError",
    "ObjectStoreNotFoundError",
    "DataError",
]
