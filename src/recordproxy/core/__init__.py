"""
recordproxy core primitives: errors, logging, settings, and the record cache.

These modules have no dependency on the storage engine or the proxy and
can be imported on their own.
"""

from recordproxy.core.cache import RecordCache
from recordproxy.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    DataError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MissingConfigError,
    ObjectStoreNotFoundError,
    ProxyError,
    StorageError,
    StorageUnsupportedError,
    VersionError,
)
from recordproxy.core.logging import configure_logging, get_logger
from recordproxy.core.settings import RecordProxySettings

__all__ = [
    "ConfigError",
    "DataError",
    "DatabaseConnectionError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "MissingConfigError",
    "ObjectStoreNotFoundError",
    "ProxyError",
    "RecordCache",
    "RecordProxySettings",
    "StorageError",
    "StorageUnsupportedError",
    "VersionError",
    "configure_logging",
    "get_logger",
]
