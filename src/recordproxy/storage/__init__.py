"""Storage layer: versioned object-store databases and per-store handles."""

from recordproxy.storage.engine import (
    Database,
    UpgradeTransaction,
    database_path,
    is_supported,
    open_database,
)
from recordproxy.storage.handle import StoreHandle

__all__ = [
    "Database",
    "StoreHandle",
    "UpgradeTransaction",
    "database_path",
    "is_supported",
    "open_database",
]
