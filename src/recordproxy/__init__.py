"""
recordproxy - local CRUD proxy over a versioned, asynchronous object store.

Flat record sets and parent-linked trees share one proxy API; reads are
served from an identity-keyed cache where possible.
"""

__version__ = "0.1.0"

from recordproxy.core.errors import ConfigError, ProxyError, StorageError
from recordproxy.data import Field, Filter, Model, Operation, Record, ResultSet, Sorter
from recordproxy.proxy import LocalStoreProxy, ProxyConfig, Shape

__all__ = [
    "ConfigError",
    "Field",
    "Filter",
    "LocalStoreProxy",
    "Model",
    "Operation",
    "ProxyConfig",
    "ProxyError",
    "Record",
    "ResultSet",
    "Shape",
    "Sorter",
    "StorageError",
    "__version__",
]
