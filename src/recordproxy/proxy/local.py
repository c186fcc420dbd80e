"""
Local store proxy: CRUD over a versioned object store with a record cache.

Manifesto:
    Callers want ``create / read / update / erase / clear`` against local,
    durable storage without caring how it is opened, versioned, or shaped.
    The proxy hides all of that behind one readiness gate:

    - **Gate first:** every entry point awaits the same one-shot
      initialization; nobody sees a half-open store
    - **Projection:** only persistable fields reach storage
    - **Cache:** every write and point read refreshes an identity-keyed
      cache; deletes evict
    - **Shape:** flat or hierarchical, fixed once known

Architecture:
    ::

        LocalStoreProxy(model, db_name=..., object_store_name=...)
            │
            ├── ReadinessGate ──► _initialize()
            │                       ├─ open_database(version, upgrade=drop+recreate)
            │                       └─ shape UNKNOWN → scan all, detect, warm cache
            │
            ├── create / update ──► set_record ──► StoreHandle.put + cache
            ├── read ──► HIERARCHICAL: build_tree
            │         └► FLAT: get_record(id) | run_query(sort, filter, page)
            ├── erase ──► remove_record (depth-first through child_nodes)
            └── clear ──► StoreHandle.clear + cache reset

Examples:
    >>> Search = Model("Search", ["id", "query"])
    >>> proxy = LocalStoreProxy(Search, db_name="twitter", object_store_name="searches")
    >>> await proxy.create(Operation("create", records=[Search.create({"query": "Ext JS"})]))
    >>> op = await proxy.read(Operation("read"))
    >>> [r.get("query") for r in op.result_set.records]
    ['Ext JS']

Guardrails:
    ❌ DON'T: Mutate the backing database through another path while a
       proxy is open (the cache will go stale)
    ✅ DO: Use one proxy per database/object store pair

    ❌ DON'T: Rely on ordering between concurrent create/erase calls on the
       same identity
    ✅ DO: Await one mutation before issuing a conflicting one
"""

from __future__ import annotations

import copy
import sqlite3
from pathlib import Path
from types import TracebackType
from typing import Any

from recordproxy.core.cache import RecordCache
from recordproxy.core.errors import StorageError, StorageUnsupportedError
from recordproxy.core.logging import get_logger
from recordproxy.core.settings import RecordProxySettings, get_settings
from recordproxy.data.model import Model, Record
from recordproxy.data.operation import Operation, ResultSet
from recordproxy.proxy.config import ProxyConfig
from recordproxy.proxy.gate import ReadinessGate
from recordproxy.proxy.hierarchy import build_tree
from recordproxy.proxy.query import run_query
from recordproxy.proxy.shape import Shape, detect_shape
from recordproxy.storage.engine import (
    Database,
    Key,
    UpgradeTransaction,
    database_path,
    is_supported,
    open_database,
)
from recordproxy.storage.handle import StoreHandle

logger = get_logger(__name__)

LOAD_FAILED_MESSAGE = "Unable to load records"


class LocalStoreProxy:
    """CRUD proxy over one object store of a local versioned database.

    Args:
        model: Record model; its ``id_property`` becomes the key path.
        config: Prebuilt configuration. When omitted, ``options`` are
            validated into a :class:`ProxyConfig`.
        settings: Process settings supplying the default data directory.
        **options: ``db_name``, ``object_store_name``, ``db_version``,
            ``is_hierarchical``, ``data_dir``.

    Raises:
        StorageUnsupportedError: If the SQLite library is too old.
        MissingConfigError: If ``db_name`` or ``object_store_name`` is missing.
        InvalidConfigError: If an option is invalid.
    """

    def __init__(
        self,
        model: Model,
        config: ProxyConfig | None = None,
        *,
        settings: RecordProxySettings | None = None,
        **options: Any,
    ):
        if not is_supported():
            raise StorageUnsupportedError(
                f"SQLite {sqlite3.sqlite_version} is not supported by this proxy."
            )

        self._config = config if config is not None else ProxyConfig.build(**options)
        self._model = model
        self._data_dir = self._config.data_dir or (settings or get_settings()).data_dir

        self._cache = RecordCache()
        self._shape = Shape.from_flag(self._config.is_hierarchical)
        self._key_path: str | None = None
        self._database: Database | None = None
        self._store: StoreHandle | None = None
        self._closed = False
        self._gate = ReadinessGate(self._initialize)

        self._log = logger.bind(
            database=self._config.db_name,
            object_store=self._config.object_store_name,
        )

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ProxyConfig:
        return self._config

    @property
    def model(self) -> Model:
        return self._model

    @property
    def cache(self) -> RecordCache:
        return self._cache

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def key_path(self) -> str | None:
        return self._key_path

    @property
    def db_path(self) -> Path:
        return database_path(self._data_dir, self._config.db_name)

    @property
    def is_ready(self) -> bool:
        return self._gate.is_ready

    # ------------------------------------------------------------------ #
    # Initialization
    # ------------------------------------------------------------------ #

    async def ensure_ready(self) -> None:
        """Wait until the store is open and the shape probe has finished."""
        await self._ready()

    async def _ready(self) -> StoreHandle:
        if self._closed:
            raise StorageError("Proxy has been closed").with_context(
                database=self._config.db_name,
                object_store=self._config.object_store_name,
            )
        await self._gate.wait()
        return self._store

    async def _initialize(self) -> None:
        self._key_path = self._model.id_property
        store_name = self._config.object_store_name

        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._database = await open_database(
            self.db_path,
            self._config.db_name,
            self._config.db_version,
            upgrade=self._upgrade,
        )
        if not await self._database.has_object_store(store_name):
            # Database already at this version but the collection was never created.
            await self._database.create_object_store(
                store_name, key_path=self._key_path, auto_increment=True
            )
        self._store = StoreHandle(self._database, store_name)
        self._log.info("store_opened", version=self._database.version, path=str(self.db_path))

        if self._shape is Shape.UNKNOWN:
            # No way to peek at a single entry, so read everything and keep it.
            payloads = await self._store.get_all()
            self._settle_shape(detect_shape(payloads), source="scan")
            for payload in payloads:
                self._cache.set(payload.get(self._key_path), payload)

    async def _upgrade(self, tx: UpgradeTransaction, old_version: int, new_version: int) -> None:
        store_name = self._config.object_store_name
        if await tx.contains(store_name):
            await tx.delete_object_store(store_name)
        await tx.create_object_store(store_name, key_path=self._key_path, auto_increment=True)

    def _settle_shape(self, shape: Shape, *, source: str) -> None:
        if self._shape is not Shape.UNKNOWN or shape is Shape.UNKNOWN:
            return
        self._shape = shape
        self._log.info("shape_detected", shape=shape.value, source=source)

    # ------------------------------------------------------------------ #
    # CRUD entry points
    # ------------------------------------------------------------------ #

    async def create(self, operation: Operation) -> Operation:
        await self._ready()
        records = operation.records

        if self._shape is Shape.UNKNOWN and records:
            # First point where tree-ness is visible when the store started empty.
            self._settle_shape(
                Shape.HIERARCHICAL if records[0].is_node else Shape.FLAT,
                source="create",
            )

        for record in records:
            record.phantom = False
            await self.set_record(record)
            record.commit()

        operation.set_successful()
        self._log.debug("records_created", count=len(records))
        return operation

    async def read(self, operation: Operation) -> Operation:
        store = await self._ready()
        creator = operation.record_creator or _default_creator
        total = await store.count()
        records: list[Record] = []
        success = True

        def materialize(data: dict[str, Any]) -> Record:
            return creator(data, self._model)

        if self._shape is Shape.HIERARCHICAL:
            roots = build_tree(await store.get_all(), self._key_path, materialize)
            if self._model.is_tree:
                # Top-level nodes sit under the implicit root at depth 1.
                root = self._model.create_root()
                for node in roots:
                    root.append_child(node)
            records.extend(roots)
        elif operation.id is not None:
            data = await self.get_record(operation.id)
            if data is None:
                success = False
            else:
                records.append(materialize(data))
        else:
            # Materialize first so sorters and filters can use the Record API.
            all_records = [materialize(data) for data in await store.get_all()]
            records.extend(
                run_query(
                    all_records,
                    sorters=operation.sorters,
                    filters=operation.filters,
                    start=operation.start,
                    limit=operation.limit,
                )
            )

        if success:
            operation.set_result_set(ResultSet(records=records, count=len(records), total=total))
            operation.set_successful()
            self._log.debug("records_read", count=len(records), total=total)
        else:
            operation.set_exception(LOAD_FAILED_MESSAGE, code="NOT_FOUND")
            self._log.debug("record_not_found", record_id=operation.id)

        return operation

    async def update(self, operation: Operation) -> Operation:
        await self._ready()

        for record in operation.records:
            await self.set_record(record)
            record.commit()

        operation.set_successful()
        self._log.debug("records_updated", count=len(operation.records))
        return operation

    async def erase(self, operation: Operation) -> Operation:
        await self._ready()
        removed: dict[Any, Record] = {}

        for record in operation.records:
            removed.update(await self.remove_record(record))

        operation.set_successful()
        self._log.debug("records_erased", count=len(removed))
        return operation

    async def clear(self) -> None:
        """Remove every record from the object store and empty the cache."""
        store = await self._ready()
        await store.clear()
        self._cache.clear()
        self._log.info("store_cleared")

    # ------------------------------------------------------------------ #
    # Record primitives
    # ------------------------------------------------------------------ #

    async def get_record(self, record_id: Key) -> dict[str, Any] | None:
        """Payload for ``record_id`` (cache first), or ``None``.

        Always returns a copy: Records take ownership of the dict they are
        built from and write defaults into it.
        """
        store = await self._ready()
        data = self._cache.get(record_id)

        if data is None:
            data = await store.get(record_id)
            if data is None:
                return None
            self._cache.set(record_id, data)

        return copy.deepcopy(data)

    async def set_record(self, record: Record) -> Key:
        """Persist the record's persistable fields and return its key."""
        store = await self._ready()
        raw = record.get_data()
        data = {f.name: raw.get(f.name) for f in self._model.persistent_fields()}

        # Direct children of the root never store a parent link.
        if record.is_node and record.depth == 1:
            data.pop("parentId", None)

        key = await store.put(data)
        record.set(self._key_path, key, commit=True)

        data[self._key_path] = key
        self._cache.set(key, copy.deepcopy(data))
        return key

    async def remove_record(self, record: Record) -> dict[Any, Record]:
        """Delete ``record`` and, for tree nodes, every descendant.

        Returns:
            Identity → removed record for the whole cascade.
        """
        store = await self._ready()
        record_id = record.get_id()
        removed = {record_id: record}

        if record_id is not None:
            await store.delete(record_id)
            self._cache.delete(record_id)

        for child in record.child_nodes or ():
            removed.update(await self.remove_record(child))

        return removed

    async def get_ids(self) -> list[Key]:
        store = await self._ready()
        return await store.get_all_keys()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def close(self) -> None:
        """Close the database connection. The proxy cannot be used afterwards."""
        if self._closed:
            return
        self._closed = True
        await self._gate.settle()
        if self._database is not None:
            await self._database.close()
            self._database = None
            self._store = None
        self._log.debug("store_closed")

    async def __aenter__(self) -> LocalStoreProxy:
        await self.ensure_ready()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"LocalStoreProxy({self._config.db_name!r}, {self._config.object_store_name!r}, "
            f"shape={self._shape.value})"
        )


def _default_creator(data: dict[str, Any], model: Model) -> Record:
    return model.create(data)


__all__ = ["LOAD_FAILED_MESSAGE", "LocalStoreProxy"]
