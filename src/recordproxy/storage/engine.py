"""
Versioned object-store database over SQLite (aiosqlite).

Manifesto:
    The proxy needs a small, asynchronous, transactional key-value store
    with named collections ("object stores") inside a named, versioned
    database. SQLite gives durability and transactions; aiosqlite keeps
    every call off the event loop. This module shapes SQLite into that
    contract and nothing more.

Architecture:
    ::

        <data_dir>/<db_name>.sqlite3
        ├── PRAGMA user_version            ← database version
        ├── _object_stores                 ← name, key_path, auto_increment,
        │                                    current_key (key generator)
        └── "store:<name>" (key, value)    ← one table per object store,
                                             value is a JSON document

        db = await open_database(path, "twitter", 2, upgrade=upgrade)
            └─ version > user_version → upgrade(tx, old, new) inside one
               immediate transaction, then user_version = new

        await db.put("searches", {"query": "Ext JS"})  → 1
        await db.get("searches", 1)                    → {"id": 1, "query": "Ext JS"}

Features:
    - Async open with upgrade callback, lower versions rejected
    - Key generator: missing keys get ``current_key + 1``; explicit
      numeric keys above the generator advance it
    - Reads ordered by key (numbers before strings)
    - Writes sequenced by one ``asyncio.Lock`` per database

Guardrails:
    ❌ DON'T: Share one Database between event loops
    ✅ DO: Open one Database per proxy and close it when done
"""

from __future__ import annotations

import asyncio
import json
import math
import sqlite3
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiosqlite

from recordproxy.core.errors import (
    DatabaseConnectionError,
    DataError,
    InvalidConfigError,
    ObjectStoreNotFoundError,
    StorageError,
    VersionError,
)
from recordproxy.core.logging import get_logger

logger = get_logger(__name__)

Key = int | float | str

# UPSERT (INSERT ... ON CONFLICT DO UPDATE) landed in SQLite 3.24.
SQLITE_MIN_VERSION = (3, 24, 0)

_META_DDL = """
CREATE TABLE IF NOT EXISTS _object_stores (
    name TEXT PRIMARY KEY,
    key_path TEXT NOT NULL,
    auto_increment INTEGER NOT NULL DEFAULT 0,
    current_key INTEGER NOT NULL DEFAULT 0
)
"""

UpgradeCallback = Callable[["UpgradeTransaction", int, int], Awaitable[None]]


def is_supported() -> bool:
    """Return True when the linked SQLite library can back an object store."""
    return sqlite3.sqlite_version_info >= SQLITE_MIN_VERSION


def database_path(directory: str | Path, name: str) -> Path:
    """Location of the database file for ``name`` under ``directory``."""
    return Path(directory) / f"{name}.sqlite3"


@dataclass(frozen=True)
class _StoreMeta:
    name: str
    key_path: str
    auto_increment: bool
    current_key: int


def _table(store: str) -> str:
    quoted = f"store:{store}".replace('"', '""')
    return f'"{quoted}"'


def _validate_key(key: Any) -> Key:
    if isinstance(key, bool) or not isinstance(key, int | float | str):
        raise DataError(f"Invalid key {key!r}: keys must be numbers or strings")
    if isinstance(key, float) and math.isnan(key):
        raise DataError("Invalid key: NaN")
    return key


def _dumps(value: dict[str, Any]) -> str:
    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise DataError(f"Value is not serializable: {e}", cause=e) from e


def _loads(raw: str) -> dict[str, Any]:
    return json.loads(raw)


async def _fetch_meta(conn: aiosqlite.Connection, store: str) -> _StoreMeta | None:
    async with conn.execute(
        "SELECT name, key_path, auto_increment, current_key FROM _object_stores WHERE name = ?",
        (store,),
    ) as cursor:
        row = await cursor.fetchone()
    if row is None:
        return None
    return _StoreMeta(row[0], row[1], bool(row[2]), row[3])


async def _list_stores(conn: aiosqlite.Connection) -> list[str]:
    async with conn.execute("SELECT name FROM _object_stores ORDER BY name") as cursor:
        rows = await cursor.fetchall()
    return [row[0] for row in rows]


async def _create_store(
    conn: aiosqlite.Connection, name: str, key_path: str, auto_increment: bool
) -> None:
    if await _fetch_meta(conn, name) is not None:
        raise StorageError(f"Object store already exists: {name}").with_context(object_store=name)
    await conn.execute(
        "INSERT INTO _object_stores (name, key_path, auto_increment) VALUES (?, ?, ?)",
        (name, key_path, int(auto_increment)),
    )
    await conn.execute(f"CREATE TABLE {_table(name)} (key NOT NULL PRIMARY KEY, value TEXT NOT NULL)")


async def _drop_store(conn: aiosqlite.Connection, name: str) -> None:
    if await _fetch_meta(conn, name) is None:
        raise ObjectStoreNotFoundError(name)
    await conn.execute("DELETE FROM _object_stores WHERE name = ?", (name,))
    await conn.execute(f"DROP TABLE IF EXISTS {_table(name)}")


class UpgradeTransaction:
    """Schema view handed to the upgrade callback.

    Every call runs inside the immediate transaction opened by
    :func:`open_database`; nothing is committed until the callback returns.
    """

    def __init__(self, conn: aiosqlite.Connection, old_version: int, new_version: int):
        self._conn = conn
        self.old_version = old_version
        self.new_version = new_version

    async def object_store_names(self) -> list[str]:
        return await _list_stores(self._conn)

    async def contains(self, name: str) -> bool:
        return await _fetch_meta(self._conn, name) is not None

    async def create_object_store(
        self, name: str, *, key_path: str, auto_increment: bool = False
    ) -> None:
        await _create_store(self._conn, name, key_path, auto_increment)

    async def delete_object_store(self, name: str) -> None:
        await _drop_store(self._conn, name)


class Database:
    """An open, versioned database holding named object stores.

    Obtain instances through :func:`open_database`.
    """

    def __init__(self, conn: aiosqlite.Connection, name: str, version: int):
        self._conn = conn
        self._lock = asyncio.Lock()
        self.name = name
        self.version = version

    @asynccontextmanager
    async def _guard(self, action: str, store: str | None = None) -> AsyncIterator[None]:
        try:
            yield
        except aiosqlite.Error as e:
            if self._conn.in_transaction:
                await self._conn.rollback()
            raise StorageError(
                f"{action} failed on {self.name}/{store}: {e}", cause=e
            ).with_context(database=self.name, object_store=store, operation=action) from e

    async def _meta(self, store: str) -> _StoreMeta:
        meta = await _fetch_meta(self._conn, store)
        if meta is None:
            raise ObjectStoreNotFoundError(store).with_context(database=self.name)
        return meta

    # ------------------------------------------------------------------ #
    # Schema
    # ------------------------------------------------------------------ #

    async def object_store_names(self) -> list[str]:
        async with self._guard("object_store_names"):
            return await _list_stores(self._conn)

    async def has_object_store(self, name: str) -> bool:
        async with self._guard("has_object_store", name):
            return await _fetch_meta(self._conn, name) is not None

    async def key_path(self, store: str) -> str:
        async with self._guard("key_path", store):
            return (await self._meta(store)).key_path

    async def create_object_store(
        self, name: str, *, key_path: str, auto_increment: bool = False
    ) -> None:
        """Create an object store outside of an upgrade."""
        async with self._lock, self._guard("create_object_store", name):
            await _create_store(self._conn, name, key_path, auto_increment)
            await self._conn.commit()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get(self, store: str, key: Key) -> dict[str, Any] | None:
        async with self._guard("get", store):
            await self._meta(store)
            async with self._conn.execute(
                f"SELECT value FROM {_table(store)} WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        return _loads(row[0]) if row else None

    async def get_all(self, store: str) -> list[dict[str, Any]]:
        async with self._guard("get_all", store):
            await self._meta(store)
            async with self._conn.execute(
                f"SELECT value FROM {_table(store)} ORDER BY key"
            ) as cursor:
                rows = await cursor.fetchall()
        return [_loads(row[0]) for row in rows]

    async def get_all_keys(self, store: str) -> list[Key]:
        async with self._guard("get_all_keys", store):
            await self._meta(store)
            async with self._conn.execute(
                f"SELECT key FROM {_table(store)} ORDER BY key"
            ) as cursor:
                rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def count(self, store: str) -> int:
        async with self._guard("count", store):
            await self._meta(store)
            async with self._conn.execute(f"SELECT COUNT(*) FROM {_table(store)}") as cursor:
                row = await cursor.fetchone()
        return row[0]

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def put(self, store: str, value: dict[str, Any]) -> Key:
        """Insert or replace ``value`` and return its key.

        A value without a key gets the next generated key, which is also
        written into the stored document under the key path.
        """
        async with self._lock, self._guard("put", store):
            meta = await self._meta(store)
            document = dict(value)
            key = document.get(meta.key_path)
            if key is None:
                if not meta.auto_increment:
                    raise DataError(
                        f"Object store {store!r} has no key generator and value has no {meta.key_path!r}"
                    )
                key = meta.current_key + 1
                document[meta.key_path] = key
            key = _validate_key(key)
            payload = _dumps(document)

            if meta.auto_increment and not isinstance(key, str) and key > meta.current_key:
                await self._conn.execute(
                    "UPDATE _object_stores SET current_key = ? WHERE name = ?",
                    (math.floor(key), store),
                )
            await self._conn.execute(
                f"INSERT INTO {_table(store)} (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, payload),
            )
            await self._conn.commit()
        return key

    async def delete(self, store: str, key: Key) -> None:
        async with self._lock, self._guard("delete", store):
            await self._meta(store)
            await self._conn.execute(f"DELETE FROM {_table(store)} WHERE key = ?", (key,))
            await self._conn.commit()

    async def clear(self, store: str) -> None:
        """Remove every record; the key generator is left untouched."""
        async with self._lock, self._guard("clear", store):
            await self._meta(store)
            await self._conn.execute(f"DELETE FROM {_table(store)}")
            await self._conn.commit()

    async def close(self) -> None:
        await self._conn.close()


async def open_database(
    path: str | Path,
    name: str,
    version: int | None = None,
    *,
    upgrade: UpgradeCallback | None = None,
) -> Database:
    """Open (creating if needed) the database file at ``path``.

    Args:
        path: Database file location (see :func:`database_path`).
        name: Logical database name, used in logs and errors.
        version: Requested version. ``None`` opens at the stored version.
        upgrade: Awaited as ``upgrade(tx, old_version, new_version)`` when
            ``version`` is above the stored version.

    Raises:
        InvalidConfigError: If ``version`` is negative.
        VersionError: If ``version`` is below the stored version.
        DatabaseConnectionError: If SQLite cannot open or upgrade the file.
    """
    if version is not None and (isinstance(version, bool) or version < 0):
        raise InvalidConfigError("db_version", version)

    try:
        conn = await aiosqlite.connect(str(path))
    except aiosqlite.Error as e:
        raise DatabaseConnectionError(
            f"Failed to open database {name!r}: {e}", cause=e
        ).with_context(database=name) from e

    try:
        await conn.execute("BEGIN IMMEDIATE")
        await conn.execute(_META_DDL)
        async with conn.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
        current = row[0]

        if version is not None and version < current:
            raise VersionError(name, version, current)

        opened_at = current
        if version is not None and version > current:
            if upgrade is not None:
                await upgrade(UpgradeTransaction(conn, current, version), current, version)
            await conn.execute(f"PRAGMA user_version = {int(version)}")
            opened_at = version
            logger.info("store_upgraded", database=name, old_version=current, new_version=version)

        await conn.commit()
    except Exception as e:
        await conn.rollback()
        await conn.close()
        if isinstance(e, aiosqlite.Error):
            raise DatabaseConnectionError(
                f"Failed to open database {name!r}: {e}", cause=e
            ).with_context(database=name) from e
        raise

    return Database(conn, name, opened_at)


__all__ = [
    "Database",
    "Key",
    "SQLITE_MIN_VERSION",
    "UpgradeCallback",
    "UpgradeTransaction",
    "database_path",
    "is_supported",
    "open_database",
]
