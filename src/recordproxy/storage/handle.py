"""Store handle scoped to a single object store.

The proxy never passes store names around; it holds one ``StoreHandle``
bound to its database and collection.
"""

from __future__ import annotations

from typing import Any

from recordproxy.storage.engine import Database, Key


class StoreHandle:
    """Thin async wrapper around one object store of an open :class:`Database`."""

    def __init__(self, database: Database, store_name: str):
        self._database = database
        self.store_name = store_name

    @property
    def database(self) -> Database:
        return self._database

    async def get(self, key: Key) -> dict[str, Any] | None:
        return await self._database.get(self.store_name, key)

    async def get_all(self) -> list[dict[str, Any]]:
        return await self._database.get_all(self.store_name)

    async def get_all_keys(self) -> list[Key]:
        return await self._database.get_all_keys(self.store_name)

    async def count(self) -> int:
        return await self._database.count(self.store_name)

    async def put(self, value: dict[str, Any]) -> Key:
        return await self._database.put(self.store_name, value)

    async def delete(self, key: Key) -> None:
        await self._database.delete(self.store_name, key)

    async def clear(self) -> None:
        await self._database.clear(self.store_name)

    def __repr__(self) -> str:
        return f"StoreHandle({self._database.name!r}, {self.store_name!r})"


__all__ = ["StoreHandle"]
