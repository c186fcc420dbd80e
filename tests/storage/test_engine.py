"""
Tests for the SQLite-backed object store engine.

Covers:
- open/upgrade/version semantics
- key generator
- ordered reads
- error mapping
"""

import pytest

from recordproxy.core.errors import (
    DataError,
    InvalidConfigError,
    ObjectStoreNotFoundError,
    StorageError,
    VersionError,
)
from recordproxy.storage.engine import database_path, is_supported, open_database


async def _create_searches(tx, old_version, new_version):
    await tx.create_object_store("searches", key_path="id", auto_increment=True)


class TestSupport:
    def test_is_supported(self):
        assert is_supported() is True

    def test_database_path(self, tmp_path):
        assert database_path(tmp_path, "twitter") == tmp_path / "twitter.sqlite3"


class TestOpenDatabase:
    """Versioned open and upgrade."""

    @pytest.mark.asyncio
    async def test_fresh_database_runs_upgrade(self, tmp_path):
        calls = []

        async def upgrade(tx, old_version, new_version):
            calls.append((old_version, new_version))
            await _create_searches(tx, old_version, new_version)

        db = await open_database(tmp_path / "t.sqlite3", "twitter", 1, upgrade=upgrade)
        try:
            assert db.version == 1
            assert calls == [(0, 1)]
            assert await db.object_store_names() == ["searches"]
            assert await db.key_path("searches") == "id"
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_same_version_skips_upgrade(self, tmp_path):
        path = tmp_path / "t.sqlite3"
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        await db.close()

        calls = []

        async def upgrade(tx, old_version, new_version):
            calls.append(old_version)

        db = await open_database(path, "twitter", 1, upgrade=upgrade)
        try:
            assert calls == []
            assert await db.has_object_store("searches")
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_none_version_opens_at_stored_version(self, tmp_path):
        path = tmp_path / "t.sqlite3"
        db = await open_database(path, "twitter", 3, upgrade=_create_searches)
        await db.close()

        db = await open_database(path, "twitter")
        try:
            assert db.version == 3
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_lower_version_rejected(self, tmp_path):
        path = tmp_path / "t.sqlite3"
        db = await open_database(path, "twitter", 2, upgrade=_create_searches)
        await db.close()

        with pytest.raises(VersionError) as exc_info:
            await open_database(path, "twitter", 1)
        assert exc_info.value.current == 2
        assert exc_info.value.requested == 1

    @pytest.mark.asyncio
    async def test_negative_version_rejected(self, tmp_path):
        with pytest.raises(InvalidConfigError):
            await open_database(tmp_path / "t.sqlite3", "twitter", -1)

    @pytest.mark.asyncio
    async def test_failed_upgrade_rolls_back(self, tmp_path):
        path = tmp_path / "t.sqlite3"

        async def broken(tx, old_version, new_version):
            await tx.create_object_store("searches", key_path="id")
            raise RuntimeError("upgrade failed")

        with pytest.raises(RuntimeError, match="upgrade failed"):
            await open_database(path, "twitter", 1, upgrade=broken)

        db = await open_database(path, "twitter")
        try:
            assert db.version == 0
            assert await db.object_store_names() == []
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_upgrade_can_drop_and_recreate(self, tmp_path):
        path = tmp_path / "t.sqlite3"
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        await db.put("searches", {"query": "Ext JS"})
        await db.close()

        async def recreate(tx, old_version, new_version):
            assert await tx.contains("searches")
            await tx.delete_object_store("searches")
            await tx.create_object_store("searches", key_path="id", auto_increment=True)

        db = await open_database(path, "twitter", 2, upgrade=recreate)
        try:
            assert await db.count("searches") == 0
            assert await db.put("searches", {"query": "again"}) == 1
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_duplicate_store_rejected(self, tmp_path):
        async def twice(tx, old_version, new_version):
            await tx.create_object_store("searches", key_path="id")
            await tx.create_object_store("searches", key_path="id")

        with pytest.raises(StorageError, match="already exists"):
            await open_database(tmp_path / "t.sqlite3", "twitter", 1, upgrade=twice)


class TestDatabaseIO:
    """Reads and writes on an open database."""

    @pytest.fixture
    def path(self, tmp_path):
        return tmp_path / "io.sqlite3"

    @pytest.mark.asyncio
    async def test_put_generates_keys(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            assert await db.put("searches", {"query": "a"}) == 1
            assert await db.put("searches", {"query": "b"}) == 2
            assert await db.get("searches", 2) == {"query": "b", "id": 2}
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_explicit_key_advances_generator(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            assert await db.put("searches", {"id": 10, "query": "a"}) == 10
            assert await db.put("searches", {"query": "b"}) == 11
            assert await db.put("searches", {"id": "abc", "query": "c"}) == "abc"
            assert await db.put("searches", {"query": "d"}) == 12
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_put_replaces(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            key = await db.put("searches", {"query": "a"})
            await db.put("searches", {"id": key, "query": "changed"})
            assert await db.count("searches") == 1
            assert (await db.get("searches", key))["query"] == "changed"
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_reads_ordered_by_key(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            for key in ["b", 3, "a", 1]:
                await db.put("searches", {"id": key})
            assert await db.get_all_keys("searches") == [1, 3, "a", "b"]
            assert [p["id"] for p in await db.get_all("searches")] == [1, 3, "a", "b"]
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_generator_survives_reopen(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        await db.put("searches", {"query": "a"})
        await db.close()

        db = await open_database(path, "twitter", 1)
        try:
            assert await db.put("searches", {"query": "b"}) == 2
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            for q in "abc":
                await db.put("searches", {"query": q})
            await db.delete("searches", 2)
            await db.delete("searches", 99)
            assert await db.get_all_keys("searches") == [1, 3]
            assert await db.get("searches", 2) is None

            await db.clear("searches")
            assert await db.count("searches") == 0
            # Clearing leaves the key generator where it was.
            assert await db.put("searches", {"query": "d"}) == 4
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_missing_store(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            with pytest.raises(ObjectStoreNotFoundError):
                await db.get_all("nope")
            with pytest.raises(ObjectStoreNotFoundError):
                await db.put("nope", {"id": 1})
        finally:
            await db.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", [True, float("nan"), [1], {"a": 1}])
    async def test_invalid_keys(self, path, key):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            with pytest.raises(DataError):
                await db.put("searches", {"id": key})
            assert await db.count("searches") == 0
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_unserializable_value(self, path):
        db = await open_database(path, "twitter", 1, upgrade=_create_searches)
        try:
            with pytest.raises(DataError):
                await db.put("searches", {"query": object()})
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_no_key_without_generator(self, path):
        async def upgrade(tx, old_version, new_version):
            await tx.create_object_store("plain", key_path="id")

        db = await open_database(path, "twitter", 1, upgrade=upgrade)
        try:
            with pytest.raises(DataError):
                await db.put("plain", {"query": "a"})
            assert await db.put("plain", {"id": "x"}) == "x"
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_create_store_outside_upgrade(self, path):
        db = await open_database(path, "twitter", 1)
        try:
            await db.create_object_store("late", key_path="key", auto_increment=True)
            assert await db.put("late", {}) == 1
            assert await db.get("late", 1) == {"key": 1}
        finally:
            await db.close()
