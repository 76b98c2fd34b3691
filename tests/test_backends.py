from __future__ import annotations

import asyncio
import json

from slot_storage import BlobStorageArea, BlobStorageConfig
from slot_storage.disk_store import DiskKeyValueStore
from slot_storage.memory_store import MemoryKeyValueStore


def test_memory_store_contract():
    async def _run():
        store = MemoryKeyValueStore(disable_dummy_warning=True)
        await store.set({"a": "1", "b": "2"})
        await store.set({"c": "3"})

        assert await store.get() == {"a": "1", "b": "2", "c": "3"}
        assert await store.get("a") == {"a": "1"}
        assert await store.get(["a", "zzz"]) == {"a": "1", "zzz": None}

        await store.remove("a")
        await store.remove(["b", "nope"])
        assert await store.get() == {"c": "3"}

        await store.clear()
        assert await store.get() == {}

    asyncio.run(_run())


def test_memory_store_warns_unless_disabled(caplog):
    async def _run():
        await MemoryKeyValueStore().set({"a": "1"})
        await MemoryKeyValueStore(disable_dummy_warning=True).set({"a": "1"})

    with caplog.at_level("WARNING", logger="slot_storage.memory_store"):
        asyncio.run(_run())
    assert len(caplog.records) == 1


def test_disk_store_roundtrip(tmp_path):
    async def _run():
        path = tmp_path / "store" / "kv.json"
        store = DiskKeyValueStore(path)
        assert await store.get() == {}

        await store.set({"a": "1", "b": "2"})
        assert await store.get(["a", "missing"]) == {"a": "1", "missing": None}

        # A second handle on the same file sees the same data.
        again = DiskKeyValueStore(path)
        assert await again.get() == {"a": "1", "b": "2"}
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1", "b": "2"}

        await again.remove("a")
        assert await store.get() == {"b": "2"}

        await store.clear()
        assert await again.get() == {}

    asyncio.run(_run())


def test_disk_store_treats_invalid_file_as_empty(tmp_path):
    async def _run():
        path = tmp_path / "kv.json"
        path.write_text("{not json", encoding="utf-8")
        store = DiskKeyValueStore(path)
        assert await store.get() == {}
        await store.set({"k": "v"})
        assert await store.get("k") == {"k": "v"}

    asyncio.run(_run())


def test_engine_over_disk_store(tmp_path):
    async def _run():
        path = tmp_path / "kv.json"
        config = BlobStorageConfig(storage=DiskKeyValueStore(path), slot_size=16, slot_count=8, compress=True)
        area = await BlobStorageArea.create(config)
        await area.set({"user": {"name": "ada", "tags": ["x", "y"]}})

        reopened = await BlobStorageArea.create(
            BlobStorageConfig(storage=DiskKeyValueStore(path), slot_size=16, slot_count=8, compress=True)
        )
        assert await reopened.get("user") == {"user": {"name": "ada", "tags": ["x", "y"]}}
        assert reopened.get_hash() == area.get_hash()

    asyncio.run(_run())


def test_disk_store_leaves_no_staging_file(tmp_path):
    async def _run():
        path = tmp_path / "nested" / "kv.json"
        store = DiskKeyValueStore(path)
        await store.set({"a": "1"})
        await store.remove("a")
        await store.set({"b": "2"})

        assert sorted(p.name for p in path.parent.iterdir()) == ["kv.json"]
        assert json.loads(path.read_text(encoding="utf-8")) == {"b": "2"}

    asyncio.run(_run())
