from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Iterable, Mapping

from .codec import calculate_hash, compress_text, decompress_text, get_compressor
from .enums import LastCompressState, StorageState
from .errors import SlotStorageError
from .interfaces import KeyValueBackend
from .memory_store import MemoryKeyValueStore
from .metadata import MetadataStore, StorageMeta
from .settings import BlobStorageConfig
from .slots import SlotManager, measure

logger = logging.getLogger(__name__)

Keys = str | Iterable[str] | Mapping[str, Any] | None


def serialize_document(doc: Mapping[str, Any]) -> str:
    # Compact and ASCII-only: one character is one byte in a slot.
    return json.dumps(doc, separators=(",", ":"), ensure_ascii=True, allow_nan=False)


def parse_document(payload: str) -> dict[str, Any]:
    if not payload:
        return {}
    doc = json.loads(payload)
    if not isinstance(doc, dict):
        raise ValueError(f"Stored document is not a JSON object: {type(doc).__name__}")
    return doc


class BlobStorageArea:
    """
    A JSON document stored across fixed-size slots of a key-value backend.

    `set()` replaces the whole document (merging the given items over what is
    stored), `get()` answers from the local cache while this instance is up to
    date with the backend and from the slots otherwise. If the serialized
    document does not fit in `slot_count * slot_size` bytes, `set()` raises a
    capacity `SlotStorageError` and leaves stored data alone.

    Build instances with `await BlobStorageArea.create(config)`.
    """

    def __init__(self, config: BlobStorageConfig | None = None) -> None:
        self.config = config or BlobStorageConfig()
        self._log_prefix = f"BlobStorage[{self.config.id}]:" if self.config.id else "BlobStorage:"
        if self.config.debug_log:
            self._debug("Debug log is on.")

        storage: KeyValueBackend | None = self.config.storage
        if storage is None:
            storage = MemoryKeyValueStore(self.config.disable_dummy_warning)
        self.storage = storage

        self._meta = MetadataStore(storage)
        self._slots = SlotManager(storage, self.config.slot_count, self.config.slot_size)
        self._compressor = get_compressor(self.config.compression)
        self._local: dict[str, Any] = {}
        self._state = StorageState.IDLE

    @classmethod
    async def create(cls, config: BlobStorageConfig | None = None) -> "BlobStorageArea":
        area = cls(config)
        # Init meta, occupied storage and the local cache from whatever is stored.
        await area.sync()
        area._debug("Initial meta %s", area._meta.meta)
        return area

    def _debug(self, msg: str, *args: Any) -> None:
        level = logging.INFO if self.config.debug_log else logging.DEBUG
        logger.log(level, "%s " + msg, self._log_prefix, *args)

    # ------------------------------------------------------------------
    # Capacity and state
    # ------------------------------------------------------------------
    @property
    def max_capacity(self) -> int:
        return self._slots.max_capacity

    async def get_max_capacity(self) -> int:
        return self.max_capacity

    async def get_current_used(self, live: bool = False) -> int:
        """
        Bytes currently held in slots. With `live`, re-measure from the
        backend instead of trusting the running counter.
        """
        if live:
            payload = await self._slots.read_all()
            self._slots.occupied = measure(payload)
        return self._slots.occupied

    @property
    def state(self) -> StorageState:
        return self._state

    def get_state(self) -> StorageState:
        return self._state

    async def is_up_to_date(self) -> bool:
        live = await self._meta.load_live()
        live_updated = live.last_updated if live is not None else None
        self._debug(
            "checking up to date local=%s storage=%s", self._meta.meta.last_updated, live_updated
        )
        return live_updated == self._meta.meta.last_updated

    # ------------------------------------------------------------------
    # Metadata accessors (in-memory mirror, no backend round trip)
    # ------------------------------------------------------------------
    def get_hash(self) -> str | None:
        return self._meta.meta.hash

    def get_pre_compress_hash(self) -> str | None:
        return self._meta.meta.hash_pre_compress

    def get_last_updated(self) -> int | None:
        return self._meta.meta.last_updated

    def get_last_compress_state(self) -> LastCompressState:
        return self._meta.meta.last_compress_state

    def calculate_hash(self, data: str) -> str:
        return calculate_hash(data)

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------
    async def get(self, keys: Keys = None) -> dict[str, Any]:
        self._state = StorageState.DOWNLOADING
        try:
            wanted, defaults = self._resolve_keys(keys)
            if await self.is_up_to_date():
                source = self._local
            else:
                source = await self._read_document(await self._live_meta())
            return {k: source.get(k, defaults.get(k)) for k in wanted}
        finally:
            self._state = StorageState.IDLE

    async def set(self, items: Mapping[str, Any]) -> None:
        items = dict(items)
        # Cache the full stored document; other writers may have added keys.
        self._local = await self._write_document(lambda current: {**current, **items})

    async def remove(self, keys: str | Iterable[str]) -> None:
        """Drop `keys` from the document; rewrites it like `set()` does."""
        dropped = {keys} if isinstance(keys, str) else set(keys)
        self._local = await self._write_document(
            lambda current: {k: v for k, v in current.items() if k not in dropped}
        )

    async def clear(self, reset_meta: bool = False) -> None:
        """
        Remove this instance's slots and empty the local cache. Metadata is
        kept unless `reset_meta` is given.
        """
        await self._slots.clear()
        self._local.clear()
        if reset_meta:
            await self._meta.save(StorageMeta())

    async def sync(self) -> dict[str, Any]:
        """Adopt the backend's current metadata and document into this instance."""
        self._state = StorageState.DOWNLOADING
        try:
            meta = await self._meta.init()
            payload = await self._slots.read_all()
            self._slots.occupied = measure(payload)
            self._local = await self._decode(payload, meta)
            self._debug("synced %d keys, last updated %s", len(self._local), meta.last_updated)
            return dict(self._local)
        finally:
            self._state = StorageState.IDLE

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve_keys(self, keys: Keys) -> tuple[list[str], Mapping[str, Any]]:
        if keys is None:
            return list(self._local), {}
        if isinstance(keys, str):
            return [keys], {}
        if isinstance(keys, Mapping):
            return list(keys), keys
        return list(keys), {}

    async def _live_meta(self) -> StorageMeta:
        live = await self._meta.load_live()
        return live if live is not None else self._meta.meta

    def _is_stored_compressed(self, meta: StorageMeta) -> bool:
        if meta.last_compress_state is LastCompressState.COMPRESSED:
            return True
        # A failed compression leaves the previous (compressed) write in place.
        return meta.last_compress_state is LastCompressState.FAILED and meta.hash_pre_compress is not None

    async def _decode(self, payload: str, meta: StorageMeta) -> dict[str, Any]:
        if payload and self._is_stored_compressed(meta):
            self._debug("Size before decompression %d", len(payload))
            payload = await asyncio.to_thread(decompress_text, self._compressor, payload)
            self._debug("Size after decompression %d", measure(payload))
        return parse_document(payload)

    async def _read_document(self, meta: StorageMeta) -> dict[str, Any]:
        return await self._decode(await self._slots.read_all(), meta)

    async def _compress(self, serialized: str) -> str:
        self._debug("Size before compression %d / %d", measure(serialized), self.max_capacity)
        try:
            payload = await asyncio.to_thread(compress_text, self._compressor, serialized)
        except SlotStorageError:
            await self._meta.set_last_compress_state(LastCompressState.FAILED)
            raise
        self._debug("Size after compression %d / %d", measure(payload), self.max_capacity)
        return payload

    async def _write_document(self, build: Callable[[dict[str, Any]], dict[str, Any]]) -> dict[str, Any]:
        """Rewrite the stored document as `build(current)` and return what was stored."""
        self._state = StorageState.UPLOADING
        try:
            current = await self._read_document(await self._live_meta())
            document = build(current)
            serialized = serialize_document(document)
            pre_compress_hash = calculate_hash(serialized)

            payload = serialized
            if self.config.compress:
                payload = await self._compress(serialized)

            over = measure(payload) - self.max_capacity
            if over > 0:
                raise SlotStorageError.capacity(over)

            # No hash while slots are being rewritten.
            await self._meta.set_hash(None)
            await self._slots.clear()
            await self._slots.write(payload)

            if self.config.compress:
                await self._meta.set_pre_compress_hash(pre_compress_hash)
                await self._meta.set_last_compress_state(LastCompressState.COMPRESSED)
                self._debug("setting precompress hash %s", pre_compress_hash)
            else:
                await self._meta.set_pre_compress_hash(None)
                await self._meta.set_last_compress_state(LastCompressState.UNCOMPRESSED)

            stored = await self._slots.read_all()
            await self._meta.set_hash(calculate_hash(stored))
            self._debug("setting hash %s", self.get_hash())
            await self._meta.set_last_updated()
            return document
        finally:
            self._state = StorageState.IDLE
