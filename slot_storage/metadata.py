from __future__ import annotations

import json
import logging
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import LastCompressState
from .interfaces import KeyValueBackend

logger = logging.getLogger(__name__)

META_KEY = "__storage_meta"


class StorageMeta(BaseModel):
    """
    Mirrors the record persisted under the metadata key:
      {
        "hash": "<md5 of stored slot bytes>" | null,
        "hashPreCompress": "<md5 before compression>" | null,
        "lastUpdated": <epoch ms> | null,
        "lastCompressState": "uncompressed" | "compressed" | "failed"
      }
    """

    model_config = ConfigDict(populate_by_name=True)

    hash: str | None = None
    hash_pre_compress: str | None = Field(default=None, alias="hashPreCompress")
    last_updated: int | None = Field(default=None, alias="lastUpdated")
    last_compress_state: LastCompressState = Field(
        default=LastCompressState.UNCOMPRESSED, alias="lastCompressState"
    )

    @classmethod
    def from_stored(cls, raw: Any) -> "StorageMeta | None":
        if raw is None:
            return None
        if isinstance(raw, str):
            return cls.model_validate(json.loads(raw))
        return cls.model_validate(raw)

    def to_stored(self) -> str:
        return self.model_dump_json(by_alias=True)


def now_ms() -> int:
    return int(time.time() * 1000)


class MetadataStore:
    """
    Keeps the in-memory metadata mirror and the persisted record in step.

    Each mutator is a read-modify-write of one field against the mirror,
    followed by a full save.
    """

    def __init__(self, backend: KeyValueBackend, key: str = META_KEY) -> None:
        self._backend = backend
        self._key = key
        self._meta = StorageMeta()

    @property
    def key(self) -> str:
        return self._key

    @property
    def meta(self) -> StorageMeta:
        return self._meta

    async def load_live(self) -> StorageMeta | None:
        """Read the persisted record without touching the mirror."""
        data = await self._backend.get(self._key)
        return StorageMeta.from_stored(data.get(self._key))

    async def load(self) -> StorageMeta | None:
        stored = await self.load_live()
        if stored is not None:
            self._meta = stored
        return stored

    async def save(self, meta: StorageMeta) -> None:
        self._meta = meta
        await self._backend.set({self._key: meta.to_stored()})

    async def init(self) -> StorageMeta:
        """Adopt the persisted record, or persist an all-absent one on first use."""
        stored = await self.load()
        if stored is None:
            await self.save(StorageMeta())
            logger.debug("Setting very first meta under %s", self._key)
        else:
            logger.debug("Got meta from storage: %s", stored)
        return self._meta

    async def _update(self, **fields: Any) -> None:
        await self.save(self._meta.model_copy(update=fields))

    async def set_hash(self, value: str | None) -> None:
        await self._update(hash=value)

    async def set_pre_compress_hash(self, value: str | None) -> None:
        await self._update(hash_pre_compress=value)

    async def set_last_compress_state(self, state: LastCompressState) -> None:
        await self._update(last_compress_state=state)

    async def set_last_updated(self, updated: int | None = None) -> int:
        if updated is None:
            updated = now_ms()
            previous = self._meta.last_updated
            if previous is not None and updated <= previous:
                updated = previous + 1
        await self._update(last_updated=updated)
        return updated
