from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping

from .interfaces import KeyValueBackend, key_list

logger = logging.getLogger(__name__)

DUMMY_WARNING = (
    "You are using MemoryKeyValueStore in your BlobStorageArea. "
    "Please pass a persistent backend, or your data will be lost."
)


class MemoryKeyValueStore(KeyValueBackend):
    """
    Process-local dict backend; the default when no backend is configured.

    `delay` (seconds) is awaited on every call so in-flight engine state can be
    observed from another task.
    """

    def __init__(self, disable_dummy_warning: bool = False, delay: float = 0.0) -> None:
        self._data: dict[str, Any] = {}
        self._disable_dummy_warning = disable_dummy_warning
        self.delay = delay

    def _warn(self) -> None:
        if not self._disable_dummy_warning:
            logger.warning(DUMMY_WARNING)

    async def get(self, keys: str | Iterable[str] | None = None) -> dict[str, Any]:
        self._warn()
        wanted = list(self._data) if keys is None else key_list(keys)
        values = {k: self._data.get(k) for k in wanted}
        await asyncio.sleep(self.delay)
        return values

    async def set(self, items: Mapping[str, Any]) -> None:
        self._warn()
        self._data.update(items)
        await asyncio.sleep(self.delay)

    async def remove(self, keys: str | Iterable[str]) -> None:
        for k in key_list(keys):
            self._data.pop(k, None)
        await asyncio.sleep(self.delay)

    async def clear(self) -> None:
        self._data.clear()
        await asyncio.sleep(self.delay)
