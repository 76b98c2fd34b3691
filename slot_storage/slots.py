from __future__ import annotations

import logging

from .errors import SlotStorageError
from .interfaces import KeyValueBackend

logger = logging.getLogger(__name__)

SLOT_PREFIX = "__storage_stack_"


def measure(payload: str) -> int:
    """Size of a payload in bytes, as counted against capacity."""
    return len(payload.encode("utf-8"))


class SlotManager:
    """
    Splits one payload string across `slot_count` ordered backend keys of at
    most `slot_size` bytes each, and joins them back.

    Payloads are expected to be ASCII (escaped JSON or base64), so character
    offsets and byte offsets coincide.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        slot_count: int,
        slot_size: int,
        prefix: str = SLOT_PREFIX,
    ) -> None:
        self._backend = backend
        self.slot_count = slot_count
        self.slot_size = slot_size
        self.prefix = prefix
        self.occupied = 0

    @property
    def max_capacity(self) -> int:
        return self.slot_count * self.slot_size

    def key(self, index: int) -> str:
        return f"{self.prefix}{index}"

    def keys(self) -> list[str]:
        return [self.key(i) for i in range(self.slot_count)]

    def check_capacity(self, payload: str) -> None:
        over = measure(payload) - self.max_capacity
        if over > 0:
            raise SlotStorageError.capacity(over)

    async def write(self, payload: str) -> None:
        """
        Persist `payload` chunk by chunk. Slots past the last chunk are left
        as they were, so callers clear first.
        """
        self.check_capacity(payload)
        size = len(payload)
        for index in range(self.slot_count):
            end = min((index + 1) * self.slot_size, size)
            part = payload[index * self.slot_size:end]
            await self._backend.set({self.key(index): part})
            self.occupied += measure(part)
            if end == size:
                break

    async def read(self, index: int) -> str:
        k = self.key(index)
        data = await self._backend.get(k)
        value = data.get(k)
        return value if value is not None else ""

    async def read_all(self) -> str:
        """
        Concatenate slots in index order. A slot shorter than `slot_size`
        (empty included) holds the final chunk; nothing after it is read.
        """
        parts = []
        for index in range(self.slot_count):
            part = await self.read(index)
            parts.append(part)
            if len(part) < self.slot_size:
                break
        return "".join(parts)

    async def clear(self) -> None:
        await self._backend.remove(self.keys())
        self.occupied = 0
