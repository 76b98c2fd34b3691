from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol


class KeyValueBackend(Protocol):
    """
    Minimal async key-value contract the storage engine is written against.

    Values are opaque to the backend; the engine only ever stores strings.
    """

    async def get(self, keys: str | Iterable[str] | None = None) -> dict[str, Any]:
        """
        Return requested entries. `None` returns everything; requested keys
        that are absent are present in the result mapped to None.
        """
        ...

    async def set(self, items: Mapping[str, Any]) -> None:
        """Merge `items` into the store without touching unrelated keys."""
        ...

    async def remove(self, keys: str | Iterable[str]) -> None:
        ...

    async def clear(self) -> None:
        """Wipe the entire store, not just one engine's keys."""
        ...


def key_list(keys: str | Iterable[str]) -> list[str]:
    if isinstance(keys, str):
        return [keys]
    return list(keys)
