from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping

from .interfaces import KeyValueBackend, key_list

logger = logging.getLogger(__name__)

_locks_guard = threading.Lock()
_path_locks: dict[str, threading.Lock] = {}


def lock_for(path: Path) -> threading.Lock:
    """One lock per resolved path, shared by every store pointed at that file."""
    key = str(path.resolve())
    with _locks_guard:
        return _path_locks.setdefault(key, threading.Lock())


def read_entries(path: Path) -> dict[str, Any]:
    """
    Load the key space from disk.

    Missing, empty, unreadable or non-object files all read as empty.
    """
    if not path.exists():
        return {}
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("DISK STORE: failed to read %s: %r", path, e)
        return {}
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning("DISK STORE: ignoring invalid JSON in %s: %r", path, e)
        return {}
    return data if isinstance(data, dict) else {}


class DiskKeyValueStore(KeyValueBackend):
    """
    Keeps the whole key space as a single JSON document at a fixed path.

    Every mutation is a locked load/modify/save. Blocking file I/O runs in a
    worker thread so the event loop is never held up.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _save(self, entries: Mapping[str, Any]) -> None:
        # Caller holds the path lock. Readers only ever see a complete file.
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_name(f".{self._path.name}.partial")
        staging.write_text(json.dumps(entries, separators=(",", ":")), encoding="utf-8")
        staging.replace(self._path)

    def _get(self, keys: list[str] | None) -> dict[str, Any]:
        with lock_for(self._path):
            entries = read_entries(self._path)
        if keys is None:
            return entries
        return {k: entries.get(k) for k in keys}

    def _set(self, items: dict[str, Any]) -> None:
        with lock_for(self._path):
            entries = read_entries(self._path)
            entries.update(items)
            self._save(entries)

    def _remove(self, keys: list[str]) -> None:
        with lock_for(self._path):
            entries = read_entries(self._path)
            for k in keys:
                entries.pop(k, None)
            self._save(entries)

    def _clear(self) -> None:
        with lock_for(self._path):
            self._save({})

    async def get(self, keys: str | Iterable[str] | None = None) -> dict[str, Any]:
        wanted = None if keys is None else key_list(keys)
        return await asyncio.to_thread(self._get, wanted)

    async def set(self, items: Mapping[str, Any]) -> None:
        await asyncio.to_thread(self._set, dict(items))

    async def remove(self, keys: str | Iterable[str]) -> None:
        await asyncio.to_thread(self._remove, key_list(keys))

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear)
