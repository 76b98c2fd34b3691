from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .codec import COMPRESSORS
from .interfaces import KeyValueBackend

ENV_PREFIX = "SLOT_STORAGE_"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class BlobStorageConfig:
    # Layout
    slot_count: int = 256
    slot_size: int = 1024

    # Backend (None -> in-memory store)
    storage: KeyValueBackend | None = None

    # Compression
    compress: bool = False
    compression: str = "zlib"

    # Diagnostics
    debug_log: bool = False
    disable_dummy_warning: bool = False
    id: str | None = None

    def __post_init__(self) -> None:
        for name in ("slot_count", "slot_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.compression not in COMPRESSORS:
            raise ValueError(f"Unknown compression {self.compression!r}; expected one of {sorted(COMPRESSORS)}")

    @property
    def max_capacity(self) -> int:
        return self.slot_count * self.slot_size


def blob_storage_config(**overrides: Any) -> BlobStorageConfig:
    """Defaults with `overrides` applied; unknown names raise TypeError."""
    return replace(BlobStorageConfig(), **overrides)


def get_settings(env_file: str | Path | None = None, **overrides: Any) -> BlobStorageConfig:
    if env_file is not None:
        load_dotenv(env_file)

    values: dict[str, Any] = {
        "slot_count": _env_int(f"{ENV_PREFIX}SLOT_COUNT", 256),
        "slot_size": _env_int(f"{ENV_PREFIX}SLOT_SIZE", 1024),
        "compress": _env_bool(f"{ENV_PREFIX}COMPRESS", False),
        "compression": os.getenv(f"{ENV_PREFIX}COMPRESSION", "zlib").strip().lower(),
        "debug_log": _env_bool(f"{ENV_PREFIX}DEBUG_LOG", False),
        "disable_dummy_warning": _env_bool(f"{ENV_PREFIX}DISABLE_DUMMY_WARNING", False),
        "id": os.getenv(f"{ENV_PREFIX}ID") or None,
    }
    values.update(overrides)
    return BlobStorageConfig(**values)
