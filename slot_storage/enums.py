from __future__ import annotations

from enum import Enum


class StorageState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    DOWNLOADING = "downloading"


class LastCompressState(str, Enum):
    """Outcome of the last write with respect to compression (persisted value)."""

    UNCOMPRESSED = "uncompressed"
    COMPRESSED = "compressed"
    FAILED = "failed"
