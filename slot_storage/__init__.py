from __future__ import annotations

from .codec import BaseCompressor, ZlibCompressor, ZstdCompressor, calculate_hash, get_compressor
from .disk_store import DiskKeyValueStore
from .engine import BlobStorageArea
from .enums import LastCompressState, StorageState
from .errors import ErrorKind, SlotStorageError
from .interfaces import KeyValueBackend
from .memory_store import MemoryKeyValueStore
from .metadata import META_KEY, MetadataStore, StorageMeta
from .settings import BlobStorageConfig, blob_storage_config, get_settings
from .slots import SLOT_PREFIX, SlotManager

__all__ = [
    "BlobStorageArea",
    "BlobStorageConfig",
    "blob_storage_config",
    "get_settings",
    "KeyValueBackend",
    "MemoryKeyValueStore",
    "DiskKeyValueStore",
    "SlotManager",
    "SLOT_PREFIX",
    "MetadataStore",
    "StorageMeta",
    "META_KEY",
    "LastCompressState",
    "StorageState",
    "ErrorKind",
    "SlotStorageError",
    "BaseCompressor",
    "ZlibCompressor",
    "ZstdCompressor",
    "calculate_hash",
    "get_compressor",
]
