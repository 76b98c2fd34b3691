from __future__ import annotations

import os
from pathlib import Path
import sys
from typing import Any

import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from slot_storage import BlobStorageArea, BlobStorageConfig, MemoryKeyValueStore  # noqa: E402

SETTINGS_ENV = (
    "SLOT_STORAGE_SLOT_COUNT",
    "SLOT_STORAGE_SLOT_SIZE",
    "SLOT_STORAGE_COMPRESS",
    "SLOT_STORAGE_COMPRESSION",
    "SLOT_STORAGE_DEBUG_LOG",
    "SLOT_STORAGE_DISABLE_DUMMY_WARNING",
    "SLOT_STORAGE_ID",
)


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore(disable_dummy_warning=True)


@pytest.fixture
def make_area(backend: MemoryKeyValueStore):
    """
    Async factory for engines sharing the `backend` fixture by default.
    """

    async def _make(**overrides: Any) -> BlobStorageArea:
        overrides.setdefault("storage", backend)
        return await BlobStorageArea.create(BlobStorageConfig(**overrides))

    return _make


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for name in SETTINGS_ENV:
        os.environ.pop(name, None)
