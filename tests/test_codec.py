from __future__ import annotations

import hashlib

import pytest

from slot_storage.codec import (
    ZlibCompressor,
    ZstdCompressor,
    calculate_hash,
    compress_text,
    decompress_text,
    get_compressor,
)
from slot_storage.errors import ErrorKind, SlotStorageError


def test_calculate_hash_is_hex_md5_of_utf8():
    text = '{"key":"ABCDEF"}'
    assert calculate_hash(text) == hashlib.md5(text.encode("utf-8")).hexdigest()
    assert calculate_hash(text) == calculate_hash(text)
    assert calculate_hash(text) != calculate_hash(text + " ")


@pytest.mark.parametrize("name", ["zlib", "zstd"])
def test_compress_text_is_reversible_and_ascii(name):
    compressor = get_compressor(name)
    text = '{"greeting":"h\\u00e9llo","n":' + "1" * 500 + "}"
    payload = compress_text(compressor, text)

    assert payload.isascii()
    assert len(payload) < len(text)
    assert decompress_text(compressor, payload) == text


def test_compress_text_is_deterministic():
    compressor = ZlibCompressor()
    assert compress_text(compressor, "abc" * 50) == compress_text(compressor, "abc" * 50)


def test_get_compressor_unknown_name():
    with pytest.raises(ValueError):
        get_compressor("lzma")


def test_zlib_decompress_accepts_gzip_stream():
    import gzip

    packed = gzip.compress(b"hello gzip")
    assert ZlibCompressor().decompress(packed) == b"hello gzip"


@pytest.mark.parametrize("payload", ["not base64!!", "aGVsbG8gd29ybGQ="])
def test_decompress_text_failures_raise_compression_error(payload):
    with pytest.raises(SlotStorageError) as exc:
        decompress_text(ZlibCompressor(), payload)
    assert exc.value.kind is ErrorKind.COMPRESSION
    assert exc.value.reason


def test_zstd_garbage_raises_compression_error():
    with pytest.raises(SlotStorageError) as exc:
        decompress_text(ZstdCompressor(), "aGVsbG8gd29ybGQ=")
    assert exc.value.is_compression
