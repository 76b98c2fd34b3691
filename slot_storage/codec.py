from __future__ import annotations

import base64
import binascii
import hashlib
import zlib

import zstandard as zstd

from .errors import SlotStorageError


def calculate_hash(data: str) -> str:
    """Hex MD5 of the UTF-8 text. Used for equality checks, not security."""
    return hashlib.md5(data.encode("utf-8")).hexdigest()


class BaseCompressor:
    """Base class for compressors.

    Attributes:
        encoding (str): Name used to select the compressor in configuration.
        compression_level (int): Compression level passed to the algorithm.
        errors (tuple): Exception types the algorithm raises on bad input.
    """

    encoding: str = "base"
    compression_level: int = 6
    errors: tuple[type[Exception], ...] = ()

    def compress(self, data: bytes) -> bytes:
        msg = "Subclasses must implement this method"
        raise NotImplementedError(msg)

    def decompress(self, data: bytes) -> bytes:
        msg = "Subclasses must implement this method"
        raise NotImplementedError(msg)


class ZlibCompressor(BaseCompressor):
    """Deflate with a zlib header. Decompression also accepts gzip streams."""

    encoding: str = "zlib"
    compression_level: int = 6
    errors = (zlib.error,)

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(data, self.compression_level)

    def decompress(self, data: bytes) -> bytes:
        # 32 + MAX_WBITS: auto-detect zlib or gzip header
        return zlib.decompress(data, 32 + zlib.MAX_WBITS)


class ZstdCompressor(BaseCompressor):
    encoding: str = "zstd"
    compression_level: int = 3
    errors = (zstd.ZstdError,)

    def __init__(self) -> None:
        self._cctx = zstd.ZstdCompressor(level=self.compression_level)
        self._dctx = zstd.ZstdDecompressor()

    def compress(self, data: bytes) -> bytes:
        return self._cctx.compress(data)

    def decompress(self, data: bytes) -> bytes:
        return self._dctx.decompress(data)


COMPRESSORS: dict[str, type[BaseCompressor]] = {
    ZlibCompressor.encoding: ZlibCompressor,
    ZstdCompressor.encoding: ZstdCompressor,
}


def get_compressor(name: str) -> BaseCompressor:
    try:
        return COMPRESSORS[name]()
    except KeyError:
        raise ValueError(f"Unknown compression {name!r}; expected one of {sorted(COMPRESSORS)}") from None


def compress_text(compressor: BaseCompressor, text: str) -> str:
    """
    Compress UTF-8 text and base64 it, so the result can live in string slots.
    """
    try:
        packed = compressor.compress(text.encode("utf-8"))
    except compressor.errors as e:
        raise SlotStorageError.compression(str(e)) from e
    return base64.b64encode(packed).decode("ascii")


def decompress_text(compressor: BaseCompressor, payload: str) -> str:
    try:
        packed = base64.b64decode(payload.encode("ascii"), validate=True)
        return compressor.decompress(packed).decode("utf-8")
    except (binascii.Error, UnicodeError, *compressor.errors) as e:
        raise SlotStorageError.compression(str(e) or type(e).__name__) from e
