from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CAPACITY = "capacity"
    COMPRESSION = "compression"


class SlotStorageError(Exception):
    """
    Single error type for the storage engine, tagged by `kind`:

    - CAPACITY: the document does not fit; `overage` holds the excess bytes.
    - COMPRESSION: compress/decompress failed; `reason` holds the cause.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        overage: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.overage = overage
        self.reason = reason

    @classmethod
    def capacity(cls, overage: int | None = None) -> "SlotStorageError":
        if overage:
            message = f"Set data exceeded size of storage by {overage} bytes."
        else:
            message = "Set data exceeded size of storage."
        return cls(ErrorKind.CAPACITY, message, overage=overage)

    @classmethod
    def compression(cls, reason: str) -> "SlotStorageError":
        return cls(ErrorKind.COMPRESSION, reason, reason=reason)

    @property
    def is_capacity(self) -> bool:
        return self.kind is ErrorKind.CAPACITY

    @property
    def is_compression(self) -> bool:
        return self.kind is ErrorKind.COMPRESSION
