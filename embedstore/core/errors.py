"""Error types raised by codecs, vector math, and storage backends."""

from __future__ import annotations


class EmbedStoreError(Exception):
    """Base class for every error raised by embedstore."""


class DimensionMismatchError(EmbedStoreError, ValueError):
    """Raised when two vectors that must share a dimension do not."""

    def __init__(self, expected: int, actual: int, message: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message or f"Vector dimension mismatch: expected {expected}, got {actual}"
        )


class CodecError(EmbedStoreError, ValueError):
    """Raised when a binary vector payload cannot be encoded or decoded."""


class StorageError(EmbedStoreError, RuntimeError):
    """Raised for I/O, transaction, and consistency failures inside a backend."""
