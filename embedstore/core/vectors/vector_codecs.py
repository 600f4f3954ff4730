"""Binary codec for packing float vectors into fixed-width byte blobs.

Vectors are stored as IEEE-754 single precision values, 4 bytes per element,
in element order and without a length prefix. The caller stores the dimension
next to the blob and passes it back on decode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import CodecError


@dataclass(frozen=True)
class VectorCodec:
    """Stateless float32 vector packer.

    Attributes:
        byte_order: numpy byte order marker; `"<"` (little-endian) by default so
            blobs are portable across platforms.
    """

    byte_order: str = "<"
    item_size: int = 4

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(f"{self.byte_order}f{self.item_size}")

    def encode(self, values: Sequence[float]) -> bytes:
        """Pack `values` into `len(values) * item_size` bytes."""

        return self._to_array(values).tobytes()

    def round_trip(self, values: Sequence[float]) -> list[float]:
        """Return `values` as they will read back after `encode` then `decode`."""

        return self._to_array(values).astype(np.float64).tolist()

    def _to_array(self, values: Sequence[float]) -> np.ndarray:
        try:
            source = np.asarray(list(values), dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise CodecError(f"Vector values must be numeric: {exc}") from exc
        if source.ndim != 1:
            raise CodecError(f"Vector must be one-dimensional, got shape {source.shape}")

        with np.errstate(over="ignore"):
            array = source.astype(self.dtype)
        overflow = np.isfinite(source) & ~np.isfinite(array)
        if overflow.any():
            index = int(np.flatnonzero(overflow)[0])
            raise CodecError(
                f"Vector value {float(source[index])!r} at position {index} "
                f"does not fit in {self.dtype.name}"
            )
        return array

    def decode(self, blob: bytes | bytearray | memoryview, dimension: int) -> list[float]:
        """Unpack exactly `dimension` floats from `blob`."""

        if dimension < 0:
            raise CodecError(f"dimension must be >= 0, got {dimension}")
        data = bytes(blob)
        expected = dimension * self.item_size
        if len(data) != expected:
            raise CodecError(
                f"Vector payload has {len(data)} bytes, expected {expected} "
                f"for dimension {dimension}"
            )
        return np.frombuffer(data, dtype=self.dtype).astype(np.float64).tolist()


_DEFAULT_CODEC = VectorCodec()


def encode_vector(values: Sequence[float]) -> bytes:
    return _DEFAULT_CODEC.encode(values)


def decode_vector(blob: bytes | bytearray | memoryview, dimension: int) -> list[float]:
    return _DEFAULT_CODEC.decode(blob, dimension)


def to_stored_precision(values: Sequence[float]) -> list[float]:
    return _DEFAULT_CODEC.round_trip(values)
