"""Deterministic placeholder embedder used when no real model is configured."""

from __future__ import annotations

import math
import zlib
from typing import Sequence

from ..core.vectors.vector_math import normalize

DEFAULT_DIMENSION = 384
MODEL_NAME = "builtin-small"


class BuiltinSmallEmbedder:
    """Hash-seeded sine embedder.

    Produces the same unit-length vector for the same text on every platform.
    It carries no semantic meaning and is intended for demos and tests.
    """

    def __init__(self, dimension: int = DEFAULT_DIMENSION) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be > 0")
        self._dimension = dimension

    def embed(self, text: str) -> list[float]:
        seed = zlib.crc32(text.encode("utf-8"))
        raw = [math.sin(seed + index) * 0.1 for index in range(self._dimension)]
        return normalize(raw)

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        return [self.embed(text) for text in texts]

    def dimension(self) -> int:
        return self._dimension

    def model_name(self) -> str:
        return MODEL_NAME
