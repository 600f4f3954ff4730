"""Pure vector math helpers used for similarity scoring."""

from __future__ import annotations

import math
from typing import Sequence

from ..errors import DimensionMismatchError


def _require_same_dimension(left: Sequence[float], right: Sequence[float]) -> None:
    if len(left) != len(right):
        raise DimensionMismatchError(len(left), len(right))


def dot_product(left: Sequence[float], right: Sequence[float]) -> float:
    _require_same_dimension(left, right)
    return float(sum(a * b for a, b in zip(left, right)))


def norm(vector: Sequence[float]) -> float:
    return math.sqrt(sum(value * value for value in vector))


def cosine_similarity(left: Sequence[float], right: Sequence[float]) -> float:
    """Return `dot(a, b) / (|a| * |b|)`, or `0.0` when either norm is zero."""

    dot = dot_product(left, right)
    norm_left = norm(left)
    norm_right = norm(right)
    if norm_left == 0.0 or norm_right == 0.0:
        return 0.0
    return dot / (norm_left * norm_right)


def euclidean_distance(left: Sequence[float], right: Sequence[float]) -> float:
    _require_same_dimension(left, right)
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(left, right)))


def normalize(vector: Sequence[float]) -> list[float]:
    """Scale `vector` to unit length; zero vectors are returned unchanged."""

    length = norm(vector)
    if length == 0.0:
        return list(vector)
    return [value / length for value in vector]


def mean(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Element-wise average of equally sized vectors.

    Raises:
        DimensionMismatchError: When any vector differs in length from the first.
    """

    if not vectors:
        return []

    dimension = len(vectors[0])
    totals = [0.0] * dimension
    for vector in vectors:
        if len(vector) != dimension:
            raise DimensionMismatchError(dimension, len(vector))
        for index, value in enumerate(vector):
            totals[index] += value

    count = len(vectors)
    return [total / count for total in totals]
