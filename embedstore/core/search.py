"""Exact top-K cosine ranking shared by every storage backend.

Every query scores the full (filtered) corpus, so cost is O(N * D) for N
documents of dimension D. There is no index acceleration: results are exact
and identical across backends.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from .vectors.vector_math import cosine_similarity
from .vectors.vector_types import Document, SearchResult


def normalize_filters(filters: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Coerce filter keys and values to strings; `None` becomes `{}`."""

    if not filters:
        return {}
    return {str(key): str(value) for key, value in filters.items()}


def match_filters(
    metadata: Mapping[str, str] | None,
    filters: Optional[Mapping[str, str]],
) -> bool:
    if not filters:
        return True
    if metadata is None:
        return False
    return all(key in metadata and metadata[key] == value for key, value in filters.items())


def rank_documents(
    documents: Iterable[Document],
    query_embedding: Sequence[float],
    *,
    top_k: int = 10,
    filters: Optional[Mapping[str, Any]] = None,
) -> list[SearchResult]:
    """Filter, score, and truncate `documents` against `query_embedding`.

    Raises:
        DimensionMismatchError: When any retained document's embedding length
            differs from the query. The whole call fails; nothing is skipped.
    """

    if top_k <= 0:
        return []

    query = [float(value) for value in query_embedding]
    required = normalize_filters(filters)

    scored: list[SearchResult] = []
    for document in documents:
        if not match_filters(document.metadata, required):
            continue
        score = cosine_similarity(query, document.embedding)
        scored.append(
            SearchResult(
                id=document.id,
                text=document.text,
                score=score,
                metadata=dict(document.metadata),
            )
        )

    # list.sort is stable: equal scores keep enumeration order.
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[:top_k]
