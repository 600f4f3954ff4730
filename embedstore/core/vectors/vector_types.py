"""Shared document entities used by storage backends and the store facade."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .vector_codecs import to_stored_precision


@dataclass(frozen=True)
class Document:
    """Represents one stored document together with its embedding."""

    id: str
    text: str
    embedding: tuple[float, ...]
    metadata: Mapping[str, str] = field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_record(self) -> dict[str, Any]:
        """Return the JSON-ready line shape used by JSONL files and exports."""

        return {
            "id": self.id,
            "text": self.text,
            "embedding": list(self.embedding),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class SearchResult:
    """Represents one scored hit returned by a similarity query."""

    id: str
    text: str
    score: float
    metadata: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self, *, precision: int | None = None) -> dict[str, Any]:
        score = round(self.score, precision) if precision is not None else self.score
        return {
            "id": self.id,
            "score": score,
            "text": self.text,
            "metadata": dict(self.metadata),
        }


def make_document(
    doc_id: str,
    text: str,
    embedding: Sequence[float],
    metadata: Mapping[str, Any] | None = None,
) -> Document:
    """Build a `Document` with float32-precision embedding values and str metadata.

    Every backend holds the same rounded values, so scores and ties agree
    across backends.

    Raises:
        ValueError: When the id is empty or the embedding has no values.
        CodecError: When an embedding value is not numeric or overflows float32.
    """

    if doc_id is None or str(doc_id) == "":
        raise ValueError("document id must be a non-empty string")
    if len(embedding) == 0:
        raise ValueError(f"embedding for document {doc_id!r} must not be empty")
    return Document(
        id=str(doc_id),
        text=str(text),
        embedding=tuple(to_stored_precision(embedding)),
        metadata={str(key): str(value) for key, value in (metadata or {}).items()},
    )
