"""Store facade binding one storage backend and an optional embedder."""

from __future__ import annotations

from os import PathLike
from typing import Any, Optional, Sequence

from .contracts import EmbedderPort, StorageBackendPort
from .errors import DimensionMismatchError
from .types import Filters, MetadataInput
from .vectors.vector_policies import BackendKind, BackendKindInput, resolve_backend_kind
from .vectors.vector_types import Document, SearchResult


class VectorStore:
    """High-level document operations backed by a storage backend port."""

    def __init__(
        self,
        backend: StorageBackendPort,
        *,
        embedder: EmbedderPort | None = None,
    ) -> None:
        """Create a store.

        Args:
            backend: Concrete storage backend.
            embedder: Text embedder used by `search()` and by `add_document()`
                when no embedding is given. Embeddings passed in explicitly
                must match its dimension.
        """

        self.backend = backend
        self.embedder = embedder

    @property
    def kind(self) -> BackendKind:
        return self.backend.kind

    def add_document(
        self,
        doc_id: str,
        text: str,
        embedding: Optional[Sequence[float]] = None,
        metadata: MetadataInput = None,
    ) -> None:
        """Insert or fully replace the document stored under `doc_id`."""

        if embedding is None:
            embedding = self._require_embedder().embed(text)
        self._validate_vector_dimension(embedding)
        self.backend.add_document(doc_id, text, embedding, metadata)

    def search(
        self,
        text: str,
        *,
        top_k: int = 10,
        filters: Filters = None,
    ) -> list[SearchResult]:
        """Embed `text` and return the `top_k` most similar documents."""

        query_embedding = self._require_embedder().embed(text)
        return self.search_by_vector(query_embedding, top_k=top_k, filters=filters)

    def search_by_vector(
        self,
        embedding: Sequence[float],
        *,
        top_k: int = 10,
        filters: Filters = None,
    ) -> list[SearchResult]:
        self._validate_vector_dimension(embedding)
        return self.backend.search(embedding, top_k=top_k, filters=filters)

    def get_document(self, doc_id: str) -> Optional[Document]:
        return self.backend.get_document(doc_id)

    def get_all_documents(self) -> list[Document]:
        return self.backend.get_all_documents()

    def get_document_count(self) -> int:
        return self.backend.get_document_count()

    def delete_document(self, doc_id: str) -> bool:
        return self.backend.delete_document(doc_id)

    def create_indexes(self) -> None:
        self.backend.create_indexes()

    def export_to_jsonl(self, path: str | PathLike[str]) -> int:
        return self.backend.export_to_jsonl(path)

    def export_to_csv(self, path: str | PathLike[str]) -> int:
        return self.backend.export_to_csv(path)

    def close(self) -> None:
        self.backend.close()

    def __enter__(self) -> VectorStore:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def _require_embedder(self) -> EmbedderPort:
        if self.embedder is None:
            raise RuntimeError(
                "VectorStore has no embedder; pass embedder=... or use search_by_vector()."
            )
        return self.embedder

    def _validate_vector_dimension(self, vector: Sequence[float]) -> None:
        if self.embedder is None:
            return
        expected = self.embedder.dimension()
        if len(vector) != expected:
            raise DimensionMismatchError(expected, len(vector))


def open_backend(
    path: str | PathLike[str],
    kind: BackendKindInput | None = None,
) -> StorageBackendPort:
    """Open the backend selected by `kind`, or by the path suffix when omitted."""

    from ..ports.storage import JsonlStorageBackend, SQLiteStorageBackend

    resolved = resolve_backend_kind(path, kind)
    if resolved == BackendKind.JSONL:
        return JsonlStorageBackend(path)
    return SQLiteStorageBackend(path)


def open_store(
    path: str | PathLike[str],
    kind: BackendKindInput | None = None,
    *,
    embedder: EmbedderPort | None = None,
) -> VectorStore:
    """Open a `VectorStore` over the backend chosen for `path`."""

    return VectorStore(open_backend(path, kind), embedder=embedder)
