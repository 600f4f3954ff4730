"""Core port contracts used by backends, embedders, and the store facade."""

from __future__ import annotations

from contextlib import AbstractContextManager
from os import PathLike
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

from .types import Filters, MaybeRow, MetadataInput, QueryParams, RowMapping
from .vectors.vector_policies import BackendKind
from .vectors.vector_types import Document, SearchResult


class DialectPort(Protocol):
    """Dialect behavior required by SQL-backed storage."""

    name: str
    supports_json: bool

    def q(self, ident: str) -> str: ...

    def placeholder(self, key: str) -> str: ...

    def can_extract_json_key(self, key: str) -> bool: ...

    def json_path(self, key: str) -> str: ...

    def json_extract(self, column: str, path_placeholder: str) -> str: ...


class DatabasePort(Protocol):
    """Database adapter behavior required by the relational backend."""

    dialect: DialectPort

    def transaction(self) -> AbstractContextManager[None]: ...

    def execute(self, sql: str, params: QueryParams = None) -> Any: ...

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow: ...

    def fetchall(self, sql: str, params: QueryParams = None) -> List[RowMapping]: ...

    def close(self) -> None: ...


class StorageBackendPort(Protocol):
    """Persistence behavior required by `VectorStore`."""

    kind: BackendKind
    path: Path

    def add_document(
        self,
        doc_id: str,
        text: str,
        embedding: Sequence[float],
        metadata: MetadataInput = None,
    ) -> None: ...

    def get_document(self, doc_id: str) -> Optional[Document]: ...

    def get_all_documents(self) -> List[Document]: ...

    def get_document_count(self) -> int: ...

    def delete_document(self, doc_id: str) -> bool: ...

    def search(
        self,
        query_embedding: Sequence[float],
        *,
        top_k: int = 10,
        filters: Filters = None,
    ) -> List[SearchResult]: ...

    def create_indexes(self) -> None: ...

    def export_to_jsonl(self, path: str | PathLike[str]) -> int: ...

    def export_to_csv(self, path: str | PathLike[str]) -> int: ...

    def close(self) -> None: ...


class EmbedderPort(Protocol):
    """Text-to-vector capability. The store never inspects how vectors are made."""

    def embed(self, text: str) -> List[float]: ...

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]: ...

    def dimension(self) -> int: ...

    def model_name(self) -> str: ...
