"""Public core API for documents, vector math, search, and the store facade."""

from .contracts import DatabasePort, DialectPort, EmbedderPort, StorageBackendPort
from .errors import CodecError, DimensionMismatchError, EmbedStoreError, StorageError
from .exporters import read_jsonl, write_csv, write_jsonl
from .search import match_filters, normalize_filters, rank_documents
from .store import VectorStore, open_backend, open_store
from .vectors.vector_codecs import VectorCodec, decode_vector, encode_vector
from .vectors.vector_math import (
    cosine_similarity,
    dot_product,
    euclidean_distance,
    mean,
    norm,
    normalize,
)
from .vectors.vector_policies import (
    BackendKind,
    BackendKindInput,
    backend_kind_for_path,
    normalize_backend_kind,
    resolve_backend_kind,
)
from .vectors.vector_types import Document, SearchResult, make_document

__all__ = [
    "DatabasePort",
    "DialectPort",
    "EmbedderPort",
    "StorageBackendPort",
    "EmbedStoreError",
    "CodecError",
    "DimensionMismatchError",
    "StorageError",
    "Document",
    "SearchResult",
    "make_document",
    "VectorCodec",
    "encode_vector",
    "decode_vector",
    "dot_product",
    "norm",
    "cosine_similarity",
    "euclidean_distance",
    "normalize",
    "mean",
    "BackendKind",
    "BackendKindInput",
    "backend_kind_for_path",
    "normalize_backend_kind",
    "resolve_backend_kind",
    "match_filters",
    "normalize_filters",
    "rank_documents",
    "read_jsonl",
    "write_jsonl",
    "write_csv",
    "VectorStore",
    "open_backend",
    "open_store",
]
