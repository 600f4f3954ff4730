"""embedstore: persist text documents with embeddings and rank them by cosine similarity."""

from .core import (
    BackendKind,
    CodecError,
    DimensionMismatchError,
    Document,
    EmbedderPort,
    EmbedStoreError,
    SearchResult,
    StorageBackendPort,
    StorageError,
    VectorCodec,
    VectorStore,
    backend_kind_for_path,
    cosine_similarity,
    decode_vector,
    dot_product,
    encode_vector,
    euclidean_distance,
    mean,
    norm,
    normalize,
    normalize_backend_kind,
    open_backend,
    open_store,
    rank_documents,
    read_jsonl,
)
from .embedders import BuiltinSmallEmbedder
from .ports import (
    Database,
    Dialect,
    JsonlStorageBackend,
    SQLiteDialect,
    SQLiteStorageBackend,
)

__all__ = [
    "BackendKind",
    "BuiltinSmallEmbedder",
    "CodecError",
    "Database",
    "Dialect",
    "DimensionMismatchError",
    "Document",
    "EmbedderPort",
    "EmbedStoreError",
    "JsonlStorageBackend",
    "SQLiteDialect",
    "SQLiteStorageBackend",
    "SearchResult",
    "StorageBackendPort",
    "StorageError",
    "VectorCodec",
    "VectorStore",
    "backend_kind_for_path",
    "cosine_similarity",
    "decode_vector",
    "dot_product",
    "encode_vector",
    "euclidean_distance",
    "mean",
    "norm",
    "normalize",
    "normalize_backend_kind",
    "open_backend",
    "open_store",
    "rank_documents",
    "read_jsonl",
]
