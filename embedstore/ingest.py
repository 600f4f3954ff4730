"""CSV ingestion: read rows, embed them in batches, and add them to a store."""

from __future__ import annotations

import csv
import logging
from os import PathLike
from pathlib import Path
from typing import Iterator, Sequence

from .core.contracts import EmbedderPort
from .core.store import VectorStore
from .core.vectors.vector_math import normalize

logger = logging.getLogger(__name__)

CsvRow = tuple[str, str, dict[str, str]]


def iter_csv_rows(
    path: str | PathLike[str],
    id_column: str,
    text_column: str,
    meta_columns: Sequence[str] = (),
) -> Iterator[CsvRow]:
    """Yield `(id, text, metadata)` for each well-formed CSV row.

    Rows whose field count differs from the header are skipped. Metadata
    columns missing from the header are ignored.

    Raises:
        ValueError: When the header is missing or lacks the id/text column.
    """

    source = Path(path)
    with source.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle)
        header = next(reader, None)
        if not header:
            raise ValueError(f"Failed to read CSV header from {source}")

        if id_column not in header:
            raise ValueError(f"ID column {id_column!r} not found in CSV")
        if text_column not in header:
            raise ValueError(f"Text column {text_column!r} not found in CSV")

        id_index = header.index(id_column)
        text_index = header.index(text_column)
        meta_indices = {
            column: header.index(column) for column in meta_columns if column in header
        }

        for row in reader:
            if len(row) != len(header):
                logger.debug("Skipping malformed CSV row at line %d", reader.line_num)
                continue
            metadata = {column: row[index] for column, index in meta_indices.items()}
            yield row[id_index], row[text_index], metadata


def build_from_csv(
    store: VectorStore,
    embedder: EmbedderPort,
    csv_path: str | PathLike[str],
    *,
    id_column: str,
    text_column: str,
    meta_columns: Sequence[str] = (),
    batch_size: int = 1024,
    normalize_embeddings: bool = False,
) -> int:
    """Embed every CSV row and add it to `store`; return the processed count."""

    if batch_size <= 0:
        raise ValueError("batch_size must be > 0")

    processed = 0
    batch: list[CsvRow] = []
    for row in iter_csv_rows(csv_path, id_column, text_column, meta_columns):
        batch.append(row)
        if len(batch) >= batch_size:
            processed += _add_batch(store, embedder, batch, normalize_embeddings)
            logger.info("Processed %d documents...", processed)
            batch = []

    if batch:
        processed += _add_batch(store, embedder, batch, normalize_embeddings)

    logger.info("Total processed: %d documents", processed)
    return processed


def _add_batch(
    store: VectorStore,
    embedder: EmbedderPort,
    batch: Sequence[CsvRow],
    normalize_embeddings: bool,
) -> int:
    embeddings = embedder.embed_batch([text for _, text, _ in batch])
    for (doc_id, text, metadata), embedding in zip(batch, embeddings):
        if normalize_embeddings:
            embedding = normalize(embedding)
        store.add_document(doc_id, text, embedding, metadata)
    return len(batch)
