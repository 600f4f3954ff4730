"""JSONL and CSV writers for full-corpus exports, plus the JSONL record reader."""

from __future__ import annotations

import csv
import json
import logging
from os import PathLike
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from .errors import StorageError
from .vectors.vector_types import Document, make_document

logger = logging.getLogger(__name__)

CSV_HEADER = ("id", "text", "embedding", "metadata")


def document_to_json_line(document: Document) -> str:
    return json.dumps(document.to_record(), ensure_ascii=False, separators=(",", ":"))


def document_from_record(record: Any) -> Document:
    """Build a `Document` from one decoded JSON line.

    Raises:
        ValueError: When the record is not an object or lacks a valid id,
            embedding, or metadata.
    """

    if not isinstance(record, Mapping):
        raise ValueError(f"JSONL record must be an object, got {type(record).__name__}")
    doc_id = record.get("id")
    if doc_id is None or str(doc_id) == "":
        raise ValueError("JSONL record is missing 'id'")
    embedding = record.get("embedding")
    if not isinstance(embedding, list) or not all(
        isinstance(value, (int, float)) and not isinstance(value, bool) for value in embedding
    ):
        raise ValueError(f"JSONL record {doc_id!r} has an invalid 'embedding'")
    metadata = record.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise ValueError(f"JSONL record {doc_id!r} has an invalid 'metadata'")
    return make_document(doc_id, record.get("text", ""), embedding, metadata)


def write_jsonl(path: str | PathLike[str], documents: Iterable[Document]) -> int:
    """Write one JSON object per line and return the number of documents written."""

    target = Path(path)
    count = 0
    try:
        with target.open("w", encoding="utf-8", newline="\n") as handle:
            for document in documents:
                handle.write(document_to_json_line(document))
                handle.write("\n")
                count += 1
    except OSError as exc:
        raise StorageError(f"Failed to write JSONL export {target}: {exc}") from exc
    logger.info("Exported %d documents to %s", count, target)
    return count


def write_csv(path: str | PathLike[str], documents: Iterable[Document]) -> int:
    """Write a CSV export with JSON-encoded embedding and metadata cells."""

    target = Path(path)
    count = 0
    try:
        with target.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(CSV_HEADER)
            for document in documents:
                writer.writerow(
                    [
                        document.id,
                        document.text,
                        json.dumps(list(document.embedding)),
                        json.dumps(dict(document.metadata), ensure_ascii=False),
                    ]
                )
                count += 1
    except OSError as exc:
        raise StorageError(f"Failed to write CSV export {target}: {exc}") from exc
    logger.info("Exported %d documents to %s", count, target)
    return count


def read_jsonl(path: str | PathLike[str], *, strict: bool = True) -> Iterator[Document]:
    """Yield documents from a JSONL file.

    Args:
        path: File to read.
        strict: Raise `ValueError` on malformed lines when true;
            log and skip them when false.
    """

    source = Path(path)
    with source.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            stripped = line.strip()
            if not stripped:
                continue
            try:
                yield document_from_record(json.loads(stripped))
            except ValueError as exc:
                if strict:
                    raise ValueError(f"{source}:{line_number}: {exc}") from exc
                logger.warning("Skipping malformed line %d in %s: %s", line_number, source, exc)
