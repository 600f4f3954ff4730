"""JSONL storage backend that keeps the whole corpus in memory.

The file is read once at construction. Every mutation rewrites the whole file
from the in-memory map, which is simple and non-incremental. Two processes
opening the same path each work on their own snapshot and the last rewrite
wins: use one writer process per file.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from os import PathLike
from pathlib import Path
from typing import Any, Optional, Sequence

from ...core.errors import StorageError
from ...core.exporters import (
    document_from_record,
    document_to_json_line,
    write_csv,
    write_jsonl,
)
from ...core.search import rank_documents
from ...core.types import Filters, MetadataInput
from ...core.vectors.vector_policies import BackendKind
from ...core.vectors.vector_types import Document, SearchResult, make_document

logger = logging.getLogger(__name__)


class JsonlStorageBackend:
    """Flat-file document store with one JSON record per line."""

    kind = BackendKind.JSONL

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)
        self._documents: dict[str, Document] = {}
        self._closed = False
        self._load()
        logger.debug("Opened JSONL backend at %s (%d documents)", self.path, len(self._documents))

    def add_document(
        self,
        doc_id: str,
        text: str,
        embedding: Sequence[float],
        metadata: MetadataInput = None,
    ) -> None:
        self._require_open()
        document = make_document(doc_id, text, embedding, metadata)
        previous = self._documents.get(document.id)
        self._documents[document.id] = document
        try:
            self._save()
        except StorageError:
            if previous is None:
                del self._documents[document.id]
            else:
                self._documents[document.id] = previous
            raise

    def get_document(self, doc_id: str) -> Optional[Document]:
        self._require_open()
        return self._documents.get(str(doc_id))

    def get_all_documents(self) -> list[Document]:
        self._require_open()
        return list(self._documents.values())

    def get_document_count(self) -> int:
        self._require_open()
        return len(self._documents)

    def delete_document(self, doc_id: str) -> bool:
        self._require_open()
        key = str(doc_id)
        previous = self._documents.pop(key, None)
        if previous is None:
            return False
        try:
            self._save()
        except StorageError:
            self._documents[key] = previous
            raise
        return True

    def search(
        self,
        query_embedding: Sequence[float],
        *,
        top_k: int = 10,
        filters: Filters = None,
    ) -> list[SearchResult]:
        self._require_open()
        return rank_documents(
            self._documents.values(),
            query_embedding,
            top_k=top_k,
            filters=filters,
        )

    def create_indexes(self) -> None:
        """JSONL files have no indexes; kept for interface parity."""

    def export_to_jsonl(self, path: str | PathLike[str]) -> int:
        self._require_open()
        if self.path.exists() and _same_file(Path(path), self.path):
            return len(self._documents)
        return write_jsonl(path, self._documents.values())

    def export_to_csv(self, path: str | PathLike[str]) -> int:
        self._require_open()
        return write_csv(path, self._documents.values())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Closed JSONL backend at %s", self.path)

    def __enter__(self) -> JsonlStorageBackend:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    stripped = line.strip()
                    if not stripped:
                        continue
                    try:
                        document = document_from_record(json.loads(stripped))
                    except ValueError as exc:
                        logger.warning(
                            "Skipping malformed line %d in %s: %s", line_number, self.path, exc
                        )
                        continue
                    self._documents[document.id] = document
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to read JSONL file {self.path}: {exc}") from exc

    def _save(self) -> None:
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as exc:
            raise StorageError(f"Failed to write JSONL file {self.path}: {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                for document in self._documents.values():
                    handle.write(document_to_json_line(document))
                    handle.write("\n")
            os.replace(tmp_name, self.path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write JSONL file {self.path}: {exc}") from exc
        logger.debug("Rewrote %s with %d documents", self.path, len(self._documents))

    def _require_open(self) -> None:
        if self._closed:
            raise StorageError(f"JSONL backend {self.path} is closed")


def _same_file(left: Path, right: Path) -> bool:
    try:
        return left.resolve() == right.resolve()
    except OSError:
        return False

