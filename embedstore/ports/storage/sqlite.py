"""SQLite storage backend keeping documents and packed embeddings in two tables.

Documents and embeddings are linked 1:1 by id with `ON DELETE CASCADE`.
Each `add_document` upserts both rows inside one transaction. Reads are not
wrapped in transactions, so another process's uncommitted write may be
visible if the engine does not isolate it; multi-writer use is unsupported.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from os import PathLike
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from ...core.contracts import DatabasePort
from ...core.errors import StorageError
from ...core.exporters import write_csv, write_jsonl
from ...core.search import normalize_filters, rank_documents
from ...core.types import Filters, MetadataInput
from ...core.vectors.vector_codecs import decode_vector, encode_vector
from ...core.vectors.vector_policies import BackendKind
from ...core.vectors.vector_types import Document, SearchResult, make_document
from ..db_api.database import Database
from ..db_api.dialects import SQLiteDialect

logger = logging.getLogger(__name__)

_DOCUMENTS_TABLE = "documents"
_EMBEDDINGS_TABLE = "embeddings"

# Conventional metadata field covered by `create_indexes`.
INDEXED_METADATA_FIELD = "category"


class SQLiteStorageBackend:
    """Durable, transactional document store backed by a SQLite file."""

    kind = BackendKind.SQLITE

    def __init__(
        self,
        path: str | PathLike[str],
        *,
        db: DatabasePort | None = None,
        timeout: float = 5.0,
    ) -> None:
        """Open (and create if needed) the database at `path`.

        Args:
            path: SQLite file path, or `":memory:"`.
            db: Pre-built database adapter; a new SQLite connection is opened
                when omitted.
            timeout: Seconds to wait on a locked database file.
        """

        self.path = Path(path)
        self._closed = False
        if db is None:
            try:
                conn = sqlite3.connect(str(path), timeout=timeout, isolation_level=None)
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to open SQLite database {path}: {exc}") from exc
            db = Database(conn, SQLiteDialect())
        self._db = db

        try:
            self._create_tables()
        except sqlite3.Error as exc:
            self._db.close()
            self._closed = True
            raise StorageError(f"Failed to initialize SQLite database {path}: {exc}") from exc
        logger.debug("Opened SQLite backend at %s", self.path)

    def add_document(
        self,
        doc_id: str,
        text: str,
        embedding: Sequence[float],
        metadata: MetadataInput = None,
    ) -> None:
        self._require_open()
        document = make_document(doc_id, text, embedding, metadata)
        blob = encode_vector(document.embedding)

        documents_sql = (
            f"INSERT INTO {self._q(_DOCUMENTS_TABLE)} "
            '("id", "text", "metadata") '
            f"VALUES ({self._p('id')}, {self._p('text')}, {self._p('metadata')}) "
            'ON CONFLICT ("id") DO UPDATE SET '
            '"text" = excluded."text", '
            '"metadata" = excluded."metadata";'
        )
        embeddings_sql = (
            f"INSERT INTO {self._q(_EMBEDDINGS_TABLE)} "
            '("id", "dim", "vec") '
            f"VALUES ({self._p('id')}, {self._p('dim')}, {self._p('vec')}) "
            'ON CONFLICT ("id") DO UPDATE SET '
            '"dim" = excluded."dim", '
            '"vec" = excluded."vec";'
        )

        try:
            with self._db.transaction():
                self._db.execute(
                    documents_sql,
                    {
                        "id": document.id,
                        "text": document.text,
                        "metadata": _serialize_metadata(document.metadata),
                    },
                )
                self._db.execute(
                    embeddings_sql,
                    {"id": document.id, "dim": document.dimension, "vec": blob},
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to add document {document.id!r}: {exc}") from exc

    def get_document(self, doc_id: str) -> Optional[Document]:
        self._require_open()
        row = self._fetchone(
            f"{self._select_sql()} WHERE d.\"id\" = {self._p('id')};",
            {"id": str(doc_id)},
        )
        if row is None:
            orphan = self._fetchone(
                f'SELECT "id" FROM {self._q(_EMBEDDINGS_TABLE)} '
                f'WHERE "id" = {self._p("id")};',
                {"id": str(doc_id)},
            )
            if orphan is not None:
                raise StorageError(f"Embedding {doc_id!r} has no matching document row")
            return None
        return self._row_to_document(row)

    def get_all_documents(self) -> list[Document]:
        self._require_open()
        self._check_orphan_embeddings()
        rows = self._fetchall(f'{self._select_sql()} ORDER BY d.rowid ASC;')
        return [self._row_to_document(row) for row in rows]

    def get_document_count(self) -> int:
        self._require_open()
        row = self._fetchone(f'SELECT COUNT(*) AS "count" FROM {self._q(_DOCUMENTS_TABLE)};')
        return int(row["count"]) if row is not None else 0

    def delete_document(self, doc_id: str) -> bool:
        """Delete one document; the embedding row goes with it via cascade."""

        self._require_open()
        sql = f'DELETE FROM {self._q(_DOCUMENTS_TABLE)} WHERE "id" = {self._p("id")};'
        try:
            with self._db.transaction():
                cursor = self._db.execute(sql, {"id": str(doc_id)})
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to delete document {doc_id!r}: {exc}") from exc
        return bool(getattr(cursor, "rowcount", 0) > 0)

    def search(
        self,
        query_embedding: Sequence[float],
        *,
        top_k: int = 10,
        filters: Filters = None,
    ) -> list[SearchResult]:
        """Rank stored documents by cosine similarity to `query_embedding`.

        Filter keys the dialect can extract are pushed into the SQL predicate;
        the shared ranking re-applies every filter, so results match the
        in-memory algorithm exactly.
        """

        self._require_open()
        if top_k <= 0:
            return []

        required = normalize_filters(filters)
        where_clauses: list[str] = []
        params: dict[str, Any] = {}
        dialect = self._db.dialect
        for idx, (key, value) in enumerate(required.items(), start=1):
            if not dialect.can_extract_json_key(key):
                continue
            path_name = f"path_{idx}"
            value_name = f"value_{idx}"
            where_clauses.append(
                f"{dialect.json_extract('metadata', self._p(path_name))} = {self._p(value_name)}"
            )
            params[path_name] = dialect.json_path(key)
            params[value_name] = value

        where_sql = f" WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        self._check_orphan_embeddings()
        rows = self._fetchall(
            f'{self._select_sql()}{where_sql} ORDER BY d.rowid ASC;',
            params or None,
        )
        documents = (self._row_to_document(row) for row in rows)
        return rank_documents(documents, query_embedding, top_k=top_k, filters=required)

    def create_indexes(self) -> None:
        """Add secondary indexes on the conventional metadata field and on text.

        Indexes only change latency. Failures (for example a SQLite build without
        JSON support) are logged and ignored.
        """

        self._require_open()
        path_literal = "'$." + INDEXED_METADATA_FIELD + "'"
        statements = [
            f"CREATE INDEX IF NOT EXISTS {self._q('idx_documents_' + INDEXED_METADATA_FIELD)} "
            f"ON {self._q(_DOCUMENTS_TABLE)} "
            f'(json_extract("metadata", {path_literal}));',
            f"CREATE INDEX IF NOT EXISTS {self._q('idx_documents_text')} "
            f'ON {self._q(_DOCUMENTS_TABLE)} ("text");',
        ]
        for sql in statements:
            try:
                self._db.execute(sql)
            except sqlite3.Error as exc:
                logger.warning("Skipping index creation on %s: %s", self.path, exc)

    def export_to_jsonl(self, path: str | PathLike[str]) -> int:
        return write_jsonl(path, self.get_all_documents())

    def export_to_csv(self, path: str | PathLike[str]) -> int:
        return write_csv(path, self.get_all_documents())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._db.close()
        logger.debug("Closed SQLite backend at %s", self.path)

    def __enter__(self) -> SQLiteStorageBackend:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def _create_tables(self) -> None:
        self._db.execute("PRAGMA foreign_keys = ON;")
        self._db.execute(
            f"""CREATE TABLE IF NOT EXISTS {self._q(_DOCUMENTS_TABLE)} (
            "id" TEXT PRIMARY KEY,
            "text" TEXT NOT NULL,
            "metadata" TEXT NOT NULL DEFAULT '{{}}'
        );"""
        )
        self._db.execute(
            f"""CREATE TABLE IF NOT EXISTS {self._q(_EMBEDDINGS_TABLE)} (
            "id" TEXT PRIMARY KEY,
            "dim" INTEGER NOT NULL,
            "vec" BLOB NOT NULL,
            FOREIGN KEY ("id") REFERENCES {self._q(_DOCUMENTS_TABLE)} ("id") ON DELETE CASCADE
        );"""
        )

    def _check_orphan_embeddings(self) -> None:
        row = self._fetchone(
            f'SELECT e."id" AS "id" FROM {self._q(_EMBEDDINGS_TABLE)} e '
            f'LEFT JOIN {self._q(_DOCUMENTS_TABLE)} d ON d."id" = e."id" '
            'WHERE d."id" IS NULL LIMIT 1;'
        )
        if row is not None:
            raise StorageError(f"Embedding {row['id']!r} has no matching document row")

    def _select_sql(self) -> str:
        return (
            'SELECT d."id" AS "id", d."text" AS "text", d."metadata" AS "metadata", '
            'e."dim" AS "dim", e."vec" AS "vec" '
            f"FROM {self._q(_DOCUMENTS_TABLE)} d "
            f'LEFT JOIN {self._q(_EMBEDDINGS_TABLE)} e ON e."id" = d."id"'
        )

    def _row_to_document(self, row: Mapping[str, Any]) -> Document:
        doc_id = str(row["id"])
        if row["vec"] is None or row["dim"] is None:
            raise StorageError(f"Document {doc_id!r} has no matching embedding row")
        embedding = decode_vector(row["vec"], int(row["dim"]))
        return Document(
            id=doc_id,
            text=str(row["text"]),
            embedding=tuple(embedding),
            metadata=_deserialize_metadata(doc_id, row["metadata"]),
        )

    def _fetchone(self, sql: str, params: Any = None) -> Mapping[str, Any] | None:
        try:
            return self._db.fetchone(sql, params)
        except sqlite3.Error as exc:
            raise StorageError(f"SQLite read failed on {self.path}: {exc}") from exc

    def _fetchall(self, sql: str, params: Any = None) -> list[Mapping[str, Any]]:
        try:
            return list(self._db.fetchall(sql, params))
        except sqlite3.Error as exc:
            raise StorageError(f"SQLite read failed on {self.path}: {exc}") from exc

    def _require_open(self) -> None:
        if self._closed:
            raise StorageError(f"SQLite backend {self.path} is closed")

    def _q(self, ident: str) -> str:
        return self._db.dialect.q(ident)

    def _p(self, key: str) -> str:
        return self._db.dialect.placeholder(key)


def _serialize_metadata(metadata: Mapping[str, str]) -> str:
    return json.dumps(dict(metadata), ensure_ascii=False, separators=(",", ":"))


def _deserialize_metadata(doc_id: str, value: Any) -> dict[str, str]:
    if value is None or value == "":
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    try:
        loaded = json.loads(value)
    except ValueError as exc:
        raise StorageError(f"Document {doc_id!r} has malformed metadata JSON") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, Mapping):
        raise StorageError(f"Document {doc_id!r} metadata must decode to an object")
    return {str(key): str(item) for key, item in loaded.items()}
