"""DB-API adapter implementation for the core database port."""

from __future__ import annotations

import contextlib
from typing import Any, Iterator

from ...core.types import MaybeRow, QueryParams, RowMapping, Rows
from .dialects import Dialect


class Database:
    """DB-API connection wrapper returning rows as column-keyed dicts.

    Statements run on the connection as given. `transaction()` opens an
    explicit `BEGIN` when the connection is in autocommit mode
    (`isolation_level=None`), so grouped writes commit or roll back together.
    """

    def __init__(self, conn: Any, dialect: Dialect):
        self.conn: Any | None = conn
        self.dialect = dialect
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit on normal exit, roll back on any exception."""

        conn = self._connection()
        if conn.isolation_level is None and not conn.in_transaction:
            conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            conn.rollback()
            raise
        conn.commit()

    def execute(self, sql: str, params: QueryParams = None) -> Any:
        cursor = self._connection().cursor()
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, params)
        return cursor

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow:
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        if row is None:
            return None
        return _as_mapping(cursor, row)

    def fetchall(self, sql: str, params: QueryParams = None) -> Rows:
        cursor = self.execute(sql, params)
        return [_as_mapping(cursor, row) for row in cursor.fetchall()]

    def close(self) -> None:
        """Close the underlying connection. Safe to call more than once."""

        if self._closed:
            return
        conn, self.conn = self.conn, None
        self._closed = True
        if conn is not None:
            conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def _connection(self) -> Any:
        if self._closed or self.conn is None:
            raise RuntimeError("connection is closed")
        return self.conn


def _as_mapping(cursor: Any, row: Any) -> RowMapping:
    if not cursor.description:
        raise TypeError("Cursor has no description; cannot map row to column names.")
    return dict(zip((column[0] for column in cursor.description), row))
