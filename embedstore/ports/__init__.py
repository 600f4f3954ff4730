"""Public port exports for concrete adapter implementations."""

from .db_api import Database, Dialect, SQLiteDialect
from .storage import JsonlStorageBackend, SQLiteStorageBackend

__all__ = [
    "Database",
    "Dialect",
    "SQLiteDialect",
    "JsonlStorageBackend",
    "SQLiteStorageBackend",
]
