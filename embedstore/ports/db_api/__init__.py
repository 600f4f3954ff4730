"""DB-API adapter and dialect exports."""

from .database import Database
from .dialects import Dialect, SQLiteDialect

__all__ = [
    "Database",
    "Dialect",
    "SQLiteDialect",
]
