"""Storage backend exports."""

from .jsonl import JsonlStorageBackend
from .sqlite import SQLiteStorageBackend

__all__ = [
    "JsonlStorageBackend",
    "SQLiteStorageBackend",
]
