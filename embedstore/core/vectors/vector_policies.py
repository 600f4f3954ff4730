"""Storage backend kinds and helpers to resolve them from user input."""

from __future__ import annotations

from enum import Enum
from os import PathLike
from pathlib import Path


class BackendKind(str, Enum):
    """Supported persistence strategies."""

    SQLITE = "sqlite"
    JSONL = "jsonl"


BackendKindInput = str | BackendKind

JSONL_SUFFIX = ".jsonl"

_ALIASES = {
    "sqlite3": BackendKind.SQLITE,
    "db": BackendKind.SQLITE,
    "json": BackendKind.JSONL,
    "ndjson": BackendKind.JSONL,
}


def normalize_backend_kind(kind: BackendKindInput) -> BackendKind:
    """Normalize user backend input into a `BackendKind` value."""

    if isinstance(kind, BackendKind):
        return kind
    if isinstance(kind, str):
        key = kind.strip().lower()
        if key in BackendKind._value2member_map_:
            return BackendKind(key)
        if key in _ALIASES:
            return _ALIASES[key]
        allowed = sorted(set(BackendKind._value2member_map_.keys()) | set(_ALIASES.keys()))
        raise ValueError(f"Unsupported backend: {kind}. Supported: {allowed}")
    raise ValueError(f"Unsupported backend type: {type(kind).__name__}")


def backend_kind_for_path(path: str | PathLike[str]) -> BackendKind:
    """Pick the flat-file backend for `.jsonl` paths and SQLite for anything else."""

    if Path(path).suffix.lower() == JSONL_SUFFIX:
        return BackendKind.JSONL
    return BackendKind.SQLITE


def resolve_backend_kind(
    path: str | PathLike[str],
    kind: BackendKindInput | None = None,
) -> BackendKind:
    if kind is None:
        return backend_kind_for_path(path)
    return normalize_backend_kind(kind)
