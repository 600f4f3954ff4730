"""Shared core type aliases used across contracts, backends, and the store facade."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

MetadataInput = Optional[Mapping[str, Any]]
Filters = Optional[Mapping[str, Any]]

NamedParams = Dict[str, Any]
PositionalParams = List[Any]
QueryParams = Union[NamedParams, PositionalParams, None]

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]
MaybeRow = Optional[RowMapping]
