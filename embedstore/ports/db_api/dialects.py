"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

import re

_SIMPLE_JSON_KEY_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


class Dialect:
    """Base dialect that defines SQL quoting, placeholder, and JSON behavior."""

    name: str = "generic"
    quote_char: str = '"'
    supports_json: bool = False

    def q(self, ident: str) -> str:
        """Quote SQL identifier."""

        escaped = ident.replace(self.quote_char, self.quote_char * 2)
        return f"{self.quote_char}{escaped}{self.quote_char}"

    def placeholder(self, key: str) -> str:
        """Return the named-style placeholder bound from a params dict."""

        return f":{key}"

    def can_extract_json_key(self, key: str) -> bool:
        """Return whether `key` can be pushed into a JSON extraction predicate."""

        return self.supports_json and bool(_SIMPLE_JSON_KEY_RE.fullmatch(key))

    def json_path(self, key: str) -> str:
        return f'$."{key}"'

    def json_extract(self, column: str, path_placeholder: str) -> str:
        """Return SQL extracting the JSON path bound at `path_placeholder` from `column`."""

        raise NotImplementedError(f"{type(self).__name__} does not support JSON extraction")


class SQLiteDialect(Dialect):
    """SQLite dialect (JSON1 `json_extract`)."""

    name = "sqlite"
    quote_char = '"'
    supports_json = True

    def json_extract(self, column: str, path_placeholder: str) -> str:
        return f"json_extract({self.q(column)}, {path_placeholder})"
