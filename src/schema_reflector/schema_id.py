"""Brief: Schema identifier (URI) helpers used by reference management.

Inputs:
  - None at import time.

Outputs:
  - ID: immutable ``str`` subclass with add/anchor/definition/base operations.
  - json_pointer(): escape a definition name for use inside a ``$ref``.
  - to_kebab_case(): derive the ``$id`` path segment from a type name.
"""

from __future__ import annotations

import re
from functools import lru_cache
from urllib.parse import quote, urlsplit

_CAMEL_1 = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_2 = re.compile(r"([a-z0-9])([A-Z])")


class ID(str):
    """Brief: A JSON Schema identifier, which should always be a URI.

    Inputs:
      - value: URI text, e.g. ``https://example.com/schemas``.

    Outputs:
      - ID instance; every operation returns a new ID and never mutates.

    Example:
      >>> ID("https://example.com/schema").add("user").anchor("Name")
      'https://example.com/schema/user#Name'
    """

    __slots__ = ()

    def add(self, path: str) -> "ID":
        """Append a path segment, dropping any fragment already present."""

        if not path.startswith("/"):
            path = "/" + path
        return ID(str(self.base()) + path)

    def anchor(self, name: str) -> "ID":
        """Add or replace the anchor fragment."""

        return ID(f"{self.base()}#{name}")

    def definition(self, name: str) -> "ID":
        """Add or replace a ``#/$defs/<name>`` fragment."""

        return ID(f"{self.base()}#/$defs/{name}")

    def base(self) -> "ID":
        """Strip any fragment and trailing slashes, leaving the bare identifier."""

        text = str(self)
        idx = text.rfind("#")
        if idx != -1:
            text = text[:idx]
        return ID(text.rstrip("/"))

    def validate(self) -> None:
        """Brief: Check the identifier looks like an absolute http(s) URL.

        Inputs:
          - None.

        Outputs:
          - None on success.

        Raises:
          - ValueError: with a message naming the first failed check (empty,
            unparsable, scheme, hostname plausibility, missing path).
        """

        text = str(self)
        if not text:
            raise ValueError("ID is empty")
        try:
            parts = urlsplit(text)
            hostname = parts.hostname or ""
        except ValueError as exc:
            raise ValueError(f"invalid URL: {exc}") from exc
        if not hostname:
            raise ValueError("missing hostname")
        if "." not in hostname:
            raise ValueError("hostname does not look valid")
        if not parts.path:
            raise ValueError("path is expected")
        if parts.scheme not in ("http", "https"):
            raise ValueError("unexpected schema")


EMPTY_ID = ID("")


def json_pointer(path: str) -> str:
    """Escape ``path`` so it forms a valid JSON pointer segment inside a URI."""

    path = path.replace("~", "~0").replace("/", "~1")
    return quote(path, safe="$&+:=@")


@lru_cache(maxsize=1024)
def to_kebab_case(name: str) -> str:
    """Convert ``CamelCase`` type names into ``camel-case`` path segments."""

    s1 = _CAMEL_1.sub(r"\1-\2", name)
    s2 = _CAMEL_2.sub(r"\1-\2", s1)
    return s2.replace("_", "-").lower()
