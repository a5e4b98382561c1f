"""Header names and a case-insensitive, multi-valued header collection."""

from __future__ import annotations

import string
from collections.abc import Iterable, Iterator, Mapping
from typing import Union

HEADER_ACCEPT = "Accept"
HEADER_ACCEPT_ENCODING = "Accept-Encoding"
HEADER_CACHE_CONTROL = "Cache-Control"
HEADER_CONTENT_ENCODING = "Content-Encoding"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_ETAG = "ETag"
HEADER_IF_MODIFIED_SINCE = "If-Modified-Since"
HEADER_IF_NONE_MATCH = "If-None-Match"
HEADER_LAST_MODIFIED = "Last-Modified"
HEADER_LOCATION = "Location"
HEADER_PRUDENCE_CACHED = "X-Prudence-Cached"
HEADER_SERVER = "Server"

_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")

_HeaderValues = Union[str, Iterable[str]]


def _canonical(name: str) -> str:
    """Canonical form of a header name, e.g. "content-type" -> "Content-Type"."""
    if not name or any(char not in _TOKEN_CHARS for char in name):
        return name
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


class Headers:
    """HTTP headers: names are case-insensitive and may carry several values."""

    def __init__(
        self,
        items: Mapping[str, _HeaderValues] | Iterable[tuple[str, _HeaderValues]] | None = None,
    ):
        self._values: dict[str, list[str]] = {}
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for name, value in pairs:
            if isinstance(value, str):
                self.add(name, value)
            else:
                for each in value:
                    self.add(name, each)

    def get(self, name: str, default: str = "") -> str:
        """Return the first value of a header, or default."""
        values = self._values.get(_canonical(name))
        return values[0] if values else default

    def get_all(self, name: str) -> list[str]:
        """Return every value of a header."""
        return list(self._values.get(_canonical(name), ()))

    def set(self, name: str, value: str) -> None:
        """Replace all values of a header with one value."""
        self._values[_canonical(name)] = [value]

    def add(self, name: str, value: str) -> None:
        """Append a value to a header."""
        self._values.setdefault(_canonical(name), []).append(value)

    def delete(self, name: str) -> None:
        """Remove a header entirely."""
        self._values.pop(_canonical(name), None)

    def items(self) -> Iterator[tuple[str, list[str]]]:
        """Yield (canonical name, values) pairs."""
        for name, values in list(self._values.items()):
            yield name, list(values)

    def copy(self) -> Headers:
        """Return an independent copy."""
        duplicate = Headers()
        duplicate._values = {name: list(values) for name, values in self._values.items()}
        return duplicate

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _canonical(name) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"


def copy_bytes(data: bytes | bytearray | memoryview) -> bytes:
    """Return an independent bytes copy of data."""
    return bytes(data)