"""Writers that wrap another writer: hashing, capturing and rendering."""

from __future__ import annotations

import abc
import base64
import hashlib
from typing import Any, Callable, Protocol


class Writer(Protocol):
    """Anything that accepts bytes."""

    def write(self, data: bytes) -> Any: ...


class WrappingWriter(abc.ABC):
    """A writer layered over another one, which it exposes as wrapped_writer."""

    def __init__(self, writer: Writer):
        self.wrapped_writer = writer

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Accept data; return how many bytes were taken."""

    @abc.abstractmethod
    def close(self) -> None:
        """Finish, passing anything held back to the wrapped writer."""


class HashWriter(WrappingWriter):
    """Passes data through while computing its MD5 digest."""

    def __init__(self, writer: Writer):
        super().__init__(writer)
        self._hash = hashlib.md5()

    def hash(self) -> str:
        """Base64 of the digest of everything written so far."""
        return base64.b64encode(self._hash.digest()).decode("ascii")

    def write(self, data: bytes) -> int:
        self._hash.update(data)
        written = self.wrapped_writer.write(data)
        return len(data) if written is None else written

    def close(self) -> None:
        return None


class CaptureWriter(WrappingWriter):
    """Holds output back and hands it as text to a callback on close."""

    def __init__(self, writer: Writer, name: str, capture: Callable[[str, str], Any]):
        super().__init__(writer)
        self.name = name
        self._capture = capture
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def close(self) -> None:
        self._capture(self.name, self._buffer.decode("utf-8", errors="replace"))


class RenderWriter(WrappingWriter):
    """Holds output back and writes it through a renderer on close.

    An empty renderer name passes data straight through.
    """

    def __init__(self, writer: Writer, renderer: str, context: Any):
        # Imported here: the registry's renderers may themselves import writers.
        from prudence.platform.registry import get_renderer

        super().__init__(writer)
        self._render = get_renderer(renderer)
        self.context = context
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        if self._render is None:
            written = self.wrapped_writer.write(data)
            return len(data) if written is None else written
        self._buffer.extend(data)
        return len(data)

    def close(self) -> None:
        if self._render is None:
            return
        content = self._render(self._buffer.decode("utf-8", errors="replace"), self.context)
        self.wrapped_writer.write(content.encode("utf-8"))