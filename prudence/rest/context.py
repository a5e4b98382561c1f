"""Per-request state handed to handlers, with writer layering and caching."""

from __future__ import annotations

import copy as _copy
import io
import json
import logging
import time
from http import HTTPStatus
from typing import Any, Callable

import yaml

from prudence.platform.cache import CachedRepresentation, CacheKey, get_cache_backend
from prudence.platform.encoding import EncodingType
from prudence.rest.common import (
    HEADER_ACCEPT_ENCODING,
    HEADER_CACHE_CONTROL,
    HEADER_CONTENT_ENCODING,
    HEADER_IF_MODIFIED_SINCE,
    HEADER_IF_NONE_MATCH,
    HEADER_LOCATION,
    HEADER_PRUDENCE_CACHED,
    HEADER_SERVER,
)
from prudence.rest.encoding import get_encoding_type, negotiate_best, parse_encoding_preferences
from prudence.rest.request import Request
from prudence.rest.response import Response, _parse_http_time
from prudence.rest.writers import CaptureWriter, HashWriter, RenderWriter, WrappingWriter

log = logging.getLogger("prudence.rest")

_UNCACHED_HEADERS = frozenset((HEADER_CACHE_CONTROL, HEADER_SERVER, HEADER_PRUDENCE_CACHED))


class Context:
    """Everything a handler needs for one request."""

    def __init__(self, request: Request, response: Response | None = None):
        self.request = request
        self.response = response if response is not None else Response()
        self.log = log
        self.name = ""
        self.debug = False
        self.path = request.path[1:]
        self.variables: dict[str, Any] = {}
        self.done = False
        self.created = False
        self.is_async = False
        self.cache_duration = 0.0
        self.cache_key = ""
        self.cache_groups: list[str] = []
        self.writer: Any = self.response.buffer

    def add_name(self, name: str) -> Context:
        """A copy whose name has name appended; self if name is empty."""
        if not name:
            return self
        context = self.copy()
        context.name = f"{context.name}.{name}" if context.name else name
        context.log = log.getChild(context.name)
        return context

    def copy(self) -> Context:
        """A copy sharing request, response and writer, with its own variables."""
        context = Context(self.request, self.response)
        context.log = self.log
        context.name = self.name
        context.debug = self.debug
        context.path = self.path
        context.variables = _copy.deepcopy(self.variables)
        context.writer = self.writer
        return context

    def redirect(self, url: str, status: int = 0) -> None:
        """Reset the response into a redirect; raise ValueError for a non-3xx status."""
        if status == 0:
            status = int(HTTPStatus.FOUND)
        elif status < 300 or status >= 400:
            raise ValueError(f"not a redirect code: {status}")
        self.response.reset()
        self.response.status = status
        self.response.headers.set(HEADER_LOCATION, url)

    def start_capture(self, name: str) -> None:
        """Hold output back until end_capture, then store it as a variable."""
        self.writer = CaptureWriter(self.writer, name, self.variables.__setitem__)

    def end_capture(self) -> None:
        if not isinstance(self.writer, CaptureWriter):
            raise RuntimeError("did not call startCapture()")
        writer = self.writer
        try:
            writer.close()
        finally:
            self.writer = writer.wrapped_writer

    def start_render(self, renderer: str) -> None:
        """Pass output through a renderer until end_render; ValueError if unknown."""
        self.writer = RenderWriter(self.writer, renderer, self)

    def end_render(self) -> None:
        if not isinstance(self.writer, RenderWriter):
            raise RuntimeError("did not call startRender()")
        writer = self.writer
        try:
            writer.close()
        finally:
            self.writer = writer.wrapped_writer

    def start_signature(self) -> None:
        """Hash output from here on, to be used as the response's ETag."""
        if not isinstance(self.writer, HashWriter):
            self.writer = HashWriter(self.writer)

    def end_signature(self) -> None:
        if not isinstance(self.writer, HashWriter):
            raise RuntimeError("did not call startSignature()")
        self.response.signature = self.writer.hash()
        self.writer = self.writer.wrapped_writer

    def internal_server_error(self, error: BaseException | str) -> None:
        self.log.error("%s", error)
        self.response.status = int(HTTPStatus.INTERNAL_SERVER_ERROR)

    def write(self, data: bytes) -> int:
        written = self.writer.write(data)
        return len(data) if written is None else written

    def write_string(self, text: str) -> int:
        return self.write(text.encode("utf-8"))

    def write_json(self, value: Any, indent: str = "") -> int:
        if indent:
            text = json.dumps(value, indent=indent, sort_keys=True, default=str)
        else:
            text = json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
        return self.write_string(text + "\n")

    def write_yaml(self, value: Any, indent: str = "") -> int:
        text = yaml.safe_dump(
            value,
            indent=len(indent) if indent else None,
            default_flow_style=False,
            allow_unicode=True,
        )
        return self.write_string(text)

    def embed(self, present: Callable[[Context], Any]) -> None:
        """Write what present produces, served from and stored in the cache."""
        if not callable(present):
            raise TypeError(f'"present" not a function: {type(present).__name__}')

        if self.cache_key:
            loaded = self.load_cached_representation()
            if loaded is not None:
                key, cached = loaded
                if not cached.body:
                    self.log.debug("ignoring cache with no body: %s", self.path)
                else:
                    try:
                        changed, _ = self.write_cached_representation(cached)
                    except OSError as error:
                        self.log.error("%s", error)
                        changed = False
                    if changed:
                        cached.update(key)
                    return

        buffer = io.BytesIO()
        writer = self.writer
        self.writer = buffer
        present(self)
        self.flush_writers()
        body = buffer.getvalue()

        if self.cache_duration > 0.0 and self.cache_key:
            self.store_cached_representation_from_body(EncodingType.IDENTITY, body)

        self.writer = writer
        self.write(body)

    def flush_writers(self) -> None:
        """Close every wrapping writer, down to the underlying one."""
        while isinstance(self.writer, WrappingWriter):
            writer = self.writer
            try:
                writer.close()
            except Exception as error:  # noqa: BLE001 - reported as a 500
                self.internal_server_error(error)
            self.writer = writer.wrapped_writer

    def is_not_modified(self, from_header: bool) -> bool:
        """Set 304 and return True if the client's copy is still current."""
        server_etag = self.response.e_tag(from_header)
        if server_etag:
            client_etag = self.request.headers.get(HEADER_IF_NONE_MATCH)
            if client_etag and client_etag == server_etag:
                self.response.status = int(HTTPStatus.NOT_MODIFIED)
                self.log.debug("not modified: ETag")
                return True

        server_timestamp = self.response.last_modified(from_header)
        if server_timestamp is not None:
            client_timestamp = _parse_http_time(self.request.headers.get(HEADER_IF_MODIFIED_SINCE))
            if client_timestamp is not None and not server_timestamp > client_timestamp:
                self.response.status = int(HTTPStatus.NOT_MODIFIED)
                self.log.debug("not modified: Last-Modified")
                return True

        return False

    def set_cache_control(self) -> None:
        if self.cache_duration < 0.0:
            self.response.headers.set(HEADER_CACHE_CONTROL, "no-store,max-age=0")
        elif self.cache_duration > 0.0:
            self.response.headers.set(HEADER_CACHE_CONTROL, f"max-age={int(self.cache_duration)}")

    # Caching

    def new_cache_key(self) -> CacheKey:
        response = self.response
        return f"{self.cache_key}|{response.content_type}|{response.charset}|{response.language}"

    def _expiration(self) -> float:
        return time.time() + self.cache_duration

    def new_cached_representation(self, with_body: bool) -> CachedRepresentation:
        body: dict[EncodingType, bytes] = {}
        if with_body:
            content_encoding = self.response.headers.get(HEADER_CONTENT_ENCODING)
            encoding = get_encoding_type(content_encoding)
            if encoding != EncodingType.UNSUPPORTED:
                body[encoding] = self.response.body
            else:
                self.log.warning("unsupported encoding: %s", content_encoding)

        headers = {
            name: values
            for name, values in self.response.headers.items()
            if name not in _UNCACHED_HEADERS
        }
        return CachedRepresentation(
            groups=list(self.cache_groups),
            headers=headers,
            body=body,
            expiration=self._expiration(),
        )

    def new_cached_representation_from_body(
        self, encoding: EncodingType, body: bytes
    ) -> CachedRepresentation:
        return CachedRepresentation(
            groups=list(self.cache_groups),
            headers=None,
            body={encoding: body},
            expiration=self._expiration(),
        )

    def load_cached_representation(self) -> tuple[CacheKey, CachedRepresentation] | None:
        """(key, representation) from the cache, or None on a miss."""
        backend = get_cache_backend()
        if backend is None:
            return None
        key = self.new_cache_key()
        cached = backend.load_representation(key)
        if cached is None:
            self.log.debug("cache miss: %s", key)
            return None
        self.log.debug("cache hit: %s, %s", key, cached)
        return key, cached

    def delete_cached_representation(self) -> None:
        backend = get_cache_backend()
        if backend is not None:
            key = self.new_cache_key()
            backend.delete_representation(key)
            self.log.debug("representation deleted: %s", key)

    def store_cached_representation(self, with_body: bool) -> None:
        backend = get_cache_backend()
        if backend is not None:
            key = self.new_cache_key()
            cached = self.new_cached_representation(with_body)
            backend.store_representation(key, cached)
            self.log.debug("representation stored: %s|%s", key, cached)

    def store_cached_representation_from_body(self, encoding: EncodingType, body: bytes) -> None:
        backend = get_cache_backend()
        if backend is not None:
            key = self.new_cache_key()
            cached = self.new_cached_representation_from_body(encoding, body)
            backend.store_representation(key, cached)
            self.log.debug("representation stored: %s|%s", key, cached)

    def get_cached_representation_body(
        self, cached: CachedRepresentation
    ) -> tuple[bytes | None, bool]:
        """The cached body in the encoding the client prefers, and whether it was created."""
        preferences = parse_encoding_preferences(self.request.headers.get(HEADER_ACCEPT_ENCODING))
        return cached.get_body(negotiate_best(preferences))

    def present_cached_representation(self, cached: CachedRepresentation, with_body: bool) -> bool:
        """Fill the response from a cached representation; True if its bodies changed."""
        self.response.reset()
        headers = self.response.headers
        if cached.headers:
            for name, values in cached.headers.items():
                for value in values:
                    headers.add(name, value)

        if self.debug:
            headers.set(HEADER_PRUDENCE_CACHED, self.cache_key)

        if self.is_not_modified(True):
            return False

        headers.set(HEADER_CACHE_CONTROL, f"max-age={int(cached.time_to_live())}")

        if with_body:
            body, changed = self.get_cached_representation_body(cached)
            self.response.body = body or b""
            return changed

        return False

    def write_cached_representation(self, cached: CachedRepresentation) -> tuple[bool, int]:
        """Write the plain cached body: (whether it was created, bytes written)."""
        body, changed = cached.get_body(EncodingType.IDENTITY)
        if body is None:
            return False, 0
        return changed, self.write(body)