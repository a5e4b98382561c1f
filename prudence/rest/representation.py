"""Representations: the per-method behaviour of a resource, and their negotiation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Optional

from prudence.platform.config import as_config_list, as_string_list
from prudence.rest.common import HEADER_ACCEPT
from prudence.rest.content_type import ContentType, parse_content_type_preferences
from prudence.rest.context import Context
from prudence.rest.encoding import set_best_encode_writer

RepresentationFunc = Callable[[Context], Any]

_FUNCTION_NAMES = ("construct", "describe", "present", "erase", "modify", "call")


class _Discard:
    """A writer that throws everything away."""

    def write(self, data: bytes) -> int:
        return len(data)


_DISCARD = _Discard()


def _run(function: RepresentationFunc, context: Context) -> bool:
    """Call function; on an exception report a 500 and return False."""
    try:
        function(context)
    except Exception as error:  # noqa: BLE001 - reported as a 500
        context.internal_server_error(error)
        return False
    return True


@dataclass
class Representation:
    """Functions called for the stages of GET, HEAD, DELETE, PUT and POST."""

    construct: Optional[RepresentationFunc] = None
    describe: Optional[RepresentationFunc] = None
    present: Optional[RepresentationFunc] = None
    erase: Optional[RepresentationFunc] = None
    modify: Optional[RepresentationFunc] = None
    call: Optional[RepresentationFunc] = None

    def handle(self, context: Context) -> bool:
        """Serve the request by method; False if the result is a 404."""
        context.response.charset = "utf-8"
        method = context.request.method

        if method == "GET":
            if self._construct(context) and self._try_cache(context, True):
                if self._describe(context):
                    self._present(context, True)
        elif method == "HEAD":
            context.writer = _DISCARD
            if self._construct(context) and self._try_cache(context, False):
                if self._describe(context):
                    self._present(context, False)
        elif method == "DELETE":
            if self._construct(context):
                self._erase(context)
        elif method == "PUT":
            if self._construct(context):
                self._modify(context)
        elif method == "POST":
            if self._construct(context):
                self._call(context)

        return context.response.status != HTTPStatus.NOT_FOUND

    def _construct(self, context: Context) -> bool:
        context.cache_key = context.path
        if self.construct is not None:
            return _run(self.construct, context)
        return True

    def _try_cache(self, context: Context, with_body: bool) -> bool:
        if context.cache_key:
            loaded = context.load_cached_representation()
            if loaded is not None:
                key, cached = loaded
                if with_body and not cached.body:
                    # Probably stored by an earlier HEAD request
                    context.log.debug("ignoring cache because it has no body: %s", context.path)
                else:
                    if context.present_cached_representation(cached, with_body):
                        cached.update(key)
                    return False
        return True

    def _describe(self, context: Context) -> bool:
        if self.describe is not None:
            if not _run(self.describe, context):
                return False
            if context.is_not_modified(False):
                return False
        return True

    def _present(self, context: Context, with_body: bool) -> None:
        if with_body:
            set_best_encode_writer(context)
            if self.present is not None and not _run(self.present, context):
                return
            if context.is_not_modified(False):
                return

        context.flush_writers()

        context.response.set_content_type()
        context.response.set_etag()
        context.response.set_last_modified()
        context.set_cache_control()

        if context.cache_duration > 0.0 and context.cache_key:
            context.store_cached_representation(with_body)

    def _erase(self, context: Context) -> None:
        response = context.response
        if self.erase is None:
            response.status = int(HTTPStatus.METHOD_NOT_ALLOWED)
            return
        if not _run(self.erase, context):
            return
        if not context.done:
            response.status = int(HTTPStatus.NOT_FOUND)
            return
        if context.is_async:
            response.status = int(HTTPStatus.ACCEPTED)
        elif response.body:
            response.status = int(HTTPStatus.OK)
        else:
            response.status = int(HTTPStatus.NO_CONTENT)
        if context.cache_key:
            context.delete_cached_representation()

    def _modify(self, context: Context) -> None:
        response = context.response
        if self.modify is None:
            response.status = int(HTTPStatus.METHOD_NOT_ALLOWED)
            return
        if not _run(self.modify, context):
            return
        if not context.done:
            response.status = int(HTTPStatus.NOT_FOUND)
            return
        if context.created:
            response.status = int(HTTPStatus.CREATED)
        elif response.body:
            response.status = int(HTTPStatus.OK)
        else:
            response.status = int(HTTPStatus.NO_CONTENT)
        if context.cache_duration > 0.0 and context.cache_key:
            context.store_cached_representation(True)

    def _call(self, context: Context) -> None:
        if self.call is not None:
            _run(self.call, context)


def _lookup(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def create_representation(config: Any, context: Any = None) -> Representation:
    """Build a representation from a config holding its functions.

    The functions are taken from a "functions" entry (a mapping or an object)
    if there is one, otherwise from the config itself. Raise TypeError if a
    given function is not callable.
    """
    if not isinstance(config, Mapping):
        config = {}
    functions = config.get("functions")
    source = functions if functions is not None else config

    found: dict[str, RepresentationFunc] = {}
    for name in _FUNCTION_NAMES:
        function = _lookup(source, name)
        if function is None:
            continue
        if not callable(function):
            raise TypeError(f"not a function: {type(function).__name__}")
        found[name] = function
    return Representation(**found)


@dataclass
class RepresentationEntry:
    """A representation offered for one content type ("" for the default)."""

    content_type: ContentType
    representation: Representation


@dataclass
class Representations:
    """Representations in the order they were added."""

    entries: list[RepresentationEntry] = field(default_factory=list)

    def add(self, content_type: ContentType, representation: Representation) -> None:
        self.entries.append(RepresentationEntry(content_type, representation))

    def negotiate_best(self, context: Context) -> tuple[Representation, str] | None:
        """(representation, content type name) best fitting the Accept header."""
        preferences = parse_content_type_preferences(context.request.headers.get(HEADER_ACCEPT))
        for preference in preferences:
            for entry in self.entries:
                if preference.matches(entry.content_type, False):
                    return entry.representation, entry.content_type.name

        for entry in self.entries:
            if entry.content_type.name == "":
                return entry.representation, ""

        if self.entries:
            entry = self.entries[0]
            return entry.representation, entry.content_type.name

        return None

    def __len__(self) -> int:
        return len(self.entries)


def create_representations(config: Any, context: Any = None) -> Representations:
    """Build representations from one config mapping or a list of them."""
    representations = Representations()
    for item in as_config_list(config):
        item_config = item if isinstance(item, Mapping) else {}
        representation = create_representation(item_config, context)
        content_types = as_string_list(item_config.get("contentTypes"))
        if content_types:
            for content_type in content_types:
                representations.add(ContentType.parse(content_type), representation)
        else:
            representations.add(ContentType(), representation)
    return representations