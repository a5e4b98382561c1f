"""Handlers: callables that take a context and say whether they handled it."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Callable

from prudence.rest.context import Context

HandleFunc = Callable[[Context], bool]


def handled(context: Context) -> bool:
    """A handler that does nothing and reports the request as handled."""
    return True


def get_handle_func(value: Any) -> HandleFunc:
    """Turn a handler object or a plain callable into a handle function.

    An object with a callable ``handle`` attribute is used through it; any
    other callable counts as handled only when it returns True. Raise
    TypeError for anything else.
    """
    handle = getattr(value, "handle", None)
    if callable(handle):
        return handle
    if callable(value):

        def handle_func(context: Context) -> bool:
            result = value(context)
            return result if isinstance(result, bool) else False

        return handle_func
    raise TypeError(f"not a handler: {type(value).__name__}")


class DefaultNotFound:
    """A handler that answers every request with a plain 404."""

    def handle(self, context: Context) -> bool:
        context.response.body = b"404 Not Found\n"
        context.response.status = int(HTTPStatus.NOT_FOUND)
        return True


DEFAULT_NOT_FOUND = DefaultNotFound()