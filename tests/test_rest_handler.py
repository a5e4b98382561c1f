from http import HTTPStatus

import pytest

from prudence.rest.context import Context
from prudence.rest.handler import DEFAULT_NOT_FOUND, DefaultNotFound, get_handle_func, handled
from prudence.rest.request import Request


def make_context(target="/"):
    return Context(Request("GET", target))


def test_handled_always_true():
    assert handled(make_context()) is True


def test_default_not_found_sets_body_and_status():
    context = make_context("/missing")
    assert DefaultNotFound().handle(context) is True
    assert context.response.status == HTTPStatus.NOT_FOUND
    assert context.response.body == b"404 Not Found\n"


def test_default_not_found_instance_is_a_handler():
    context = make_context()
    assert get_handle_func(DEFAULT_NOT_FOUND)(context) is True
    assert context.response.status == HTTPStatus.NOT_FOUND


def test_object_with_handle_is_used_directly():
    class Handler:
        def __init__(self):
            self.seen = []

        def handle(self, context):
            self.seen.append(context.path)
            return True

    handler = Handler()
    func = get_handle_func(handler)
    assert func(make_context("/a/b")) is True
    assert handler.seen == ["a/b"]


@pytest.mark.parametrize("result, expected", [(True, True), (False, False), (None, False), ("yes", False)])
def test_callable_result_only_counts_when_bool(result, expected):
    func = get_handle_func(lambda context: result)
    assert func(make_context()) is expected


def test_non_handler_raises():
    with pytest.raises(TypeError, match="not a handler"):
        get_handle_func(42)