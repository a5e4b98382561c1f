import datetime
import json
from email.utils import format_datetime
from http import HTTPStatus

import pytest
import yaml

from prudence.memory.cache_backend import MemoryCacheBackend
from prudence.platform.cache import CachedRepresentation, set_cache_backend
from prudence.platform.encoding import EncodingType, decode_gzip
from prudence.platform.registry import register_renderer
from prudence.rest.common import (
    HEADER_CACHE_CONTROL,
    HEADER_IF_MODIFIED_SINCE,
    HEADER_IF_NONE_MATCH,
    HEADER_LOCATION,
    HEADER_SERVER,
)
from prudence.rest.context import Context
from prudence.rest.request import Request


def make_context(target="/page", headers=None):
    return Context(Request("GET", target, headers))


@pytest.fixture
def backend():
    cache = MemoryCacheBackend(prune_interval=3600)
    set_cache_backend(cache)
    yield cache
    cache.stop_pruning()
    set_cache_backend(None)


def test_path_drops_leading_slash():
    assert make_context("/x/y").path == "x/y"


def test_add_name():
    context = make_context()
    assert context.add_name("") is context
    named = context.add_name("a").add_name("b")
    assert named.name == "a.b"
    assert context.name == ""


def test_copy_isolates_variables_and_resets_cache():
    context = make_context()
    context.variables["list"] = [1]
    context.cache_key = "key"
    duplicate = context.copy()
    duplicate.variables["list"].append(2)
    assert context.variables["list"] == [1]
    assert duplicate.cache_key == ""
    assert duplicate.writer is context.writer
    assert duplicate.response is context.response


def test_redirect_default_and_invalid():
    context = make_context()
    context.write(b"gone")
    context.redirect("/elsewhere")
    assert context.response.status == HTTPStatus.FOUND
    assert context.response.headers.get(HEADER_LOCATION) == "/elsewhere"
    assert context.response.body == b""
    with pytest.raises(ValueError):
        context.redirect("/x", int(HTTPStatus.OK))


def test_capture():
    context = make_context()
    context.start_capture("v")
    context.write_string("captured")
    context.end_capture()
    assert context.variables["v"] == "captured"
    assert context.response.body == b""


def test_end_without_start_raises():
    context = make_context()
    with pytest.raises(RuntimeError):
        context.end_capture()
    with pytest.raises(RuntimeError):
        context.end_render()
    with pytest.raises(RuntimeError):
        context.end_signature()


def test_signature_depends_on_content():
    signatures = []
    for text in (b"hello", b"hello", b"other"):
        context = make_context()
        context.start_signature()
        context.write(text)
        context.end_signature()
        assert context.response.body == text
        signatures.append(context.response.signature)
    assert signatures[0] == signatures[1]
    assert signatures[0] != signatures[2]


def test_render():
    register_renderer("upper-test", lambda content, ctx: content.upper())
    context = make_context()
    context.start_render("upper-test")
    context.write(b"abc")
    assert context.response.body == b""
    context.end_render()
    assert context.response.body == b"ABC"


def test_render_unsupported():
    with pytest.raises(ValueError):
        make_context().start_render("no-such-renderer")


def test_flush_writers_unwinds_everything():
    context = make_context()
    buffer = context.writer
    context.start_capture("v")
    context.start_signature()
    context.write(b"text")
    context.flush_writers()
    assert context.writer is buffer
    assert context.variables["v"] == "text"


def test_internal_server_error():
    context = make_context()
    context.internal_server_error(ValueError("bad"))
    assert context.response.status == HTTPStatus.INTERNAL_SERVER_ERROR


def test_write_json_and_yaml_round_trip():
    value = {"b": [1, 2], "a": {"c": "d"}}
    context = make_context()
    context.write_json(value, "  ")
    assert json.loads(context.response.body) == value
    context = make_context()
    context.write_yaml(value, "")
    assert yaml.safe_load(context.response.body) == value


def test_not_modified_by_etag():
    context = make_context(headers={HEADER_IF_NONE_MATCH: '"sig"'})
    context.response.signature = "sig"
    assert context.is_not_modified(False)
    assert context.response.status == HTTPStatus.NOT_MODIFIED


def test_not_modified_by_timestamp():
    moment = datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc)
    later = format_datetime(moment + datetime.timedelta(days=1), usegmt=True)
    context = make_context(headers={HEADER_IF_MODIFIED_SINCE: later})
    context.response.timestamp = moment
    assert context.is_not_modified(False)

    earlier = format_datetime(moment - datetime.timedelta(days=1), usegmt=True)
    context = make_context(headers={HEADER_IF_MODIFIED_SINCE: earlier})
    context.response.timestamp = moment
    assert not context.is_not_modified(False)
    assert context.response.status == 0


def test_set_cache_control():
    context = make_context()
    context.set_cache_control()
    assert HEADER_CACHE_CONTROL not in context.response.headers
    context.cache_duration = -1.0
    context.set_cache_control()
    assert context.response.headers.get(HEADER_CACHE_CONTROL) == "no-store,max-age=0"
    context.cache_duration = 5.9
    context.set_cache_control()
    assert context.response.headers.get(HEADER_CACHE_CONTROL) == "max-age=5"


def test_new_cache_key():
    context = make_context()
    context.cache_key = "page"
    context.response.content_type = "text/html"
    context.response.charset = "utf-8"
    context.response.language = "en"
    assert context.new_cache_key() == "page|text/html|utf-8|en"


def test_new_cached_representation_skips_headers():
    context = make_context()
    context.cache_duration = 60
    context.cache_groups = ["g"]
    context.response.headers.set(HEADER_SERVER, "Prudence")
    context.response.headers.set(HEADER_CACHE_CONTROL, "max-age=1")
    context.response.headers.set("X-Kept", "yes")
    context.write(b"body")
    cached = context.new_cached_representation(True)
    assert cached.headers == {"X-Kept": ["yes"]}
    assert cached.body == {EncodingType.IDENTITY: b"body"}
    assert cached.groups == ["g"]
    assert not cached.expired()


def test_store_and_load(backend):
    context = make_context()
    context.cache_key = "page"
    context.cache_duration = 60
    context.write(b"hello")
    context.store_cached_representation(True)

    other = make_context()
    other.cache_key = "page"
    key, cached = other.load_cached_representation()
    assert key == context.new_cache_key()
    assert cached.body[EncodingType.IDENTITY] == b"hello"

    other.delete_cached_representation()
    assert other.load_cached_representation() is None


def test_load_without_backend():
    set_cache_backend(None)
    context = make_context()
    context.cache_key = "page"
    assert context.load_cached_representation() is None


def test_embed_stores_and_reuses(backend):
    calls = []

    def present(ctx):
        calls.append(ctx)
        ctx.write(b"embedded")

    context = make_context()
    context.cache_key = "frag"
    context.cache_duration = 60
    context.embed(present)
    assert context.response.body == b"embedded"

    again = make_context()
    again.cache_key = "frag"
    again.embed(present)
    assert again.response.body == b"embedded"
    assert len(calls) == 1


def test_embed_requires_callable():
    with pytest.raises(TypeError):
        make_context().embed("not a function")


def test_present_cached_representation_negotiates_gzip():
    context = make_context(headers={"Accept-Encoding": "gzip"})
    cached = CachedRepresentation(
        headers={"X-Kept": ["yes"]},
        body={EncodingType.IDENTITY: b"plain"},
        expiration=datetime.datetime.now().timestamp() + 60,
    )
    changed = context.present_cached_representation(cached, True)
    assert changed
    assert decode_gzip(context.response.body) == b"plain"
    assert context.response.headers.get("X-Kept") == "yes"
    assert context.response.headers.get(HEADER_CACHE_CONTROL).startswith("max-age=")


def test_present_cached_representation_not_modified():
    context = make_context(headers={HEADER_IF_NONE_MATCH: '"e"'})
    cached = CachedRepresentation(
        headers={"ETag": ['"e"']},
        body={EncodingType.IDENTITY: b"plain"},
        expiration=datetime.datetime.now().timestamp() + 60,
    )
    assert not context.present_cached_representation(cached, True)
    assert context.response.status == HTTPStatus.NOT_MODIFIED
    assert context.response.body == b""


def test_write_cached_representation():
    context = make_context()
    empty = CachedRepresentation()
    assert context.write_cached_representation(empty) == (False, 0)
    cached = CachedRepresentation(body={EncodingType.IDENTITY: b"abc"})
    assert context.write_cached_representation(cached) == (False, len(b"abc"))
    assert context.response.body == b"abc"