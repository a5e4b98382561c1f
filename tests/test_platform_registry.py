import pytest

from prudence.platform import registry


def test_register_api():
    api = object()
    registry.register_api("test_api_registry", api)
    assert dict(registry.apis())["test_api_registry"] is api


def test_render_with_registered_renderer():
    registry.register_renderer("test_upper", lambda content, context: content.upper())
    assert registry.render("hello", "test_upper", None) == "HELLO"


def test_renderer_receives_context():
    seen = []
    registry.register_renderer(
        "test_context", lambda content, context: seen.append(context) or content
    )
    marker = object()
    registry.render("x", "test_context", marker)
    assert seen == [marker]


def test_empty_renderer_returns_content():
    assert registry.get_renderer("") is None
    assert registry.render("unchanged", "", None) == "unchanged"


def test_unknown_renderer_raises():
    with pytest.raises(ValueError, match="unsupported renderer"):
        registry.get_renderer("no-such-renderer")
    with pytest.raises(ValueError):
        registry.render("content", "no-such-renderer", None)


def test_register_tag():
    def handle(context, code):
        return True

    registry.register_tag("test~", handle)
    assert dict(registry.tags())["test~"] is handle


def test_create_registered_type():
    registry.register_type("TestThing", lambda config, context: ("thing", config["size"]))
    assert registry.create({"type": "TestThing", "size": 3}, None) == ("thing", 3)
    assert ("TestThing", registry.get_type("TestThing")) in list(registry.types())


def test_create_without_type_raises():
    with pytest.raises(ValueError, match='"type" not specified'):
        registry.create({"name": "x"}, None)


def test_create_with_non_string_type_raises():
    with pytest.raises(ValueError):
        registry.create({"type": 5}, None)


def test_unknown_type_raises():
    with pytest.raises(ValueError, match="unsupported"):
        registry.create({"type": "NoSuchType"}, None)