"""Registries of APIs, renderers, JST tag handlers and constructible types."""

from __future__ import annotations

from typing import Any, Callable, Iterator

_RenderFunc = Callable[[str, Any], str]
_HandleTagFunc = Callable[[Any, str], bool]
_CreateFunc = Callable[[dict, Any], Any]

_apis: dict[str, Any] = {}
_renderers: dict[str, _RenderFunc] = {}
_tag_handlers: dict[str, _HandleTagFunc] = {}
_creators: dict[str, _CreateFunc] = {}


def register_api(name: str, api: Any) -> None:
    """Expose an API object under a global name to scripts."""
    _apis[name] = api


def apis() -> Iterator[tuple[str, Any]]:
    """Yield (name, api) for every registered API."""
    yield from list(_apis.items())


def register_renderer(name: str, render: _RenderFunc) -> None:
    """Register a render function under a renderer name."""
    _renderers[name] = render


def get_renderer(name: str) -> _RenderFunc | None:
    """Return the render function for a name; an empty name means none."""
    if name == "":
        return None
    try:
        return _renderers[name]
    except KeyError:
        raise ValueError(f"unsupported renderer: {name}") from None


def render(content: str, renderer: str, context: Any) -> str:
    """Render content with the named renderer (unchanged if the name is empty)."""
    render_func = get_renderer(renderer)
    if render_func is None:
        return content
    return render_func(content, context)


def register_tag(prefix: str, handle: _HandleTagFunc) -> None:
    """Register a JST tag handler for code starting with prefix.

    The handler returns True to keep the newline that follows the tag.
    """
    _tag_handlers[prefix] = handle


def tags() -> Iterator[tuple[str, _HandleTagFunc]]:
    """Yield (prefix, handler) for every registered JST tag."""
    yield from list(_tag_handlers.items())


def register_type(name: str, create: _CreateFunc) -> None:
    """Register a constructor for a configurable type."""
    _creators[name] = create


def get_type(name: str) -> _CreateFunc:
    """Return the constructor registered for a type name."""
    try:
        return _creators[name]
    except KeyError:
        raise ValueError(f'unsupported "type": {name}') from None


def types() -> Iterator[tuple[str, _CreateFunc]]:
    """Yield (name, constructor) for every registered type."""
    yield from list(_creators.items())


def create(config: dict, context: Any) -> Any:
    """Construct an object from a config holding a "type" entry."""
    type_name = config.get("type")
    if not isinstance(type_name, str):
        raise ValueError('"type" not specified')
    return get_type(type_name)(config, context)