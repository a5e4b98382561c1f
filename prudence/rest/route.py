"""Routes: a handler called only when one of its path templates matches."""

from __future__ import annotations

from typing import Any

from prudence.platform.config import as_string_list
from prudence.platform.registry import register_type
from prudence.rest.context import Context
from prudence.rest.handler import HandleFunc, get_handle_func
from prudence.rest.path_template import PATH_VARIABLE, PathTemplates


class Route:
    """Wraps a handler behind path templates tried in sequence."""

    def __init__(self, name: str = ""):
        self.name = name
        self.path_templates = PathTemplates()
        self.handler: HandleFunc | None = None

    def handle(self, context: Context) -> bool:
        """Call the handler with a copied context holding the path variables."""
        matches = self.match(context.path)
        if matches is None:
            return False

        named = context.add_name(self.name)
        context = context.copy() if named is context else named

        for key, value in matches.items():
            if key == PATH_VARIABLE:
                context.path = value
            else:
                context.variables[key] = value

        if self.handler is not None:
            return bool(self.handler(context))
        return False

    def match(self, path: str) -> dict[str, str] | None:
        """Variables from the first matching template; a route without any matches all."""
        if len(self.path_templates) == 0:
            return {}
        return self.path_templates.match_any(path)

    def __repr__(self) -> str:
        return f"Route({self.name!r})"


def create_route(config: dict, context: Any = None) -> Route:
    """Constructor for the "Route" type."""
    name = config.get("name")
    route = Route(name if isinstance(name, str) else "")
    route.path_templates = PathTemplates(as_string_list(config.get("paths")))
    handler = config.get("handler")
    if handler is not None:
        route.handler = get_handle_func(handler)
    return route


register_type("Route", create_route)