"""Routers: try a list of handlers in sequence."""

from __future__ import annotations

from typing import Any

from prudence.platform.config import as_config_list
from prudence.platform.registry import register_type
from prudence.rest.context import Context
from prudence.rest.handler import HandleFunc
from prudence.rest.route import Route, create_route


class Router:
    """Delegates to its handlers in order until one handles the request."""

    def __init__(self, name: str = ""):
        self.name = name
        self.handlers: list[HandleFunc] = []
        self.routes: list[Route] = []

    def add_handler(self, handler: HandleFunc) -> None:
        self.handlers.append(handler)

    def add_route(self, route: Route) -> None:
        self.routes.append(route)
        self.add_handler(route.handle)

    def handle(self, context: Context) -> bool:
        context = context.add_name(self.name)
        return any(handler(context) for handler in self.handlers)

    def __repr__(self) -> str:
        return f"Router({self.name!r})"


def create_router(config: dict, context: Any = None) -> Router:
    """Constructor for the "Router" type."""
    name = config.get("name")
    router = Router(name if isinstance(name, str) else "")
    for route_config in as_config_list(config.get("routes")):
        if isinstance(route_config, dict):
            router.add_route(create_route(route_config, context))
    return router


register_type("Router", create_router)