"""Resources: routers made of facets."""

from __future__ import annotations

from typing import Any

from prudence.platform.config import as_config_list
from prudence.platform.registry import register_type
from prudence.rest.facet import Facet, create_facet
from prudence.rest.router import Router, create_router


class Resource(Router):
    """A router whose routes include those of its facets."""

    def __init__(self, name: str = ""):
        super().__init__(name)
        self.facets: list[Facet] = []

    def add_facet(self, facet: Facet) -> None:
        self.facets.append(facet)
        self.add_route(facet.route)

    def __repr__(self) -> str:
        return f"Resource({self.name!r})"


def create_resource(config: dict, context: Any = None) -> Resource:
    """Constructor for the "Resource" type: routes first, then facets."""
    router = create_router(config, context)
    resource = Resource(router.name)
    resource.handlers = router.handlers
    resource.routes = router.routes
    for facet_config in as_config_list(config.get("facets")):
        if isinstance(facet_config, dict):
            resource.add_facet(create_facet(facet_config, context))
    return resource


register_type("Resource", create_resource)