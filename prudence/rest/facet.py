"""Facets: routes whose handler negotiates among representations."""

from __future__ import annotations

from typing import Any

from prudence.platform.registry import register_type
from prudence.rest.context import Context
from prudence.rest.representation import Representations, create_representations
from prudence.rest.route import Route, create_route


class Facet:
    """A route that serves the representation best matching the client's Accept."""

    def __init__(self, name: str = ""):
        self.route = Route(name)
        self.route.handler = self.handle
        self.representations = Representations()

    @property
    def name(self) -> str:
        return self.route.name

    def handle(self, context: Context) -> bool:
        """Negotiate a representation and let it handle a copied context."""
        best = self.representations.negotiate_best(context)
        if best is None:
            return False
        representation, content_type = best
        context = context.copy()
        context.response.content_type = content_type
        return representation.handle(context)

    def __repr__(self) -> str:
        return f"Facet({self.name!r})"


def create_facet(config: dict, context: Any = None) -> Facet:
    """Constructor for the "Facet" type; a facet may not set a "handler"."""
    route = create_route(config, context)
    if route.handler is not None:
        raise ValueError('cannot set "handler" on facet')
    facet = Facet(route.name)
    route.handler = facet.handle
    facet.route = route
    facet.representations = create_representations(config.get("representations"), context)
    return facet


register_type("Facet", create_facet)