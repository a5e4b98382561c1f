"""A RESTful web framework with caching, content negotiation and JST templates."""

__version__ = "0.1.0"