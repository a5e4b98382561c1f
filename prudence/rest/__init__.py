"""Routing, resources, representations, static files and the HTTP server."""