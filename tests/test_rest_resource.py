from prudence.platform import registry
from prudence.rest.context import Context
from prudence.rest.facet import Facet
from prudence.rest.request import Request
from prudence.rest.resource import Resource, create_resource


def make_context(target):
    return Context(Request("GET", target))


def writer(text):
    def present(context):
        context.write_string(text)

    return present


CONFIG = {
    "name": "site",
    "facets": [
        {
            "name": "hello",
            "paths": "hello",
            "representations": {"contentTypes": "text/plain", "present": writer("hi")},
        },
        {
            "name": "bye",
            "paths": "bye",
            "representations": {"present": writer("see you")},
        },
    ],
}


def test_resource_dispatches_to_facets():
    resource = create_resource(CONFIG)
    assert [facet.name for facet in resource.facets] == ["hello", "bye"]
    context = make_context("/hello")
    assert resource.handle(context) is True
    assert context.response.body == b"hi"
    assert context.response.headers.get("Content-Type") == "text/plain;charset=utf-8"

    context = make_context("/bye")
    assert resource.handle(context) is True
    assert context.response.body == b"see you"


def test_unknown_path_is_unhandled():
    assert create_resource(CONFIG).handle(make_context("/nowhere")) is False


def test_routes_come_before_facets():
    seen = []
    config = dict(CONFIG, routes={"paths": "hello", "handler": lambda c: seen.append(1) or True})
    resource = create_resource(config)
    context = make_context("/hello")
    assert resource.handle(context) is True
    assert seen == [1]
    assert context.response.body == b""
    assert len(resource.routes) == 3


def test_add_facet_registers_its_route():
    resource = Resource("r")
    facet = Facet("f")
    resource.add_facet(facet)
    assert resource.facets == [facet]
    assert resource.routes == [facet.route]


def test_registered_type():
    resource = registry.create(dict(CONFIG, type="Resource"), None)
    assert isinstance(resource, Resource)
    assert resource.name == "site"