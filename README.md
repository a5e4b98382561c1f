# prudence

A web framework built around resources rather than pages. Requests are routed
through routers and routes to resources; each resource offers facets, and each
facet negotiates the best representation for the client's `Accept` header.
Representations can be cached server-side, are encoded with brotli, gzip or
deflate according to `Accept-Encoding`, and are answered with
`304 Not Modified` when the client's `If-None-Match` or `If-Modified-Since`
shows it already holds a current copy.

## Building blocks

- `prudence.rest.router.Router` tries a list of handlers in order until one
  returns True.
- `prudence.rest.route.Route` calls its handler only when one of its path
  templates matches. Templates use `{name}` for a single path segment and `*`
  for the rest of the path.
- `prudence.rest.resource.Resource` is a router made of facets; a
  `prudence.rest.facet.Facet` picks a
  `prudence.rest.representation.Representation` by content type.
- A `Representation` holds up to six functions, each taking the
  `prudence.rest.context.Context`: `construct`, `describe`, `present` (GET and
  HEAD), `erase` (DELETE), `modify` (PUT) and `call` (POST). An exception in one
  of them becomes a 500 response.
- `prudence.rest.server.Server` serves a handler over HTTP, or HTTPS with a
  given PEM certificate and key or a freshly generated self-signed one.
  `Server.serve(method, target, headers, body)` runs a single request without
  the network and returns `(status, header lines, body)`.
- `prudence.rest.static.Static` serves files under a root directory; a
  directory is served as its `index.html` if there is one, else as a listing.
- `prudence.memory.cache_backend.MemoryCacheBackend` is an in-memory cache with
  cache groups and periodic pruning; install it with
  `prudence.platform.cache.set_cache_backend`.

## A small site

```python
from prudence.rest.facet import create_facet
from prudence.rest.resource import Resource
from prudence.rest.server import Server

def present(context):
    context.write_string("hello\n")

facet = create_facet({
    "paths": ["hello"],
    "representations": {"contentTypes": "text/plain", "present": present},
})
site = Resource("site")
site.add_facet(facet)

server = Server()
server.address = "localhost:8080"
server.handler = site.handle

status, headers, body = server.serve("GET", "/hello")
# status == 200, body == b"hello\n",
# headers include ("Content-Type", "text/plain;charset=utf-8")
```

`Server.start()` blocks while serving and `Server.stop()` ends it. To run
several servers together in background threads, pass them to
`prudence.platform.startable.start([...])` and stop them with
`prudence.platform.startable.stop()`.

## Configuration mappings

Every type can also be built from a plain mapping through
`prudence.platform.registry.create`, which reads the `"type"` key. A type is
registered when its module is imported:

| `"type"` | Module |
| --- | --- |
| `"Router"` | `prudence.rest.router` |
| `"Route"` | `prudence.rest.route` |
| `"Resource"` | `prudence.rest.resource` |
| `"Facet"` | `prudence.rest.facet` |
| `"Server"` | `prudence.rest.server` |
| `"Static"` | `prudence.rest.static` |
| `"Cookie"` | `prudence.rest.cookie` |
| `"MemoryCache"` | `prudence.memory.cache_backend` |

## Path templates

```python
from prudence.rest.path_template import PathTemplate

template = PathTemplate("user/{name}/*")
template.match("user/alice/photos/1")
# {'name': 'alice', '__path': 'photos/1'}
template.match("group/alice")
# None
```

## Caching

```python
from prudence.memory.cache_backend import MemoryCacheBackend
from prudence.platform.cache import set_cache_backend

set_cache_backend(MemoryCacheBackend(10.0))
```

A context's `cache_duration` (seconds) controls both the server-side cache
entry and the `Cache-Control: max-age` sent to the client. A negative duration
sends `no-store,max-age=0`. Entries listed in `cache_groups` can be removed
together with `delete_group`.

## Content and encoding negotiation

```python
from prudence.rest.encoding import negotiate_best, parse_encoding_preferences

negotiate_best(parse_encoding_preferences("gzip;q=0.5, br"))
# <EncodingType.BROTLI: 1>
```

## JST templates

`prudence.jst.render.render_jst` compiles a text template into JavaScript
source that exports a `present(context)` function. Tags are delimited by
`<%` and `%>`:

| Tag | Meaning |
| --- | --- |
| `<% code %>` | scriptlet |
| `<%= expr %>` | write an expression |
| `<%== name %>` | write a captured variable |
| `<%# ... %>` | comment |
| `<%* seconds %>` | set the cache duration |
| `<%! name %>` … `<%!! %>` | capture output into a variable |
| `<%^ renderer %>` … `<%^^ %>` | pass output through a renderer |
| `<%$ weak %>` … `<%$$ %>` | compute an ETag from the output |
| `<%& id, key %>` | embed another template |
| `<%+ id, renderer %>` | insert a file, optionally rendered |

A newline right after a tag is swallowed, except after an expression tag or a
tag ending in `/%>`. A `%>` without a matching `<%` raises `ValueError`.

```python
from prudence.jst.render import render_jst

script = render_jst("Hello, <%= name %>!", None)
```

## Renderers

Renderers are registered by name with
`prudence.platform.registry.register_renderer` and used through
`prudence.platform.registry.render`, or by `Context.start_render` /
`Context.end_render`. Importing `prudence.jst.render` registers `jst`;
importing `prudence.render.markdown` registers `markdown` and `md`.

## What it does not do

- There is no command-line tool: an application is put together in Python and
  started with `Server.start()` or `prudence.platform.startable.start`.
- There is no JavaScript engine. `render_jst` only produces JavaScript source;
  nothing in the package runs it, loads scripts or watches files for changes.
- There are no minifying renderers; only `jst`, `markdown` and `md` exist.
- `Static` accepts a list of index names but always looks for `index.html`.