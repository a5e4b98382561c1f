"""The incoming side of an HTTP exchange."""

from __future__ import annotations

from urllib.parse import parse_qs, unquote, urlsplit

from prudence.rest.common import Headers
from prudence.rest.cookie import Cookie


def _parse_cookies(headers: Headers) -> list[Cookie]:
    cookies = []
    for line in headers.get_all("Cookie"):
        for part in line.split(";"):
            name, separator, value = part.strip().partition("=")
            name = name.strip()
            if not separator or not name:
                continue
            value = value.strip()
            if len(value) > 1 and value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
            cookies.append(Cookie(name=name, value=value))
    return cookies


class Request:
    """Method, target, headers, query, cookies and body of a request."""

    def __init__(
        self,
        method: str = "GET",
        target: str = "/",
        headers: Headers | dict | None = None,
        body: bytes | str | None = None,
    ):
        self.method = method
        self.target = target
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)

        split = urlsplit(target)
        self.path = unquote(split.path)
        self.query: dict[str, list[str]] = parse_qs(split.query, keep_blank_values=True)

        host = self.headers.get("Host") or split.netloc
        port = 0
        if ":" in host:
            host, _, port_text = host.partition(":")
            try:
                port = int(port_text)
            except ValueError:
                port = 0
        self.host = host
        self.port = port

        self.cookies = _parse_cookies(self.headers)

        if body is None:
            self.body = ""
        elif isinstance(body, str):
            self.body = body
        else:
            self.body = bytes(body).decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"Request({self.method!r}, {self.target!r})"