"""Serving files from a directory."""

from __future__ import annotations

import datetime
import html
import mimetypes
import os
import posixpath
import stat
from http import HTTPStatus
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlsplit

from prudence.platform.config import as_string_list
from prudence.platform.registry import register_type
from prudence.rest.common import HEADER_CONTENT_TYPE, HEADER_LOCATION
from prudence.rest.context import Context

_INDEX_PAGE = "index.html"


def _contains_dot_dot(path: str) -> bool:
    return ".." in path and any(part == ".." for part in path.replace("\\", "/").split("/"))


def _error(context: Context, status: HTTPStatus, text: str) -> None:
    response = context.response
    response.headers.set(HEADER_CONTENT_TYPE, "text/plain; charset=utf-8")
    response.headers.set("X-Content-Type-Options", "nosniff")
    response.body = (text + "\n").encode("utf-8")
    response.status = int(status)


def _content_type(path: str, data: bytes) -> str:
    guessed, _ = mimetypes.guess_type(path)
    if guessed:
        return f"{guessed}; charset=utf-8" if guessed.startswith("text/") else guessed
    try:
        data[:512].decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def _modification_time(status: os.stat_result) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(int(status.st_mtime), tz=datetime.timezone.utc)


class Static:
    """A handler serving files under a root directory."""

    def __init__(self, root: str, indexes: list[str] | None = None):
        self.root = root
        self.indexes = list(indexes or [])

    def handle(self, context: Context) -> bool:
        """Serve the file at the context's path; False if there is none."""
        url_path = context.request.path
        if _contains_dot_dot(url_path):
            _error(context, HTTPStatus.BAD_REQUEST, "invalid URL path")
            return True

        path = os.path.normpath(os.path.join(self.root, context.path.lstrip("/")))
        try:
            status = os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            context.response.status = int(HTTPStatus.NOT_FOUND)
            return False
        except PermissionError:
            _error(context, HTTPStatus.FORBIDDEN, "403 Forbidden")
            return True
        except OSError:
            _error(context, HTTPStatus.INTERNAL_SERVER_ERROR, "500 Internal Server Error")
            return True

        if stat.S_ISDIR(status.st_mode):
            if not url_path.endswith("/"):
                self._redirect(context, posixpath.basename(url_path) + "/")
                return True
            index = os.path.join(path, _INDEX_PAGE)
            if os.path.isfile(index):
                return self._serve_file(context, index, os.stat(index))
            return self._serve_listing(context, path, status)

        return self._serve_file(context, path, status)

    @staticmethod
    def _redirect(context: Context, location: str) -> None:
        query = urlsplit(context.request.target).query
        if query:
            location += "?" + query
        context.response.headers.set(HEADER_LOCATION, location)
        context.response.status = int(HTTPStatus.MOVED_PERMANENTLY)

    @staticmethod
    def _not_modified(context: Context, status: os.stat_result) -> bool:
        response = context.response
        response.timestamp = _modification_time(status)
        if context.request.method in ("GET", "HEAD") and context.is_not_modified(False):
            response.headers.delete(HEADER_CONTENT_TYPE)
            response.body = b""
            return True
        response.set_last_modified()
        return False

    def _serve_file(self, context: Context, path: str, status: os.stat_result) -> bool:
        if self._not_modified(context, status):
            return True
        try:
            data = Path(path).read_bytes()
        except PermissionError:
            _error(context, HTTPStatus.FORBIDDEN, "403 Forbidden")
            return True
        except OSError:
            _error(context, HTTPStatus.INTERNAL_SERVER_ERROR, "500 Internal Server Error")
            return True
        response = context.response
        response.headers.set(HEADER_CONTENT_TYPE, _content_type(path, data))
        response.body = data
        response.status = int(HTTPStatus.OK)
        return True

    def _serve_listing(self, context: Context, path: str, status: os.stat_result) -> bool:
        if self._not_modified(context, status):
            return True
        try:
            entries = sorted(os.scandir(path), key=lambda entry: entry.name)
        except OSError:
            _error(context, HTTPStatus.INTERNAL_SERVER_ERROR, "Error reading directory")
            return True
        lines = ["<pre>\n"]
        for entry in entries:
            name = entry.name + ("/" if entry.is_dir() else "")
            lines.append(f'<a href="{html.escape(quote(name))}">{html.escape(name)}</a>\n')
        lines.append("</pre>\n")
        response = context.response
        response.headers.set(HEADER_CONTENT_TYPE, "text/html; charset=utf-8")
        response.body = "".join(lines).encode("utf-8")
        response.status = int(HTTPStatus.OK)
        return True

    def __repr__(self) -> str:
        return f"Static({self.root!r})"


def create_static(config: dict, context: Any = None) -> Static:
    """Constructor for the "Static" type; raise FileNotFoundError if root is missing."""
    root = config.get("root")
    root_path = Path(root if isinstance(root, str) else "").expanduser().resolve()
    if not root_path.exists():
        raise FileNotFoundError(f"static root not found: {root_path}")
    return Static(str(root_path), as_string_list(config.get("indexes")))


register_type("Static", create_static)