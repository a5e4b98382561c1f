"""The outgoing side of an HTTP exchange."""

from __future__ import annotations

import datetime
import io
from email.utils import format_datetime, parsedate_to_datetime
from http import HTTPStatus

from prudence.rest.common import (
    HEADER_CONTENT_TYPE,
    HEADER_ETAG,
    HEADER_LAST_MODIFIED,
    Headers,
)
from prudence.rest.cookie import Cookie, create_cookie


def _as_utc(moment: datetime.datetime) -> datetime.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc)


def _parse_http_time(text: str) -> datetime.datetime | None:
    """Parse an HTTP date header value; None if it is not one."""
    if not text:
        return None
    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None


class Response:
    """Status, headers, cookies and a body buffer being built for a client."""

    def __init__(self):
        self.status = 0
        self.headers = Headers()
        self.cookies: list[Cookie] = []
        self.content_type = ""
        self.charset = ""
        self.language = ""
        self.signature = ""
        self.weak_signature = False
        self.timestamp: datetime.datetime | None = None
        self.buffer = io.BytesIO()
        self.bypass = False

    @property
    def body(self) -> bytes:
        """Everything in the body buffer."""
        return self.buffer.getvalue()

    @body.setter
    def body(self, data: bytes) -> None:
        self.buffer = io.BytesIO()
        self.buffer.write(data)

    def reset(self) -> None:
        """Drop all headers and empty the body buffer (keeping the buffer)."""
        self.headers = Headers()
        self.buffer.seek(0)
        self.buffer.truncate(0)

    def add_cookie(self, config: dict) -> None:
        """Add a cookie built from a config mapping; raise ValueError if invalid."""
        self.cookies.append(create_cookie(config, None))

    def e_tag(self, from_header: bool) -> str:
        """The ETag, from the header or from the signature; "" if none."""
        if from_header:
            return self.headers.get(HEADER_ETAG)
        if not self.signature:
            return ""
        if self.weak_signature:
            return f'W/"{self.signature}"'
        return f'"{self.signature}"'

    def last_modified(self, from_header: bool) -> datetime.datetime | None:
        """The modification time, from the header or the timestamp."""
        if from_header:
            return _parse_http_time(self.headers.get(HEADER_LAST_MODIFIED))
        if self.timestamp is None:
            return None
        return _as_utc(self.timestamp)

    def set_content_type(self) -> None:
        if self.content_type:
            if self.charset:
                self.headers.set(HEADER_CONTENT_TYPE, f"{self.content_type};charset={self.charset}")
            else:
                self.headers.set(HEADER_CONTENT_TYPE, self.content_type)

    def set_etag(self) -> None:
        e_tag = self.e_tag(False)
        if e_tag:
            self.headers.set(HEADER_ETAG, e_tag)

    def set_last_modified(self) -> None:
        if self.timestamp is not None:
            self.headers.set(
                HEADER_LAST_MODIFIED, format_datetime(_as_utc(self.timestamp), usegmt=True)
            )

    def finalize(self) -> tuple[int, list[tuple[str, str]], bytes] | None:
        """Status, header lines and body to send; None when bypassed."""
        if self.bypass:
            return None
        status = self.status
        if status < 100 or status > 999:
            status = int(HTTPStatus.OK)
        header_lines = [(name, value) for name, values in self.headers.items() for value in values]
        header_lines.extend(("Set-Cookie", cookie.output()) for cookie in self.cookies)
        return status, header_lines, self.body