"""Cookies configured from plain mappings."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass
from email.utils import format_datetime
from typing import Any

from prudence.platform.registry import register_type


class SameSite(enum.Enum):
    """The SameSite cookie attribute."""

    DEFAULT = "default"
    LAX = "lax"
    STRICT = "strict"
    NONE = "none"


_SAME_SITE_ATTRIBUTES = {
    SameSite.LAX: "SameSite=Lax",
    SameSite.STRICT: "SameSite=Strict",
    SameSite.NONE: "SameSite=None",
}

_QUOTE_TRIGGERS = frozenset(" ,")


@dataclass
class Cookie:
    """An HTTP cookie to send with a response."""

    name: str
    value: str
    path: str = ""
    domain: str = ""
    expires: datetime.datetime | None = None
    max_age: int = 0
    secure: bool = False
    http_only: bool = False
    same_site: SameSite | None = None

    def output(self) -> str:
        """The value of a Set-Cookie header for this cookie."""
        value = self.value
        if any(char in _QUOTE_TRIGGERS for char in value):
            value = f'"{value}"'
        parts = [f"{self.name}={value}"]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain.lstrip('.')}")
        if self.expires is not None:
            expires = self.expires
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=datetime.timezone.utc)
            else:
                expires = expires.astimezone(datetime.timezone.utc)
            parts.append(f"Expires={format_datetime(expires, usegmt=True)}")
        if self.max_age > 0:
            parts.append(f"Max-Age={self.max_age}")
        elif self.max_age < 0:
            parts.append("Max-Age=0")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        attribute = _SAME_SITE_ATTRIBUTES.get(self.same_site) if self.same_site else None
        if attribute:
            parts.append(attribute)
        return "; ".join(parts)


def _string(config: dict, key: str) -> str:
    value = config.get(key)
    return value if isinstance(value, str) else ""


def create_cookie(config: dict, context: Any = None) -> Cookie:
    """Constructor for the "Cookie" type; raise ValueError on bad config."""
    name = config.get("name")
    if not isinstance(name, str):
        raise ValueError('must set cookie "name"')
    value = config.get("value")
    if not isinstance(value, str):
        raise ValueError('must set cookie "value"')

    cookie = Cookie(name=name, value=value, path=_string(config, "path"), domain=_string(config, "domain"))

    expires = config.get("expires")
    if expires is not None:
        if not isinstance(expires, datetime.datetime):
            raise ValueError(f'invalid cookie "expires": {type(expires).__name__}')
        cookie.expires = expires

    max_age = config.get("maxAge")
    if isinstance(max_age, int) and not isinstance(max_age, bool):
        cookie.max_age = max_age

    cookie.secure = config.get("secure") is True
    cookie.http_only = config.get("httpOnly") is True

    same_site = config.get("sameSite")
    if isinstance(same_site, str):
        try:
            cookie.same_site = SameSite(same_site)
        except ValueError:
            raise ValueError(f'invalid cookie "sameSite": {same_site}') from None

    return cookie


register_type("Cookie", create_cookie)