import datetime

import pytest

from prudence.platform.registry import create
from prudence.rest.cookie import Cookie, SameSite, create_cookie


def test_minimal_cookie():
    cookie = create_cookie({"name": "session", "value": "token"}, None)
    assert cookie.name == "session"
    assert cookie.value == "token"
    assert cookie.output() == "session=token"


def test_cookie_with_path():
    cookie = create_cookie({"name": "session", "value": "token", "path": "/"}, None)
    assert cookie.output() == "session=token; Path=/"


def test_missing_name_raises():
    with pytest.raises(ValueError, match='must set cookie "name"'):
        create_cookie({"value": "token"}, None)


def test_missing_value_raises():
    with pytest.raises(ValueError, match='must set cookie "value"'):
        create_cookie({"name": "session"}, None)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("default", SameSite.DEFAULT),
        ("lax", SameSite.LAX),
        ("strict", SameSite.STRICT),
        ("none", SameSite.NONE),
    ],
)
def test_same_site_values(text, expected):
    cookie = create_cookie({"name": "n", "value": "token", "sameSite": text}, None)
    assert cookie.same_site is expected


def test_invalid_same_site_raises():
    with pytest.raises(ValueError, match="sameSite"):
        create_cookie({"name": "n", "value": "token", "sameSite": "sometimes"}, None)


def test_invalid_expires_raises():
    with pytest.raises(ValueError, match="expires"):
        create_cookie({"name": "n", "value": "token", "expires": "tomorrow"}, None)


def test_flags_and_max_age():
    cookie = create_cookie(
        {"name": "n", "value": "token", "maxAge": 60, "secure": True, "httpOnly": True},
        None,
    )
    assert cookie.max_age == 60
    assert cookie.secure is True
    assert cookie.http_only is True
    attributes = cookie.output().split("; ")
    assert "Max-Age=60" in attributes
    assert "Secure" in attributes
    assert "HttpOnly" in attributes


def test_non_boolean_flags_are_ignored():
    cookie = create_cookie({"name": "n", "value": "token", "secure": "yes"}, None)
    assert cookie.secure is False


def test_expires_is_written_in_gmt():
    expires = datetime.datetime(2030, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
    cookie = create_cookie({"name": "n", "value": "token", "expires": expires}, None)
    assert cookie.expires == expires
    assert cookie.output().endswith("GMT")


def test_negative_max_age_outputs_zero():
    cookie = Cookie(name="n", value="token", max_age=-1)
    assert "Max-Age=0" in cookie.output().split("; ")


def test_created_through_registry():
    cookie = create({"type": "Cookie", "name": "session", "value": "token"}, None)
    assert isinstance(cookie, Cookie)
    assert cookie.name == "session"