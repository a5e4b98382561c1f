import time

import pytest

from prudence.platform.cache import (
    CacheBackend,
    CachedRepresentation,
    get_cache_backend,
    set_cache_backend,
)
from prudence.platform.encoding import (
    EncodingType,
    decode_brotli,
    decode_flate,
    decode_gzip,
    encode_gzip,
)

PLAIN = b"<html>cached page</html>" * 10


class RecordingBackend(CacheBackend):
    def __init__(self):
        self.stored = {}
        self.deleted = []

    def load_representation(self, key):
        return self.stored.get(key)

    def store_representation(self, key, cached):
        self.stored[key] = cached

    def delete_representation(self, key):
        self.deleted.append(key)

    def delete_group(self, name):
        self.deleted.append(name)


@pytest.fixture
def backend():
    recording = RecordingBackend()
    set_cache_backend(recording)
    yield recording
    set_cache_backend(None)


def test_set_and_get_backend(backend):
    assert get_cache_backend() is backend


def test_backend_cleared():
    set_cache_backend(None)
    assert get_cache_backend() is None


def test_existing_body_not_changed():
    cached = CachedRepresentation(body={EncodingType.IDENTITY: PLAIN})
    assert cached.get_body(EncodingType.IDENTITY) == (PLAIN, False)


@pytest.mark.parametrize(
    "encoding,decode",
    [
        (EncodingType.GZIP, decode_gzip),
        (EncodingType.FLATE, decode_flate),
        (EncodingType.BROTLI, decode_brotli),
    ],
)
def test_encoded_body_created_from_plain(encoding, decode):
    cached = CachedRepresentation(body={EncodingType.IDENTITY: PLAIN})
    body, changed = cached.get_body(encoding)
    assert changed is True
    assert decode(body) == PLAIN
    assert cached.body[encoding] == body
    assert cached.get_body(encoding) == (body, False)


def test_plain_body_decoded_from_gzip():
    cached = CachedRepresentation(body={EncodingType.GZIP: encode_gzip(PLAIN)})
    body, changed = cached.get_body(EncodingType.IDENTITY)
    assert (body, changed) == (PLAIN, True)
    assert cached.body[EncodingType.IDENTITY] == PLAIN


def test_other_encoding_derived_through_plain():
    cached = CachedRepresentation(body={EncodingType.GZIP: encode_gzip(PLAIN)})
    body, changed = cached.get_body(EncodingType.FLATE)
    assert changed is True
    assert decode_flate(body) == PLAIN


def test_corrupt_body_yields_nothing():
    cached = CachedRepresentation(body={EncodingType.GZIP: b"garbage"})
    assert cached.get_body(EncodingType.IDENTITY) == (None, False)


def test_no_body_yields_nothing():
    cached = CachedRepresentation()
    assert cached.get_body(EncodingType.BROTLI) == (None, False)


def test_unsupported_encoding_yields_nothing():
    cached = CachedRepresentation(body={EncodingType.IDENTITY: PLAIN})
    assert cached.get_body(EncodingType.UNSUPPORTED) == (None, False)


def test_expired_and_time_to_live():
    past = CachedRepresentation(expiration=time.time() - 10)
    assert past.expired() is True
    assert past.time_to_live() == 0.0

    future = CachedRepresentation(expiration=time.time() + 100)
    assert future.expired() is False
    assert 0.0 < future.time_to_live() <= 100


def test_str_lists_encodings():
    cached = CachedRepresentation(
        body={EncodingType.IDENTITY: PLAIN, EncodingType.GZIP: encode_gzip(PLAIN)}
    )
    assert str(cached) == "identity,gzip"


def test_update_stores_in_backend(backend):
    cached = CachedRepresentation(body={EncodingType.IDENTITY: PLAIN})
    cached.update("page|text/html")
    assert backend.stored["page|text/html"] is cached


def test_update_without_backend_is_harmless():
    set_cache_backend(None)
    cached = CachedRepresentation(body={EncodingType.IDENTITY: PLAIN})
    cached.update("page")
    assert cached.body == {EncodingType.IDENTITY: PLAIN}