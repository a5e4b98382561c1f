"""Cache backends and the cached representations they hold."""

from __future__ import annotations

import abc
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from prudence.platform.encoding import (
    EncodingType,
    decode_brotli,
    decode_flate,
    decode_gzip,
    encode_brotli,
    encode_flate,
    encode_gzip,
)

log = logging.getLogger("prudence.platform")

CacheKey = str


class CacheBackend(abc.ABC):
    """Storage for cached representations, grouped by name."""

    @abc.abstractmethod
    def load_representation(self, key: CacheKey) -> CachedRepresentation | None:
        """Return the representation stored under key, or None."""

    @abc.abstractmethod
    def store_representation(self, key: CacheKey, cached: CachedRepresentation) -> None:
        """Store a representation under key."""

    @abc.abstractmethod
    def delete_representation(self, key: CacheKey) -> None:
        """Remove the representation stored under key."""

    @abc.abstractmethod
    def delete_group(self, name: CacheKey) -> None:
        """Remove every representation belonging to a group."""


_cache_backend: CacheBackend | None = None


def set_cache_backend(backend: CacheBackend | None) -> None:
    """Install the process-wide cache backend (None disables caching)."""
    global _cache_backend
    _cache_backend = backend


def get_cache_backend() -> CacheBackend | None:
    """Return the installed cache backend, if any."""
    return _cache_backend


_ENCODERS: dict[EncodingType, Callable[[bytes], bytes]] = {
    EncodingType.BROTLI: encode_brotli,
    EncodingType.GZIP: encode_gzip,
    EncodingType.FLATE: encode_flate,
}

_DECODERS: tuple[tuple[EncodingType, Callable[[bytes], bytes]], ...] = (
    (EncodingType.FLATE, decode_flate),
    (EncodingType.GZIP, decode_gzip),
    (EncodingType.BROTLI, decode_brotli),
)


@dataclass
class CachedRepresentation:
    """A cached response: headers, bodies per encoding and an expiry time."""

    groups: list[CacheKey] = field(default_factory=list)
    headers: dict[str, list[str]] | None = None
    body: dict[EncodingType, bytes] = field(default_factory=dict)
    expiration: float = 0.0  # seconds since the epoch

    def __str__(self) -> str:
        return ",".join(str(encoding) for encoding in self.body)

    def expired(self) -> bool:
        """True once the expiration time has passed."""
        return time.time() > self.expiration

    def time_to_live(self) -> float:
        """Seconds left before expiry, never negative."""
        return max(self.expiration - time.time(), 0.0)

    def get_body(self, encoding: EncodingType) -> tuple[bytes | None, bool]:
        """Return the body in an encoding and whether it had to be created.

        A missing encoding is derived from the plain body, and a missing
        plain body is decoded from any stored encoded one.
        """
        if encoding in self.body:
            return self.body[encoding], False

        encode = _ENCODERS.get(encoding)
        if encode is not None:
            plain, _ = self.get_body(EncodingType.IDENTITY)
            if plain is None:
                return None, False
            log.debug("creating %s body from plain", encoding)
            try:
                body = encode(plain)
            except (ValueError, OSError) as error:
                log.error("%s", error)
                return None, False
            self.body[encoding] = body
            return body, True

        if encoding == EncodingType.IDENTITY:
            for source, decode in _DECODERS:
                if source in self.body:
                    log.debug("creating plain body from %s", source)
                    try:
                        body = decode(self.body[source])
                    except ValueError as error:
                        log.error("%s", error)
                        return None, False
                    self.body[EncodingType.IDENTITY] = body
                    return body, True

        return None, False

    def update(self, key: CacheKey) -> None:
        """Store this representation again in the installed backend."""
        backend = get_cache_backend()
        if backend is not None:
            backend.store_representation(key, self)
            log.debug("cached representation updated: %s|%s", key, self)