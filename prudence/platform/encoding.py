"""Content encodings and the codecs that produce and undo them."""

from __future__ import annotations

import enum
import gzip
import zlib

import brotli


class EncodingType(enum.IntEnum):
    """A content encoding that a representation body can be stored in."""

    UNSUPPORTED = -1
    IDENTITY = 0
    BROTLI = 1
    GZIP = 2
    FLATE = 3

    def __str__(self) -> str:
        return _NAMES.get(self, "unsupported")


_NAMES = {
    EncodingType.IDENTITY: "identity",
    EncodingType.BROTLI: "brotli",
    EncodingType.GZIP: "gzip",
    EncodingType.FLATE: "flate",
}


def encode_brotli(data: bytes) -> bytes:
    """Compress data with brotli."""
    return brotli.compress(bytes(data))


def decode_brotli(data: bytes) -> bytes:
    """Decompress brotli data; raise ValueError if it is corrupt."""
    try:
        return brotli.decompress(bytes(data))
    except brotli.error as error:
        raise ValueError(f"invalid brotli data: {error}") from error


def encode_gzip(data: bytes) -> bytes:
    """Compress data into the gzip format."""
    return gzip.compress(bytes(data))


def decode_gzip(data: bytes) -> bytes:
    """Decompress gzip data; raise ValueError if it is corrupt."""
    try:
        return gzip.decompress(bytes(data))
    except (OSError, EOFError, zlib.error) as error:
        raise ValueError(f"invalid gzip data: {error}") from error


def encode_flate(data: bytes) -> bytes:
    """Compress data into the zlib (deflate) format."""
    return zlib.compress(bytes(data))


def decode_flate(data: bytes) -> bytes:
    """Decompress zlib (deflate) data; raise ValueError if it is corrupt."""
    try:
        return zlib.decompress(bytes(data))
    except zlib.error as error:
        raise ValueError(f"invalid deflate data: {error}") from error