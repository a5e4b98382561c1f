"""Accept-Encoding negotiation and a writer that encodes its output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from prudence.platform.encoding import (
    EncodingType,
    encode_brotli,
    encode_flate,
    encode_gzip,
)
from prudence.rest.common import HEADER_ACCEPT_ENCODING, HEADER_CONTENT_ENCODING
from prudence.rest.writers import Writer, WrappingWriter

_TYPES = {
    "identity": EncodingType.IDENTITY,
    "": EncodingType.IDENTITY,
    "br": EncodingType.BROTLI,
    "gzip": EncodingType.GZIP,
    "deflate": EncodingType.FLATE,
}

_HEADER_VALUES = {
    EncodingType.BROTLI: "br",
    EncodingType.GZIP: "gzip",
    EncodingType.FLATE: "deflate",
}

_ENCODERS = {
    EncodingType.BROTLI: encode_brotli,
    EncodingType.GZIP: encode_gzip,
    EncodingType.FLATE: encode_flate,
}


def _format_weight(weight: float) -> str:
    text = repr(float(weight))
    return text[:-2] if text.endswith(".0") else text


def get_encoding_type(name: str) -> EncodingType:
    """Map a Content-Encoding token to an EncodingType."""
    return _TYPES.get(name, EncodingType.UNSUPPORTED)


@dataclass(frozen=True)
class EncodingPreference:
    """One entry of an Accept-Encoding header."""

    name: str
    type: EncodingType
    weight: float = 1.0

    @classmethod
    def parse(cls, text: str) -> EncodingPreference:
        """Parse "name;q=weight"; raise ValueError on a bad weight."""
        name, separator, annotation = text.partition(";")
        weight = 1.0
        if separator and annotation.startswith("q="):
            weight = float(annotation[2:])
        return cls(name, get_encoding_type(name), weight)

    def __str__(self) -> str:
        return f"{self.name};q={_format_weight(self.weight)}"


def parse_encoding_preferences(text: str) -> list[EncodingPreference]:
    """Parse an Accept-Encoding header, heaviest first (stable)."""
    text = text.strip()
    if not text:
        return []
    preferences = []
    for item in text.split(","):
        try:
            preferences.append(EncodingPreference.parse(item.strip()))
        except ValueError:
            continue
    return sorted(preferences, key=lambda preference: preference.weight, reverse=True)


def negotiate_best(preferences: list[EncodingPreference]) -> EncodingType:
    """The first supported encoding, or identity."""
    for preference in preferences:
        if preference.type != EncodingType.UNSUPPORTED:
            return preference.type
    return EncodingType.IDENTITY


class EncodeWriter(WrappingWriter):
    """Buffers output and writes it, encoded, to the wrapped writer on close."""

    def __init__(self, writer: Writer, encoding: EncodingType):
        super().__init__(writer)
        self.encoding = encoding
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def close(self) -> None:
        encode = _ENCODERS.get(self.encoding)
        if encode is not None:
            self.wrapped_writer.write(encode(bytes(self._buffer)))


def set_best_encode_writer(context: Any) -> None:
    """Wrap the context's writer in the encoding the client prefers."""
    preferences = parse_encoding_preferences(context.request.headers.get(HEADER_ACCEPT_ENCODING))
    encoding = negotiate_best(preferences)
    header_value = _HEADER_VALUES.get(encoding)
    if header_value is not None:
        context.response.headers.set(HEADER_CONTENT_ENCODING, header_value)
        context.writer = EncodeWriter(context.writer, encoding)