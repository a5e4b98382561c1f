"""Content types and parsing of the Accept header."""

from __future__ import annotations

from dataclasses import dataclass


def _format_weight(weight: float) -> str:
    text = repr(float(weight))
    return text[:-2] if text.endswith(".0") else text


@dataclass(frozen=True)
class ContentType:
    """A MIME type split into its type and sub-type."""

    name: str = ""
    type: str = ""
    sub_type: str = ""

    @classmethod
    def parse(cls, name: str) -> ContentType:
        type_, _, sub_type = name.partition("/")
        return cls(name=name, type=type_, sub_type=sub_type)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ContentTypePreference:
    """One entry of an Accept header: a content type and its weight."""

    content_type: ContentType
    weight: float = 1.0

    @property
    def name(self) -> str:
        return self.content_type.name

    @property
    def type(self) -> str:
        return self.content_type.type

    @property
    def sub_type(self) -> str:
        return self.content_type.sub_type

    @classmethod
    def parse(cls, text: str) -> ContentTypePreference:
        """Parse "type/sub;q=weight"; raise ValueError on a bad weight."""
        name, separator, annotation = text.partition(";")
        weight = 1.0
        if separator and annotation.startswith("q="):
            weight = float(annotation[2:])
        return cls(ContentType.parse(name), weight)

    def matches(self, content_type: ContentType, match_wildcard: bool) -> bool:
        """True if content_type is acceptable under this preference."""
        type_wildcard = self.type == "*"
        sub_type_wildcard = self.sub_type == "*"
        if not match_wildcard and type_wildcard and sub_type_wildcard:
            return False
        if not type_wildcard and self.type != content_type.type:
            return False
        if not sub_type_wildcard and self.sub_type != content_type.sub_type:
            return False
        return True

    def __str__(self) -> str:
        return f"{self.name};q={_format_weight(self.weight)}"


def parse_content_type_preferences(text: str) -> list[ContentTypePreference]:
    """Parse an Accept header into preferences, heaviest first (stable)."""
    text = text.strip()
    if not text:
        return []
    preferences = []
    for item in text.split(","):
        try:
            preferences.append(ContentTypePreference.parse(item))
        except ValueError:
            continue
    return sorted(preferences, key=lambda preference: preference.weight, reverse=True)