"""Path templates: match URI paths and extract variables from them.

Variables are written "{name}" and never extend past a "/". A "*" matches
anything and stores it in the PATH_VARIABLE variable.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

PATH_VARIABLE = "__path"
PATH_VARIABLE_RE = f"(?P<{PATH_VARIABLE}>.*)"


class PathTemplate:
    """A single path template; the empty template matches every path."""

    def __init__(self, template: str = ""):
        self.template = template
        self.regular_expression: re.Pattern[str] | None = None
        if template:
            self.regular_expression = _compile(template)

    def match(self, path: str) -> dict[str, str] | None:
        """Variables extracted from path, or None if it does not match."""
        if self.regular_expression is None:
            return {}
        found = self.regular_expression.fullmatch(path)
        if found is None:
            return None
        return {name: value or "" for name, value in found.groupdict().items()}

    def __repr__(self) -> str:
        return f"PathTemplate({self.template!r})"


def _compile(template: str) -> re.Pattern[str]:
    parts: list[str] = []
    in_variable = False
    for char in template:
        if in_variable:
            if char == "}":
                in_variable = False
                parts.append(">[^/]*)")
            else:
                parts.append(char)
        elif char == "{":
            in_variable = True
            parts.append("(?P<")
        elif char == "*":
            parts.append(PATH_VARIABLE_RE)
        else:
            parts.append(re.escape(char))
    try:
        return re.compile("".join(parts))
    except re.error as error:
        raise ValueError(f"invalid path template {template!r}: {error}") from error


PATH_TEMPLATE_ALL = PathTemplate("")


class PathTemplates:
    """A sequence of templates; the first one that matches wins."""

    def __init__(self, paths: Iterable[str] = ()):
        self.templates = [PathTemplate(path) for path in paths]

    def match_any(self, path: str) -> dict[str, str] | None:
        for template in self.templates:
            matches = template.match(path)
            if matches is not None:
                return matches
        return None

    def __iter__(self) -> Iterator[PathTemplate]:
        return iter(self.templates)

    def __len__(self) -> int:
        return len(self.templates)