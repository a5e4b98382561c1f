"""The "jst" renderer: turns a JavaScript template into a presenting module."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from prudence.jst import tags as _tag_handlers  # noqa: F401  (registers the tags)
from prudence.platform import registry
from prudence.platform.jst_context import JSTContext

log = logging.getLogger("prudence.jst")


@dataclass(frozen=True)
class Tag:
    """Position of a ``<% ... %>`` tag: start of ``<%`` and just past ``%>``."""

    start: int
    end: int


def get_tags(content: str) -> list[Tag]:
    """Find all unescaped tags; raise ValueError on an unmatched ``%>``."""
    found: list[Tag] = []
    final = len(content) - 1
    start = -1

    for index, char in enumerate(content):
        if index >= final:
            continue
        escaped = index > 0 and content[index - 1] == "\\"
        following = content[index + 1]
        if char == "<" and following == "%" and not escaped:
            start = index
        elif char == "%" and following == ">" and not escaped:
            end = index + 2
            if start == -1:
                raise ValueError(
                    f"closing delimiter without an opening delimiter at position {end}"
                )
            found.append(Tag(start, end))
            start = -1

    return found


def _handle_tag(jst: JSTContext, code: str) -> tuple[bool, bool]:
    """Dispatch code to a registered handler: (handled, keep trailing newline)."""
    for prefix, handle in registry.tags():
        if code.startswith(prefix):
            return True, bool(handle(jst, code))
    return False, False


def render_jst(content: str, context: Any) -> str:
    """Compile a JST template into JavaScript exporting ``present(context)``."""
    found = get_tags(content)
    final = len(content) - 1
    jst = JSTContext()
    jst.write("exports.present = function(context) {\n")

    if not found:
        jst.write_literal(content)
    else:
        last = 0
        for tag in found:
            jst.write_literal(content[last:tag.start])
            last = tag.end

            code = content[tag.start + 2 : tag.end - 2]
            trimmed = code.strip()
            if not trimmed:
                continue

            swallow_newline = True
            if content[tag.end - 3] == "/":
                code = code[:-1]
                swallow_newline = False

            handled, keep_newline = _handle_tag(jst, code)
            if keep_newline:
                swallow_newline = False
            if not handled:
                jst.write(trimmed)
                jst.write("\n")

            if swallow_newline and tag.end <= final and content[tag.end] == "\n":
                last += 1

        if last <= final:
            jst.write_literal(content[last:])

    jst.write("};\n")
    return jst.getvalue()


registry.register_renderer("jst", render_jst)