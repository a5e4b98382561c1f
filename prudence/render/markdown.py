"""The "markdown" and "md" renderers."""

from __future__ import annotations

import logging
from typing import Any

import markdown

from prudence.platform.registry import register_renderer

log = logging.getLogger("prudence.render")


def render_markdown(content: str, context: Any) -> str:
    """Convert Markdown text to HTML."""
    return markdown.markdown(content)


register_renderer("markdown", render_markdown)
register_renderer("md", render_markdown)