"""State used while turning a JST template into JavaScript."""

from __future__ import annotations

import io

_ESCAPES = str.maketrans({"\n": "\\n", "'": "\\'", "\\": "\\\\"})


class JSTContext:
    """Accumulates generated JavaScript and hands out unique name suffixes."""

    def __init__(self):
        self._builder = io.StringIO()
        self._embed_index = 0

    def next_suffix(self) -> str:
        """Return a fresh numeric suffix for generated variable names."""
        suffix = str(self._embed_index)
        self._embed_index += 1
        return suffix

    def write(self, text: str) -> None:
        """Append raw generated code."""
        self._builder.write(text)

    def write_literal(self, literal: str) -> None:
        """Append code that writes literal text, escaped as a JS string."""
        if literal:
            self._builder.write("context.write('")
            self._builder.write(literal.translate(_ESCAPES))
            self._builder.write("');\n")

    def getvalue(self) -> str:
        """Return all code generated so far."""
        return self._builder.getvalue()