"""Handlers for the special JST tags, keyed by the prefix of their code."""

from __future__ import annotations

from prudence.platform.jst_context import JSTContext
from prudence.platform.registry import register_tag


def handle_cache_duration(context: JSTContext, code: str) -> bool:
    """``<%* seconds %>``: set how long the output may be cached."""
    context.write("context.cacheDuration = ")
    context.write(code[1:].strip())
    context.write(";\n")
    return False


def handle_capture(context: JSTContext, code: str) -> bool:
    """``<%! name %>`` starts capturing output into a variable; ``<%!! %>`` ends it."""
    code = code[1:]
    if code == "!":
        context.write("context.endCapture();\n")
    else:
        context.write("context.startCapture(")
        context.write(code.strip())
        context.write(");\n")
    return False


def handle_comment(context: JSTContext, code: str) -> bool:
    """``<%# ... %>``: emit nothing; the trailing newline is swallowed."""
    if not code.startswith("#"):
        raise ValueError(f"not a comment tag: {code!r}")
    return False


def handle_embed(context: JSTContext, code: str) -> bool:
    """``<%& id, cacheKey %>``: present another module in place, with its own cache key."""
    suffix = context.next_suffix()
    context.write(f"const __args{suffix} = [{code[1:].strip()}];\n")
    context.write(f"const __present{suffix} = require(__args{suffix}[0]).present;\n")
    context.write(f"const __context{suffix} = context.copy();\n")
    context.write(
        f"__context{suffix}.cacheKey = __args{suffix}[1] || (context.cacheKey + '|{suffix}');\n"
    )
    context.write(f"__context{suffix}.embed(__present{suffix});\n")
    return False


def handle_expression(context: JSTContext, code: str) -> bool:
    """``<%= expr %>`` writes an expression; ``<%== name %>`` writes a variable."""
    code = code[1:]
    if code.startswith("="):
        context.write("context.write(String(context.variables[")
        context.write(code[1:].strip())
        context.write("]));\n")
    else:
        context.write("context.write(String(")
        context.write(code.strip())
        context.write("));\n")
    return True


def handle_insert(context: JSTContext, code: str) -> bool:
    """``<%+ id, renderer %>``: insert a file's text, optionally rendered."""
    suffix = context.next_suffix()
    context.write(f"const __args{suffix} = [{code[1:].strip()}];\n")
    context.write(f"var __insert{suffix} = prudence.loadString(__args{suffix}[0]);\n")
    context.write(
        f"if (__args{suffix}.length > 1) __insert{suffix} = "
        f"prudence.render(__insert{suffix}, __args{suffix}[1]);\n"
    )
    context.write(f"context.write(__insert{suffix});\n")
    return False


def handle_render(context: JSTContext, code: str) -> bool:
    """``<%^ renderer %>`` starts rendering output; ``<%^^ %>`` ends it."""
    code = code[1:]
    if code == "^":
        context.write("context.endRender();\n")
    else:
        context.write("context.startRender(")
        context.write(code.strip())
        context.write(", prudence.jsContext);\n")
    return False


def handle_signature(context: JSTContext, code: str) -> bool:
    """``<%$ weak %>`` starts an ETag signature; ``<%$$ %>`` ends it."""
    code = code[1:]
    if code == "$":
        context.write("context.endSignature();\n")
    else:
        context.write("context.startSignature();\n")
        weak = code.strip()
        if weak:
            context.write(f"if ({weak}) context.response.weakSignature = true;\n")
    return False


register_tag("*", handle_cache_duration)
register_tag("!", handle_capture)
register_tag("#", handle_comment)
register_tag("&", handle_embed)
register_tag("=", handle_expression)
register_tag("+", handle_insert)
register_tag("^", handle_render)
register_tag("$", handle_signature)