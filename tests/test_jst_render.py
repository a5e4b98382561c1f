import pytest

from prudence.jst.render import Tag, get_tags, render_jst
from prudence.platform import registry

HEADER = "exports.present = function(context) {\n"
FOOTER = "};\n"


def test_get_tags_finds_positions():
    assert get_tags("a<%b%>c") == [Tag(1, 6)]


def test_get_tags_none():
    assert get_tags("plain text") == []


def test_get_tags_unmatched_close_raises():
    with pytest.raises(ValueError, match="closing delimiter"):
        get_tags("x %> y")


def test_get_tags_escaped_open_is_ignored():
    assert get_tags("\\<% x") == []
    with pytest.raises(ValueError):
        get_tags("\\<%x%>")


def test_plain_text():
    output = render_jst("hello", None)
    assert output == HEADER + "context.write('hello');\n" + FOOTER


def test_output_is_wrapped():
    output = render_jst("a<% b() %>c", None)
    assert output.startswith(HEADER)
    assert output.endswith(FOOTER)


def test_scriptlet_swallows_newline():
    output = render_jst("<% foo() %>\nb", None)
    assert "foo()\n" in output
    assert "context.write('b');\n" in output
    assert "\\n" not in output


def test_expression_keeps_newline():
    output = render_jst("a<%= x %>\nb", None)
    assert "context.write(String(x));\n" in output
    assert "context.write('\\nb');\n" in output


def test_slash_keeps_newline():
    output = render_jst("<%# note /%>\nb", None)
    assert "context.write('\\nb');\n" in output


def test_comment_swallows_newline():
    output = render_jst("a<%# note %>\nb", None)
    body = output[len(HEADER) : -len(FOOTER)]
    assert body == "context.write('a');\ncontext.write('b');\n"


def test_empty_tag_is_skipped():
    output = render_jst("a<%   %>b", None)
    body = output[len(HEADER) : -len(FOOTER)]
    assert body == "context.write('a');\ncontext.write('b');\n"


def test_literal_escaping():
    output = render_jst("it's", None)
    assert "context.write('it\\'s');\n" in output


def test_registered_as_jst_renderer():
    text = "x<%= 1 %>y"
    assert registry.render(text, "jst", None) == render_jst(text, None)


def test_bad_template_raises_through_render():
    with pytest.raises(ValueError):
        render_jst("oops %>", None)