"""Tests for stack-based formatting of token streams."""

import pytest

from xml_prettifier.formatting import ElementStack, XMLFormatter, render_attribute
from xml_prettifier.shared.config import FormatterConfig
from xml_prettifier.shared.errors import (
    FormatError,
    MismatchedCloseTagError,
    TokenizeError,
    UnclosedElementsError,
    UnexpectedCloseTagError,
)
from xml_prettifier.tokenization import (
    Attribute,
    Token,
    TokenPosition,
    TokenType,
    XMLTokenizer,
)


def fmt(text, config=None):
    """Format ``text`` through a lazily consumed tokenizer."""
    return XMLFormatter(config).format(XMLTokenizer(text).tokenize())


class TestElementStack:
    """Tests for the open-element stack."""

    def test_push_pop_peek(self):
        stack = ElementStack()
        pos = TokenPosition(1, 1, 0, 0)
        assert not stack
        assert stack.peek() is None

        stack.push("a", pos)
        stack.push("b", pos)
        assert len(stack) == 2
        assert stack.peek().name == "b"
        assert stack.open_names() == ["b", "a"]

        assert stack.pop().name == "b"
        assert len(stack) == 1

    def test_max_depth_survives_pops(self):
        stack = ElementStack()
        pos = TokenPosition(1, 1, 0, 0)
        for name in "abc":
            stack.push(name, pos)
        for _ in range(3):
            stack.pop()
        assert stack.max_depth == 3
        assert len(stack) == 0


class TestBasicFormatting:
    """Tests for the canonical layout of well-formed documents."""

    def test_nested_elements(self):
        """Each unit sits on its own line, indented by depth."""
        assert fmt("<root><child>text</child></root>") == (
            "<root>\n"
            "  <child>\n"
            "    text\n"
            "  </child>\n"
            "</root>\n"
        )

    def test_empty_element_pair(self):
        assert fmt("<root></root>") == "<root>\n</root>\n"

    def test_self_closing_element(self):
        assert fmt("<a/>") == "<a/>\n"
        assert fmt("<a />") == "<a/>\n"

    def test_self_closing_does_not_change_depth(self):
        assert fmt('<root><item id="1" value="x"/><next/></root>') == (
            "<root>\n"
            '  <item id="1" value="x"/>\n'
            "  <next/>\n"
            "</root>\n"
        )

    def test_attributes_requoted(self):
        """Single-quoted values are re-quoted, embedded '"' escaped."""
        assert fmt("""<a t='say "hi"' u='plain'/>""") == (
            '<a t="say &quot;hi&quot;" u="plain"/>\n'
        )

    def test_attribute_values_not_otherwise_changed(self):
        assert fmt('<a v="&amp; &lt;"/>') == '<a v="&amp; &lt;"/>\n'

    def test_whitespace_only_text_suppressed(self):
        assert fmt("<a>   \n\t </a>") == "<a>\n</a>\n"

    def test_text_trimmed(self):
        assert fmt("<p>  hello world  </p>") == "<p>\n  hello world\n</p>\n"

    def test_already_indented_input(self):
        source = "<a>\n    <b>\n        x\n    </b>\n</a>\n"
        assert fmt(source) == "<a>\n  <b>\n    x\n  </b>\n</a>\n"

    def test_top_level_text(self):
        assert fmt("hello") == "hello\n"

    def test_empty_document(self):
        assert fmt("") == ""
        assert fmt("  \n ") == ""


class TestSpecialConstructs:
    """Tests for comments, CDATA, DOCTYPE and processing instructions."""

    def test_comment(self):
        assert fmt("<root><!--comment--></root>") == (
            "<root>\n  <!--comment-->\n</root>\n"
        )

    def test_comment_content_verbatim(self):
        assert fmt("<!--  spaced  -->") == "<!--  spaced  -->\n"

    def test_cdata_verbatim(self):
        assert fmt("<a><![CDATA[<not><xml>]]></a>") == (
            "<a>\n  <![CDATA[<not><xml>]]>\n</a>\n"
        )

    def test_cdata_whitespace_kept(self):
        assert fmt("<a><![CDATA[  ]]></a>") == "<a>\n  <![CDATA[  ]]>\n</a>\n"

    def test_doctype(self):
        assert fmt("<!DOCTYPE note><note><to>Tove</to></note>") == (
            "<!DOCTYPE note>\n"
            "<note>\n"
            "  <to>\n"
            "    Tove\n"
            "  </to>\n"
            "</note>\n"
        )

    def test_doctype_keyword_normalized(self):
        assert fmt("<!doctype   html  >") == "<!DOCTYPE html>\n"

    def test_processing_instruction(self):
        source = '<?xml version="1.0" encoding="UTF-8"?><root/>'
        assert fmt(source) == '<?xml version="1.0" encoding="UTF-8"?>\n<root/>\n'

    def test_processing_instruction_without_content(self):
        assert fmt("<a><?flush?></a>") == "<a>\n  <?flush?>\n</a>\n"


class TestIndentConfiguration:
    """Tests for configurable indentation."""

    def test_four_spaces(self):
        config = FormatterConfig(indent_width=4)
        assert fmt("<a><b/></a>", config) == "<a>\n    <b/>\n</a>\n"

    def test_tabs(self):
        config = FormatterConfig(indent_width=1, indent_char="\t")
        assert fmt("<a><b><c/></b></a>", config) == "<a>\n\t<b>\n\t\t<c/>\n\t</b>\n</a>\n"

    def test_zero_width(self):
        config = FormatterConfig(indent_width=0)
        assert fmt("<a><b/></a>", config) == "<a>\n<b/>\n</a>\n"


class TestStructuralErrors:
    """Tests for mismatched, unexpected and unclosed elements."""

    def test_mismatched_close_tag(self):
        with pytest.raises(MismatchedCloseTagError) as exc_info:
            fmt("<a><b></a>")
        error = exc_info.value
        assert error.expected == "b"
        assert error.found == "a"
        assert error.position.byte_offset == 6
        assert "expected </b> but found </a>" in str(error)

    def test_unexpected_close_tag(self):
        with pytest.raises(UnexpectedCloseTagError) as exc_info:
            fmt("</a>")
        assert exc_info.value.found == "a"
        assert exc_info.value.position.byte_offset == 0

    def test_extra_close_after_root(self):
        with pytest.raises(UnexpectedCloseTagError) as exc_info:
            fmt("<a></a></a>")
        assert exc_info.value.position.byte_offset == 7

    def test_unclosed_elements_innermost_first(self):
        with pytest.raises(UnclosedElementsError) as exc_info:
            fmt("<a><b>")
        error = exc_info.value
        assert error.open_elements == ["b", "a"]
        assert "b, a" in str(error)
        assert error.position.byte_offset == 6

    def test_structural_errors_are_format_errors(self):
        for source in ("<a><b></a>", "</a>", "<a>"):
            with pytest.raises(FormatError):
                fmt(source)

    def test_tokenize_error_propagates(self):
        with pytest.raises(TokenizeError):
            fmt("<a><b></b")


class TestTokenStreams:
    """Tests for formatting directly from token sequences."""

    def test_missing_end_sentinel_treated_as_end(self):
        pos = TokenPosition(1, 1, 0, 0)
        tokens = [
            Token(TokenType.OPEN_TAG, "a", pos),
            Token(TokenType.TEXT, "x", pos),
            Token(TokenType.CLOSE_TAG, "a", pos),
        ]
        assert XMLFormatter().format(tokens) == "<a>\n  x\n</a>\n"

    def test_missing_end_sentinel_with_open_elements(self):
        pos = TokenPosition(1, 1, 0, 0)
        with pytest.raises(UnclosedElementsError):
            XMLFormatter().format([Token(TokenType.OPEN_TAG, "a", pos)])

    def test_tokens_after_end_sentinel_ignored(self):
        pos = TokenPosition(1, 1, 0, 0)
        tokens = [
            Token(TokenType.OPEN_TAG, "a", pos, self_closing=True),
            Token(TokenType.END_OF_DOCUMENT, "", pos),
            Token(TokenType.CLOSE_TAG, "z", pos),
        ]
        assert XMLFormatter().format(tokens) == "<a/>\n"

    def test_statistics(self):
        document = XMLFormatter().format_tokens(
            XMLTokenizer("<a><b><c/></b></a>").tokenize()
        )
        assert document.token_count == 6
        assert document.max_depth == 2

    def test_formatter_reusable(self):
        formatter = XMLFormatter()
        with pytest.raises(MismatchedCloseTagError):
            formatter.format(XMLTokenizer("<a><b></a>").tokenize())
        assert formatter.format(XMLTokenizer("<a/>").tokenize()) == "<a/>\n"


class TestRenderAttribute:
    """Tests for attribute rendering."""

    def test_double_quoted(self):
        assert render_attribute(Attribute("x", "1")) == 'x="1"'

    def test_single_quote_kept_inside(self):
        assert render_attribute(Attribute("x", "it's", "'")) == 'x="it\'s"'
