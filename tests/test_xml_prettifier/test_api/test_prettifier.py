"""Tests for the prettifier API and the properties its output guarantees."""

import codecs
import io
from pathlib import Path

import pytest

from xml_prettifier.api import (
    XMLPrettifier,
    prettify,
    prettify_bytes,
    prettify_file,
    prettify_string,
)
from xml_prettifier.shared.config import CharacterConfig, PrettifierConfig
from xml_prettifier.shared.errors import (
    DecodeError,
    MismatchedCloseTagError,
    TokenizeError,
    UnclosedElementsError,
)
from xml_prettifier.tokenization import TokenType, tokenize_string

SAMPLE_DOCUMENTS = [
    "<root><child>text</child></root>",
    "<a/>",
    '<?xml version="1.0" encoding="UTF-8"?><!DOCTYPE note><note><to>Tove</to></note>',
    "<root>\n    <!-- a comment -->\n\t<item id='1' name=\"x\"/>\n</root>\n",
    "<a><![CDATA[ <raw> & data ]]><b>  padded  text  </b></a>",
    '<ns:root xmlns:ns="urn:x"><ns:leaf q=\'say "hi"\'>v</ns:leaf></ns:root>',
    "<a>first<b/>second<?pi do it ?>third</a>",
    "<!-- leading --><a>\n  multi\n  line\n</a><!-- trailing -->",
    "",
]


def structural_view(text):
    """Token sequence with whitespace differences normalized away."""
    view = []
    for token in tokenize_string(text):
        if token.type == TokenType.TEXT:
            content = token.value.strip(" \t\r\n")
            if content:
                view.append((token.type, content))
        elif token.type == TokenType.OPEN_TAG:
            attributes = tuple(
                (attr.name, attr.value.replace('"', "&quot;"))
                for attr in token.attributes
            )
            view.append((token.type, token.name, attributes, token.self_closing))
        elif token.type == TokenType.DOCTYPE:
            view.append((token.type, token.value.strip(" \t\r\n")))
        elif token.type == TokenType.PROCESSING_INSTRUCTION:
            view.append((token.type, token.target, token.value))
        else:
            view.append((token.type, token.value))
    return view


class TestOutputProperties:
    """Properties that hold for every successfully formatted document."""

    @pytest.mark.parametrize("source", SAMPLE_DOCUMENTS)
    def test_idempotent(self, source):
        """Formatting formatted output changes nothing."""
        once = prettify_string(source)
        assert prettify_string(once) == once

    @pytest.mark.parametrize("source", SAMPLE_DOCUMENTS)
    def test_structure_preserved(self, source):
        """Output tokenizes to the same structure as the input."""
        assert structural_view(prettify_string(source)) == structural_view(source)

    @pytest.mark.parametrize("source", SAMPLE_DOCUMENTS)
    def test_indentation_matches_depth(self, source):
        """Every line starts with exactly two spaces per open ancestor."""
        depth = 0
        for token_line in prettify_string(source).splitlines():
            stripped = token_line.lstrip(" ")
            indent = len(token_line) - len(stripped)
            if not stripped.startswith("<") and indent == 0 and depth:
                # Continuation line of a multi-line text run
                continue
            if stripped.startswith("</"):
                depth -= 1
            assert indent == 2 * depth, token_line
            is_open_tag = (
                stripped.startswith("<")
                and not stripped.startswith(("</", "<!", "<?"))
                and not stripped.endswith("/>")
            )
            if is_open_tag:
                depth += 1

    @pytest.mark.parametrize("source", SAMPLE_DOCUMENTS[:-1])
    def test_output_ends_with_single_newline(self, source):
        output = prettify_string(source)
        assert output.endswith("\n")
        assert not output.endswith("\n\n")


class TestModuleFunctions:
    """Test the level-1 API functions."""

    def test_prettify_string(self):
        assert prettify_string("<root><child>text</child></root>") == (
            "<root>\n  <child>\n    text\n  </child>\n</root>\n"
        )

    def test_prettify_result(self):
        result = prettify("<a><b><c/></b></a>")

        assert result.text == "<a>\n  <b>\n    <c/>\n  </b>\n</a>\n"
        assert result.encoding == "utf-8"
        assert result.had_bom is False
        assert result.token_count == 6
        assert result.max_depth == 2
        assert result.line_count == 5
        assert result.changed is True

    def test_prettify_with_config(self):
        config = PrettifierConfig().override(formatter__indent_width=4)
        assert prettify_string("<a><b/></a>", config) == "<a>\n    <b/>\n</a>\n"

    def test_prettify_file_like(self):
        assert prettify(io.BytesIO(b"<a><b/></a>")).text == "<a>\n  <b/>\n</a>\n"

    def test_prettify_bytes_keeps_utf8_bom(self):
        output = prettify_bytes(codecs.BOM_UTF8 + b"<a><b/></a>")
        assert output == codecs.BOM_UTF8 + b"<a>\n  <b/>\n</a>\n"

    def test_prettify_bytes_utf16(self):
        data = "<a>é</a>".encode("utf-16")
        result = prettify(data)

        assert result.had_bom is True
        assert result.encoding in ("utf-16-le", "utf-16-be")
        assert result.to_bytes().decode("utf-16") == "<a>\n  é\n</a>\n"

    def test_prettify_bytes_declared_latin1(self):
        data = '<?xml version="1.0" encoding="ISO-8859-1"?><a>é</a>'.encode("latin-1")
        output = prettify_bytes(data)

        assert b"\xe9" in output
        assert output.decode("latin-1").endswith("<a>\n  é\n</a>\n")

    def test_prettify_file(self, tmp_path):
        path = tmp_path / "doc.xml"
        path.write_bytes(b"<a><b>x</b></a>")

        assert prettify_file(path).text == "<a>\n  <b>\n    x\n  </b>\n</a>\n"
        assert prettify_file(str(path)).text.startswith("<a>")

    def test_prettify_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            prettify_file(tmp_path / "missing.xml")

    def test_prettify_path_object(self, tmp_path):
        path = tmp_path / "doc.xml"
        path.write_text("<a/>", encoding="utf-8")
        assert prettify(Path(path)).text == "<a/>\n"


class TestErrors:
    """Test error propagation through the API."""

    def test_mismatched_close_tag(self):
        with pytest.raises(MismatchedCloseTagError) as exc_info:
            prettify_string("<a><b></a>")
        assert exc_info.value.byte_offset == 6

    def test_error_offset_includes_bom(self):
        with pytest.raises(MismatchedCloseTagError) as exc_info:
            prettify(codecs.BOM_UTF8 + b"<a><b></a>")
        assert exc_info.value.byte_offset == 9

    def test_error_offset_counts_multibyte(self):
        with pytest.raises(MismatchedCloseTagError) as exc_info:
            prettify("<a><b>é</a>".encode("utf-8"))
        assert exc_info.value.byte_offset == 8

    def test_unclosed(self):
        with pytest.raises(UnclosedElementsError) as exc_info:
            prettify_string("<a><b>")
        assert exc_info.value.open_elements == ["b", "a"]

    def test_tokenize_error(self):
        with pytest.raises(TokenizeError, match="unterminated comment"):
            prettify_string("<a><!-- never closed</a>")

    def test_decode_error(self):
        with pytest.raises(DecodeError) as exc_info:
            prettify(b"<a>\xff</a>")
        assert exc_info.value.byte_offset == 3

    def test_size_limit(self):
        config = PrettifierConfig(character=CharacterConfig(max_input_size_bytes=8))
        with pytest.raises(DecodeError):
            prettify(b"<root><child/></root>", config)

    def test_unsupported_input(self):
        with pytest.raises(TypeError):
            prettify(123)


class TestXMLPrettifier:
    """Test the configured prettifier class."""

    def test_statistics(self):
        prettifier = XMLPrettifier(correlation_id="req-42")
        prettifier.prettify("<a/>")
        with pytest.raises(MismatchedCloseTagError):
            prettifier.prettify("<a><b></a>")

        stats = prettifier.statistics
        assert stats["total_runs"] == 2
        assert stats["successful_runs"] == 1
        assert stats["failed_runs"] == 1
        assert stats["success_rate"] == 0.5
        assert stats["correlation_id"] == "req-42"

        prettifier.reset_statistics()
        assert prettifier.statistics["total_runs"] == 0
        assert prettifier.statistics["success_rate"] == 0.0

    def test_correlation_id_from_config(self):
        prettifier = XMLPrettifier(PrettifierConfig(correlation_id="cfg-1"))
        assert prettifier.correlation_id == "cfg-1"

    def test_is_canonical(self):
        prettifier = XMLPrettifier()
        assert prettifier.is_canonical("<a>\n  <b/>\n</a>\n")
        assert not prettifier.is_canonical("<a><b/></a>")

    def test_changed_flag(self):
        prettifier = XMLPrettifier()
        assert prettifier.prettify("<a/>").changed
        assert not prettifier.prettify("<a/>\n").changed

    def test_metrics_sampled(self):
        result = XMLPrettifier(PrettifierConfig(enable_metrics=True)).prettify("<a/>")

        assert result.performance.processing_time_ms >= 0
        assert result.performance.characters_processed == 4
        assert result.performance.tokens_generated == 2
        assert result.performance.memory_delta_bytes is not None

    def test_metrics_disabled(self):
        result = XMLPrettifier(PrettifierConfig(enable_metrics=False)).prettify("<a/>")
        assert result.performance.memory_delta_bytes is None
