"""Core XML tokenization implementation.

This module converts decoded document text into a lazy sequence of structural
tokens. Classification happens at each ``<`` with a bounded lookahead of at most
nine characters; everything between markup is accumulated as text. The tokenizer
never trims or rewrites content and never recovers from malformed input: the
first lexical defect raises ``TokenizeError``.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, NoReturn, Optional, Tuple

from xml_prettifier.shared.errors import TokenizeError
from xml_prettifier.shared.logging import get_logger

# Markup openers recognized by lookahead
COMMENT_START = "<!--"
COMMENT_END = "-->"
CDATA_START = "<![CDATA["
CDATA_END = "]]>"
DOCTYPE_KEYWORD = "<!DOCTYPE"
PI_START = "<?"
PI_END = "?>"
CLOSE_TAG_START = "</"
SELF_CLOSING_END = "/>"

XML_WHITESPACE = " \t\r\n"
UNICODE_START_OFFSET = 0x80  # Start of non-ASCII characters, all allowed in names

_PI_SPLIT = re.compile(r"[ \t\r\n]+")


class TokenType(Enum):
    """XML token types produced by the tokenizer."""

    OPEN_TAG = auto()                # <name attr="value"> or <name/>
    CLOSE_TAG = auto()               # </name>
    TEXT = auto()                    # Character data between markup
    COMMENT = auto()                 # <!-- ... -->
    CDATA = auto()                   # <![CDATA[ ... ]]>
    DOCTYPE = auto()                 # <!DOCTYPE ...>
    PROCESSING_INSTRUCTION = auto()  # <?target ...?>
    END_OF_DOCUMENT = auto()         # Terminal sentinel


@dataclass(frozen=True)
class TokenPosition:
    """Position information for XML tokens.

    ``offset`` indexes the decoded text; ``byte_offset`` indexes the original
    input bytes, byte order mark included.
    """

    line: int
    column: int
    offset: int
    byte_offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")
        if self.byte_offset < 0:
            raise ValueError("Byte offset must be >= 0")


@dataclass(frozen=True)
class Attribute:
    """One attribute of an open tag, value kept exactly as written."""

    name: str
    value: str
    quote: str = '"'


@dataclass
class Token:
    """Represents a single XML token with its source position.

    ``value`` holds the element name for tags and the raw payload for every
    other token type. Processing instructions additionally carry ``target``.
    """

    type: TokenType
    value: str
    position: TokenPosition
    attributes: List[Attribute] = field(default_factory=list)
    self_closing: bool = False
    target: str = ""

    def __post_init__(self) -> None:
        """Validate token values."""
        if self.type in (TokenType.OPEN_TAG, TokenType.CLOSE_TAG) and not self.value:
            raise ValueError("Tag tokens require a non-empty name")
        if self.type == TokenType.PROCESSING_INSTRUCTION and not self.target:
            raise ValueError("Processing instructions require a target")
        if self.self_closing and self.type != TokenType.OPEN_TAG:
            raise ValueError("Only open tags can be self-closing")

    @property
    def name(self) -> str:
        """Element name of a tag token."""
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view of the token, used for debugging dumps."""
        data: Dict[str, Any] = {
            "type": self.type.name,
            "value": self.value,
            "line": self.position.line,
            "column": self.position.column,
            "byte_offset": self.position.byte_offset,
        }
        if self.type == TokenType.OPEN_TAG:
            data["attributes"] = [[attr.name, attr.value] for attr in self.attributes]
            data["self_closing"] = self.self_closing
        if self.type == TokenType.PROCESSING_INSTRUCTION:
            data["target"] = self.target
        return data


def is_name_start_char(char: str) -> bool:
    """Check if character can start an XML name."""
    return (char.isalpha() or
            char == "_" or
            char == ":" or
            ord(char) >= UNICODE_START_OFFSET)


def is_name_char(char: str) -> bool:
    """Check if character can be part of an XML name."""
    return (is_name_start_char(char) or
            char.isdigit() or
            char in ".-")


def _width_encoding(encoding: str) -> Tuple[str, str]:
    """Codec and error handler used to measure byte widths of decoded text."""
    lowered = encoding.lower().replace("_", "-")
    if lowered in ("utf-16", "utf16"):
        return "utf-16-le", "surrogatepass"
    if lowered in ("utf-32", "utf32"):
        return "utf-32-le", "surrogatepass"
    if lowered.startswith("utf"):
        return encoding, "surrogatepass"
    return encoding, "replace"


class XMLTokenizer:
    """Single-pass XML tokenizer over one decoded document.

    The token sequence is produced lazily by ``tokenize()`` and is not
    replayable; create a new tokenizer to start over.
    """

    def __init__(
        self,
        text: str,
        encoding: str = "utf-8",
        byte_base: int = 0,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the XML tokenizer.

        Args:
            text: Decoded document text
            encoding: Encoding of the original bytes, used for byte offsets
            byte_base: Bytes preceding ``text`` in the input (a byte order mark)
            correlation_id: Optional correlation ID for tracking requests
        """
        self.text = text
        self.encoding = encoding
        self.byte_base = byte_base
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_tokenizer")
        self._width_codec, self._width_errors = _width_encoding(encoding)
        self._started = False

        # Incremental position cursor; token starts are requested in order
        self._mark_index = 0
        self._mark_line = 1
        self._mark_line_start = 0
        self._mark_bytes = byte_base

    def tokenize(self) -> Iterator[Token]:
        """Yield tokens in document order, ending with END_OF_DOCUMENT.

        Raises:
            TokenizeError: on the first malformed construct
            RuntimeError: if the tokenizer has already been consumed
        """
        if self._started:
            raise RuntimeError("XMLTokenizer instances are single-use")
        self._started = True

        text = self.text
        length = len(text)
        pos = 0
        count = 0

        self.logger.debug(
            "Starting tokenization",
            extra={"char_count": length, "encoding": self.encoding},
        )

        while pos < length:
            if text[pos] != "<":
                end = text.find("<", pos)
                if end == -1:
                    end = length
                yield Token(TokenType.TEXT, text[pos:end], self._position(pos))
                pos = end
            else:
                token, pos = self._scan_markup(pos)
                yield token
            count += 1

        count += 1
        self.logger.debug("Tokenization completed", extra={"token_count": count})
        yield Token(TokenType.END_OF_DOCUMENT, "", self._position(length))

    def _scan_markup(self, pos: int) -> Tuple[Token, int]:
        """Classify and scan the construct starting with ``<`` at ``pos``."""
        text = self.text

        if text.startswith(COMMENT_START, pos):
            return self._scan_delimited(
                pos, COMMENT_START, COMMENT_END, TokenType.COMMENT, "comment"
            )
        if text.startswith(CDATA_START, pos):
            return self._scan_delimited(
                pos, CDATA_START, CDATA_END, TokenType.CDATA, "CDATA section"
            )
        if text[pos:pos + len(DOCTYPE_KEYWORD)].upper() == DOCTYPE_KEYWORD:
            return self._scan_doctype(pos)
        if text.startswith("<!", pos):
            self._fail("unrecognized markup declaration", pos)
        if text.startswith(PI_START, pos):
            return self._scan_processing_instruction(pos)
        if text.startswith(CLOSE_TAG_START, pos):
            return self._scan_close_tag(pos)
        if pos + 1 >= len(text):
            self._fail("unterminated tag", pos)
        if is_name_start_char(text[pos + 1]):
            return self._scan_open_tag(pos)
        self._fail(f"invalid character after '<': {text[pos + 1]!r}", pos + 1)

    def _scan_delimited(
        self,
        pos: int,
        opener: str,
        closer: str,
        token_type: TokenType,
        label: str,
    ) -> Tuple[Token, int]:
        start = pos + len(opener)
        end = self.text.find(closer, start)
        if end == -1:
            self._fail(f"unterminated {label}", pos)
        token = Token(token_type, self.text[start:end], self._position(pos))
        return token, end + len(closer)

    def _scan_doctype(self, pos: int) -> Tuple[Token, int]:
        text = self.text
        start = pos + len(DOCTYPE_KEYWORD)
        if start < len(text) and text[start] not in XML_WHITESPACE + ">[":
            self._fail("unrecognized markup declaration", pos)

        # Brackets of an internal subset are opaque; only a top-level '>' ends it
        depth = 0
        for index in range(start, len(text)):
            char = text[index]
            if char == "[":
                depth += 1
            elif char == "]" and depth > 0:
                depth -= 1
            elif char == ">" and depth == 0:
                token = Token(TokenType.DOCTYPE, text[start:index], self._position(pos))
                return token, index + 1
        self._fail("unterminated DOCTYPE declaration", pos)

    def _scan_processing_instruction(self, pos: int) -> Tuple[Token, int]:
        start = pos + len(PI_START)
        end = self.text.find(PI_END, start)
        if end == -1:
            self._fail("unterminated processing instruction", pos)

        body = self.text[start:end]
        if not body or body[0] in XML_WHITESPACE:
            self._fail("processing instruction target missing", start)

        parts = _PI_SPLIT.split(body, maxsplit=1)
        content = parts[1] if len(parts) > 1 else ""
        token = Token(
            TokenType.PROCESSING_INSTRUCTION,
            content,
            self._position(pos),
            target=parts[0],
        )
        return token, end + len(PI_END)

    def _scan_close_tag(self, pos: int) -> Tuple[Token, int]:
        text = self.text
        name_start = pos + len(CLOSE_TAG_START)
        if name_start >= len(text):
            self._fail("unterminated close tag", pos)
        if not is_name_start_char(text[name_start]):
            self._fail(
                f"invalid character in close tag: {text[name_start]!r}", name_start
            )

        name_end = self._scan_name(name_start)
        index = self._skip_whitespace(name_end)
        if index >= len(text):
            self._fail("unterminated close tag", pos)
        if text[index] != ">":
            self._fail(f"unexpected character in close tag: {text[index]!r}", index)

        token = Token(TokenType.CLOSE_TAG, text[name_start:name_end], self._position(pos))
        return token, index + 1

    def _scan_open_tag(self, pos: int) -> Tuple[Token, int]:
        text = self.text
        length = len(text)
        name_start = pos + 1
        index = self._scan_name(name_start)
        name = text[name_start:index]
        attributes: List[Attribute] = []

        while True:
            after_space = self._skip_whitespace(index)
            separated = after_space > index
            index = after_space

            if index >= length:
                self._fail(f"unterminated tag <{name}>", pos)
            char = text[index]

            if char == ">":
                index += 1
                self_closing = False
                break
            if text.startswith(SELF_CLOSING_END, index):
                index += len(SELF_CLOSING_END)
                self_closing = True
                break
            if char == "/":
                if index + 1 >= length:
                    self._fail(f"unterminated tag <{name}>", pos)
                self._fail("expected '>' after '/'", index + 1)
            if not is_name_start_char(char):
                self._fail(f"invalid character in tag: {char!r}", index)
            if not separated:
                self._fail("whitespace required before attribute", index)

            attribute, index = self._scan_attribute(index, pos, name)
            attributes.append(attribute)

        token = Token(
            TokenType.OPEN_TAG,
            name,
            self._position(pos),
            attributes=attributes,
            self_closing=self_closing,
        )
        return token, index

    def _scan_attribute(self, index: int, tag_pos: int, tag_name: str) -> Tuple[Attribute, int]:
        """Scan ``name = "value"`` starting at an attribute name character."""
        text = self.text
        length = len(text)

        name_end = self._scan_name(index)
        attr_name = text[index:name_end]

        index = self._skip_whitespace(name_end)
        if index >= length:
            self._fail(f"unterminated tag <{tag_name}>", tag_pos)
        if text[index] != "=":
            self._fail(f"expected '=' after attribute name {attr_name!r}", index)

        index = self._skip_whitespace(index + 1)
        if index >= length:
            self._fail(f"unterminated tag <{tag_name}>", tag_pos)
        quote = text[index]
        if quote not in "\"'":
            self._fail(f"value of attribute {attr_name!r} must be quoted", index)

        value_end = text.find(quote, index + 1)
        if value_end == -1:
            self._fail(
                f"end of input inside quoted value of attribute {attr_name!r}", index
            )

        attribute = Attribute(attr_name, text[index + 1:value_end], quote)
        return attribute, value_end + 1

    def _scan_name(self, index: int) -> int:
        text = self.text
        length = len(text)
        while index < length and is_name_char(text[index]):
            index += 1
        return index

    def _skip_whitespace(self, index: int) -> int:
        text = self.text
        length = len(text)
        while index < length and text[index] in XML_WHITESPACE:
            index += 1
        return index

    def _position(self, index: int) -> TokenPosition:
        """Compute line, column and byte offset for ``index`` in the text."""
        if index < self._mark_index:
            self._mark_index = 0
            self._mark_line = 1
            self._mark_line_start = 0
            self._mark_bytes = self.byte_base

        segment = self.text[self._mark_index:index]
        newlines = segment.count("\n")
        if newlines:
            self._mark_line += newlines
            self._mark_line_start = self._mark_index + segment.rfind("\n") + 1
        self._mark_bytes += len(segment.encode(self._width_codec, self._width_errors))
        self._mark_index = index

        return TokenPosition(
            line=self._mark_line,
            column=index - self._mark_line_start + 1,
            offset=index,
            byte_offset=self._mark_bytes,
        )

    def _fail(self, reason: str, index: int) -> NoReturn:
        """Raise TokenizeError for ``reason`` at text ``index``."""
        error = TokenizeError(reason, self._position(index))
        self.logger.failure("Tokenization failed", error, {"reason": reason})
        raise error


def tokenize_string(
    text: str,
    encoding: str = "utf-8",
    correlation_id: Optional[str] = None,
) -> List[Token]:
    """Tokenize ``text`` eagerly and return the complete token list."""
    return list(XMLTokenizer(text, encoding=encoding, correlation_id=correlation_id).tokenize())
