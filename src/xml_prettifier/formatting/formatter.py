"""Stack-based formatting of an XML token stream.

The formatter pulls tokens one at a time, keeps an explicit stack of open
elements, and renders one line per token indented by the current nesting depth.
Output is accumulated in memory and only returned once the end-of-document
token has been processed without error.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from xml_prettifier.shared.config import FormatterConfig
from xml_prettifier.shared.errors import (
    FormatError,
    MismatchedCloseTagError,
    UnclosedElementsError,
    UnexpectedCloseTagError,
)
from xml_prettifier.shared.logging import get_logger
from xml_prettifier.tokenization.tokenizer import (
    XML_WHITESPACE,
    Attribute,
    Token,
    TokenPosition,
    TokenType,
)


@dataclass(frozen=True)
class ElementFrame:
    """An open element: its name and where its open tag started."""

    name: str
    position: TokenPosition


class ElementStack:
    """LIFO of open, not yet closed elements."""

    def __init__(self) -> None:
        self._frames: List[ElementFrame] = []
        self.max_depth = 0

    def __len__(self) -> int:
        return len(self._frames)

    def __bool__(self) -> bool:
        return bool(self._frames)

    def __iter__(self) -> Iterator[ElementFrame]:
        """Iterate innermost first."""
        return reversed(self._frames)

    def push(self, name: str, position: TokenPosition) -> None:
        self._frames.append(ElementFrame(name, position))
        self.max_depth = max(self.max_depth, len(self._frames))

    def pop(self) -> ElementFrame:
        return self._frames.pop()

    def peek(self) -> Optional[ElementFrame]:
        return self._frames[-1] if self._frames else None

    def open_names(self) -> List[str]:
        """Names of open elements, innermost first."""
        return [frame.name for frame in self]


@dataclass
class FormattedDocument:
    """Output of one formatting run."""

    text: str
    token_count: int
    max_depth: int


def render_attribute(attribute: Attribute) -> str:
    """Render an attribute re-quoted with double quotes."""
    value = attribute.value.replace('"', "&quot;")
    return f'{attribute.name}="{value}"'


def render_open_tag(token: Token) -> str:
    parts = [token.name]
    parts.extend(render_attribute(attribute) for attribute in token.attributes)
    closer = "/>" if token.self_closing else ">"
    return "<" + " ".join(parts) + closer


class XMLFormatter:
    """Formats a token stream into canonical, indented XML.

    Each call to ``format`` or ``format_tokens`` is an independent run with its
    own element stack, so one formatter can be reused for many documents.
    """

    def __init__(
        self,
        config: Optional[FormatterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or FormatterConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_formatter")

    def format(self, tokens: Iterable[Token]) -> str:
        """Format ``tokens`` and return the document text.

        Raises:
            TokenizeError: propagated from a lazily consumed tokenizer
            FormatError: on mismatched, unexpected or unclosed elements
        """
        return self.format_tokens(tokens).text

    def format_tokens(self, tokens: Iterable[Token]) -> FormattedDocument:
        """Format ``tokens`` and return the text with run statistics.

        A stream that ends without an END_OF_DOCUMENT token is treated as if
        the sentinel had been received after its last token.
        """
        indent_unit = self.config.indent_unit
        stack = ElementStack()
        lines: List[str] = []
        token_count = 0
        end_position: Optional[TokenPosition] = None

        for token in tokens:
            token_count += 1
            if token.type == TokenType.END_OF_DOCUMENT:
                end_position = token.position
                break

            if token.type == TokenType.CLOSE_TAG:
                self._close_element(stack, token)
                lines.append(indent_unit * len(stack) + f"</{token.name}>")
                continue

            line = self._render(token)
            if line is not None:
                lines.append(indent_unit * len(stack) + line)

            if token.type == TokenType.OPEN_TAG and not token.self_closing:
                stack.push(token.name, token.position)

        if stack:
            error = UnclosedElementsError(stack.open_names(), end_position)
            self.logger.failure(
                "Document ended with open elements",
                error,
                {"open_elements": error.open_elements},
            )
            raise error

        self.logger.debug(
            "Formatting completed",
            extra={
                "token_count": token_count,
                "line_count": len(lines),
                "max_depth": stack.max_depth,
            },
        )

        text = "\n".join(lines) + "\n" if lines else ""
        return FormattedDocument(text=text, token_count=token_count, max_depth=stack.max_depth)

    def _close_element(self, stack: ElementStack, token: Token) -> None:
        top = stack.peek()
        if top is None:
            error: FormatError = UnexpectedCloseTagError(token.name, token.position)
            self.logger.failure("Close tag without open element", error)
            raise error
        if top.name != token.name:
            error = MismatchedCloseTagError(top.name, token.name, token.position)
            self.logger.failure(
                "Mismatched close tag",
                error,
                {"opened_at": f"{top.position.line}:{top.position.column}"},
            )
            raise error
        stack.pop()

    def _render(self, token: Token) -> Optional[str]:
        """Render a non-closing token as one line; None suppresses the line."""
        if token.type == TokenType.OPEN_TAG:
            return render_open_tag(token)
        if token.type == TokenType.TEXT:
            content = token.value.strip(XML_WHITESPACE)
            return content or None
        if token.type == TokenType.COMMENT:
            return f"<!--{token.value}-->"
        if token.type == TokenType.CDATA:
            return f"<![CDATA[{token.value}]]>"
        if token.type == TokenType.DOCTYPE:
            content = token.value.strip(XML_WHITESPACE)
            return f"<!DOCTYPE {content}>" if content else "<!DOCTYPE>"
        if token.type == TokenType.PROCESSING_INSTRUCTION:
            if token.value:
                return f"<?{token.target} {token.value}?>"
            return f"<?{token.target}?>"
        raise ValueError(f"Unsupported token type: {token.type}")
