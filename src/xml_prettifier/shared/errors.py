"""Error taxonomy for XML prettifying.

Every failure is fatal to the current invocation: errors propagate to the caller
carrying enough position information to locate the defect in the source document.
No partial output is ever produced alongside an error.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from xml_prettifier.tokenization.tokenizer import TokenPosition


class PrettifyError(Exception):
    """Base exception for all prettifying failures."""

    kind = "PrettifyError"

    def __init__(self, message: str, position: Optional["TokenPosition"] = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    @property
    def byte_offset(self) -> Optional[int]:
        """Byte offset of the problem in the original input, if known."""
        if self.position is None:
            return None
        return self.position.byte_offset

    def describe(self) -> str:
        """Render a one-line diagnostic suitable for standard error."""
        if self.position is None:
            return f"{self.kind}: {self.message}"
        return (
            f"{self.kind}: {self.message} "
            f"(byte offset {self.position.byte_offset}, "
            f"line {self.position.line}, column {self.position.column})"
        )


class DecodeError(PrettifyError):
    """Input bytes could not be decoded with the detected encoding."""

    kind = "DecodeError"

    def __init__(
        self,
        message: str,
        encoding: str,
        byte_offset: int,
    ) -> None:
        super().__init__(message)
        self.encoding = encoding
        self._byte_offset = byte_offset

    @property
    def byte_offset(self) -> Optional[int]:
        return self._byte_offset

    def describe(self) -> str:
        return f"{self.kind}: {self.message} (byte offset {self._byte_offset})"


class TokenizeError(PrettifyError):
    """Malformed lexical structure: unterminated constructs, bad tag syntax."""

    kind = "TokenizeError"

    def __init__(self, reason: str, position: "TokenPosition") -> None:
        super().__init__(reason, position)
        self.reason = reason


class FormatError(PrettifyError):
    """Structural error detected while formatting the token stream."""

    kind = "FormatError"


class MismatchedCloseTagError(FormatError):
    """A close tag does not match the innermost open element."""

    kind = "MismatchedCloseTag"

    def __init__(self, expected: str, found: str, position: "TokenPosition") -> None:
        super().__init__(
            f"expected </{expected}> but found </{found}>", position
        )
        self.expected = expected
        self.found = found


class UnexpectedCloseTagError(FormatError):
    """A close tag appears while no element is open."""

    kind = "UnexpectedCloseTag"

    def __init__(self, found: str, position: "TokenPosition") -> None:
        super().__init__(f"</{found}> has no matching open element", position)
        self.found = found


class UnclosedElementsError(FormatError):
    """Input ended while elements were still open."""

    kind = "UnclosedElementsError"

    def __init__(
        self,
        open_elements: List[str],
        position: Optional["TokenPosition"] = None,
    ) -> None:
        # open_elements is ordered innermost first
        super().__init__(
            "unclosed elements at end of document: " + ", ".join(open_elements),
            position,
        )
        self.open_elements = list(open_elements)
