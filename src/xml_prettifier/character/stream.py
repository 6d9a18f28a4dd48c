"""Character stream processing: turn raw input into text for the tokenizer.

Bytes are decoded strictly in the detected encoding; a byte sequence that does
not decode is reported with its byte offset rather than replaced.
"""

from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, TextIO, Union

from xml_prettifier.shared.config import CharacterConfig
from xml_prettifier.shared.errors import DecodeError
from xml_prettifier.shared.logging import get_logger

from .encoding import DetectionMethod, EncodingDetector, EncodingResult

# Type definitions for input data
InputType = Union[bytes, str, BinaryIO, TextIO]


@dataclass
class CharacterStreamResult:
    """Decoded document text plus what is needed to encode it back.

    Attributes:
        text: Decoded document, without any byte order mark
        encoding: Encoding detection result
        byte_length: Size of the original input in bytes (0 for str input)
        diagnostics: Non-fatal notes gathered while decoding
    """
    text: str
    encoding: EncodingResult
    byte_length: int = 0
    diagnostics: List[str] = field(default_factory=list)

    @property
    def bom_length(self) -> int:
        return self.encoding.bom_length


class CharacterStreamProcessor:
    """Decodes str, bytes or file-like input into a CharacterStreamResult."""

    def __init__(
        self,
        config: Optional[CharacterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or CharacterConfig()
        self.logger = get_logger(__name__, correlation_id, "character_stream")
        self._detector = EncodingDetector(
            fallback_encoding=self.config.fallback_encoding,
            detect_bom=self.config.detect_bom,
            honor_xml_declaration=self.config.honor_xml_declaration,
        )

    def process(self, input_data: InputType) -> CharacterStreamResult:
        """Decode ``input_data``.

        Raises:
            DecodeError: the bytes are not valid in the detected encoding
            TypeError: the input is not str, bytes or a readable object
        """
        if isinstance(input_data, bytes):
            return self._process_bytes(input_data)
        if isinstance(input_data, str):
            return self._process_string(input_data)
        if hasattr(input_data, "read"):
            return self.process(input_data.read())
        raise TypeError(
            f"Unsupported input type for prettifying: {type(input_data).__name__}"
        )

    def _check_size(self, size: int) -> None:
        limit = self.config.max_input_size_bytes
        if limit is not None and size > limit:
            raise DecodeError(
                f"input of {size} bytes exceeds limit of {limit} bytes",
                encoding=self.config.fallback_encoding,
                byte_offset=limit,
            )

    def _process_bytes(self, data: bytes) -> CharacterStreamResult:
        self._check_size(len(data))
        encoding_result = self._detector.detect(data)

        try:
            text = data[encoding_result.bom_length:].decode(encoding_result.encoding)
        except UnicodeDecodeError as e:
            error = DecodeError(
                f"invalid {encoding_result.encoding} data: {e.reason}",
                encoding=encoding_result.encoding,
                byte_offset=e.start + encoding_result.bom_length,
            )
            self.logger.failure(
                "Input is not decodable",
                error,
                {"encoding": error.encoding, "method": encoding_result.method.value},
            )
            raise error from e

        for issue in encoding_result.issues:
            self.logger.warning(
                "Declared encoding ignored",
                extra={
                    "issue": issue,
                    "declared_encoding": encoding_result.declared_encoding,
                    "encoding": encoding_result.encoding,
                    "method": encoding_result.method.value,
                },
            )

        self.logger.debug(
            "Decoded input",
            extra={
                "encoding": encoding_result.encoding,
                "method": encoding_result.method.value,
                "input_size": len(data),
            },
        )

        return CharacterStreamResult(
            text=text,
            encoding=encoding_result,
            byte_length=len(data),
            diagnostics=[f"Encoding detection: {issue}" for issue in encoding_result.issues],
        )

    def _process_string(self, text: str) -> CharacterStreamResult:
        self._check_size(len(text.encode("utf-8", "surrogatepass")))
        # Already decoded text is treated as UTF-8 for byte offsets and output
        encoding_result = EncodingResult(
            encoding="utf-8",
            method=DetectionMethod.FALLBACK,
        )
        if text.startswith("\ufeff"):
            text = text[1:]
            encoding_result.bom_length = 3
        return CharacterStreamResult(text=text, encoding=encoding_result)
