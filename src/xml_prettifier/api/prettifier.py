"""Prettifier API with progressive disclosure.

Module-level functions cover the common cases; ``XMLPrettifier`` adds
configuration, correlation tracking and usage statistics. Unlike a recovering
parser, every function here either returns a complete result or raises a
``PrettifyError`` subclass: there is no partial output.
"""

import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from xml_prettifier.character import CharacterStreamProcessor
from xml_prettifier.formatting import XMLFormatter
from xml_prettifier.shared import (
    FormatResult,
    PerformanceMetrics,
    PrettifierConfig,
    PrettifyError,
    get_logger,
)
from xml_prettifier.shared.result import current_memory_bytes
from xml_prettifier.tokenization import XMLTokenizer

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

MS_PER_SECOND = 1000  # Milliseconds per second conversion


class XMLPrettifier:
    """Configured prettifier with usage statistics.

    Examples:
        >>> prettifier = XMLPrettifier()
        >>> prettifier.prettify("<root><child>text</child></root>").text
        '<root>\\n  <child>\\n    text\\n  </child>\\n</root>\\n'
    """

    def __init__(
        self,
        config: Optional[PrettifierConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or PrettifierConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_prettifier")
        self._char_processor = CharacterStreamProcessor(
            config=self.config.character,
            correlation_id=self.correlation_id,
        )
        self._formatter = XMLFormatter(
            config=self.config.formatter,
            correlation_id=self.correlation_id,
        )
        self.reset_statistics()

    def prettify(self, input_data: InputType) -> FormatResult:
        """Prettify XML from a string, bytes, file-like object or Path.

        Raises:
            PrettifyError: on undecodable input, lexical or structural errors
            OSError: if a Path cannot be read
        """
        if isinstance(input_data, Path):
            input_data = input_data.read_bytes()

        start_time = time.perf_counter()
        memory_start = current_memory_bytes() if self.config.enable_metrics else None

        try:
            char_result = self._char_processor.process(input_data)
            tokenizer = XMLTokenizer(
                char_result.text,
                encoding=char_result.encoding.encoding,
                byte_base=char_result.bom_length,
                correlation_id=self.correlation_id,
            )
            document = self._formatter.format_tokens(tokenizer.tokenize())
        except PrettifyError as e:
            self._failed_runs += 1
            self._record_time(start_time)
            self.logger.failure("Prettify failed", e)
            raise

        processing_time = self._record_time(start_time)
        self._successful_runs += 1

        performance = PerformanceMetrics(
            processing_time_ms=processing_time,
            characters_processed=len(char_result.text),
            tokens_generated=document.token_count,
        )
        if memory_start is not None:
            performance.memory_start_bytes = memory_start
            performance.memory_end_bytes = current_memory_bytes()

        result = FormatResult(
            text=document.text,
            encoding=char_result.encoding.encoding,
            had_bom=char_result.encoding.has_bom,
            token_count=document.token_count,
            max_depth=document.max_depth,
            changed=document.text != char_result.text,
            performance=performance,
        )

        self.logger.debug(
            "Prettify completed",
            extra={
                "processing_time_ms": processing_time,
                "token_count": result.token_count,
                "changed": result.changed,
            },
        )
        return result

    def is_canonical(self, input_data: InputType) -> bool:
        """Whether prettifying ``input_data`` would leave it unchanged."""
        return not self.prettify(input_data).changed

    def _record_time(self, start_time: float) -> float:
        elapsed = (time.perf_counter() - start_time) * MS_PER_SECOND
        self._total_processing_time += elapsed
        return elapsed

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get prettifier usage statistics."""
        total = self._successful_runs + self._failed_runs
        return {
            "total_runs": total,
            "successful_runs": self._successful_runs,
            "failed_runs": self._failed_runs,
            "success_rate": self._successful_runs / total if total > 0 else 0.0,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / total if total > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset prettifier usage statistics."""
        self._successful_runs = 0
        self._failed_runs = 0
        self._total_processing_time = 0.0


def prettify(
    input_data: InputType,
    config: Optional[PrettifierConfig] = None,
    correlation_id: Optional[str] = None,
) -> FormatResult:
    """Prettify XML from any supported input with automatic type detection.

    Examples:
        >>> prettify("<a><b/></a>").text
        '<a>\\n  <b/>\\n</a>\\n'

        >>> prettify(b"<a/>").to_bytes()
        b'<a/>\\n'
    """
    return XMLPrettifier(config, correlation_id).prettify(input_data)


def prettify_string(xml_string: str, config: Optional[PrettifierConfig] = None) -> str:
    """Prettify an XML string and return the formatted string."""
    return prettify(xml_string, config).text


def prettify_bytes(data: bytes, config: Optional[PrettifierConfig] = None) -> bytes:
    """Prettify XML bytes, returning bytes in the same encoding."""
    return prettify(data, config).to_bytes()


def prettify_file(
    file_path: Union[str, Path],
    config: Optional[PrettifierConfig] = None,
    correlation_id: Optional[str] = None,
) -> FormatResult:
    """Prettify the XML file at ``file_path``.

    Raises:
        FileNotFoundError: if the file does not exist
        PrettifyError: if the document cannot be formatted
    """
    return prettify(Path(file_path), config, correlation_id)
