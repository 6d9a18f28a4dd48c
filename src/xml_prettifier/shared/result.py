"""Result objects for XML prettifying.

This module defines the result returned by a successful prettify operation along
with the performance metrics gathered while producing it.
"""

from dataclasses import dataclass, field
from typing import Optional

import psutil


def current_memory_bytes() -> int:
    """Resident set size of this process in bytes."""
    return psutil.Process().memory_info().rss


@dataclass
class PerformanceMetrics:
    """Performance metrics for prettify operations."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    tokens_generated: int = 0
    memory_start_bytes: Optional[int] = None
    memory_end_bytes: Optional[int] = None

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens generated per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_generated * 1000.0) / self.processing_time_ms

    @property
    def memory_delta_bytes(self) -> Optional[int]:
        """Growth in resident memory across the operation, if sampled."""
        if self.memory_start_bytes is None or self.memory_end_bytes is None:
            return None
        return self.memory_end_bytes - self.memory_start_bytes


@dataclass
class FormatResult:
    """Outcome of one successful prettify operation.

    Attributes:
        text: Formatted document
        encoding: Encoding the input was decoded with and output is encoded with
        had_bom: Whether the input started with a byte order mark
        token_count: Number of tokens consumed, including the end sentinel
        max_depth: Deepest element nesting seen
        changed: Whether the formatted text differs from the decoded input
        performance: Timing and memory figures
    """

    text: str
    encoding: str = "utf-8"
    had_bom: bool = False
    token_count: int = 0
    max_depth: int = 0
    changed: bool = True
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)

    @property
    def line_count(self) -> int:
        """Number of lines in the formatted output."""
        return len(self.text.splitlines())

    def to_bytes(self) -> bytes:
        """Encode the formatted text in the input's encoding, restoring any BOM."""
        from xml_prettifier.character.encoding import bom_for

        data = self.text.encode(self.encoding)
        if self.had_bom:
            data = bom_for(self.encoding) + data
        return data
