"""Shared utilities for XML prettifying.

This module provides the configuration objects, result types, error taxonomy and
logging helpers used across the character, tokenization and formatting layers.
"""

from .config import (
    CharacterConfig,
    ConfigError,
    ConfigValidationError,
    FormatterConfig,
    PrettifierConfig,
)
from .errors import (
    DecodeError,
    FormatError,
    MismatchedCloseTagError,
    PrettifyError,
    TokenizeError,
    UnclosedElementsError,
    UnexpectedCloseTagError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    FormatResult,
    PerformanceMetrics,
)

__all__ = [
    "CharacterConfig",
    "ConfigError",
    "ConfigValidationError",
    "FormatterConfig",
    "PrettifierConfig",
    "DecodeError",
    "FormatError",
    "MismatchedCloseTagError",
    "PrettifyError",
    "TokenizeError",
    "UnclosedElementsError",
    "UnexpectedCloseTagError",
    "CorrelationLogger",
    "get_logger",
    "FormatResult",
    "PerformanceMetrics",
]
