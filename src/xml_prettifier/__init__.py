"""XML Prettifier.

Reformats minified or inconsistently indented XML into a canonical layout: one
element tag, text run, comment, CDATA section, DOCTYPE or processing instruction
per line, indented by nesting depth. Content is preserved; structural defects
are reported instead of repaired.

Progressive API Disclosure:
- Level 1: Simple functions - prettify(), prettify_string(), prettify_bytes(),
  prettify_file()
- Level 2: Configured prettifier - XMLPrettifier class
- Level 3: Layers - XMLTokenizer and XMLFormatter
"""

__version__ = "0.1.0"
__author__ = "XML Prettifier Team"

from .api import XMLPrettifier, prettify, prettify_bytes, prettify_file, prettify_string
from .formatting import XMLFormatter
from .shared.config import CharacterConfig, FormatterConfig, PrettifierConfig
from .shared.errors import (
    DecodeError,
    FormatError,
    MismatchedCloseTagError,
    PrettifyError,
    TokenizeError,
    UnclosedElementsError,
    UnexpectedCloseTagError,
)
from .shared.result import FormatResult
from .tokenization import Token, TokenType, XMLTokenizer

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "prettify",
    "prettify_string",
    "prettify_bytes",
    "prettify_file",

    # Level 2: Configured prettifier
    "XMLPrettifier",

    # Level 3: Layers
    "XMLTokenizer",
    "XMLFormatter",
    "Token",
    "TokenType",

    # Results and configuration
    "FormatResult",
    "CharacterConfig",
    "FormatterConfig",
    "PrettifierConfig",

    # Errors
    "PrettifyError",
    "DecodeError",
    "TokenizeError",
    "FormatError",
    "MismatchedCloseTagError",
    "UnexpectedCloseTagError",
    "UnclosedElementsError",
]
