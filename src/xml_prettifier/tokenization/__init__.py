"""Tokenization engine for XML prettifying.

This module converts decoded document text into structural XML tokens.

Key Components:
    XMLTokenizer: Lazy, single-pass tokenizer over one document
    Token: One classified lexical unit with its source position
    TokenType: Enumeration of all supported token types
    TokenPosition: Line, column and byte offset of a token
    Attribute: Attribute of an open tag, kept verbatim
"""

from .tokenizer import (
    Attribute,
    Token,
    TokenPosition,
    TokenType,
    XMLTokenizer,
    is_name_char,
    is_name_start_char,
    tokenize_string,
)

__all__ = [
    "Attribute",
    "Token",
    "TokenPosition",
    "TokenType",
    "XMLTokenizer",
    "is_name_char",
    "is_name_start_char",
    "tokenize_string",
]
