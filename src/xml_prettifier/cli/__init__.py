"""Command-line interface module for XML Prettifier.

This module provides the prettify-xml tool for formatting, checking and
inspecting XML documents from files or standard input.
"""

from .main import main

__all__ = ["main"]
