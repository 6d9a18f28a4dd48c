"""Formatting layer: turns a token stream into indented, one-unit-per-line XML."""

from .formatter import (
    ElementFrame,
    ElementStack,
    FormattedDocument,
    XMLFormatter,
    render_attribute,
    render_open_tag,
)

__all__ = [
    "ElementFrame",
    "ElementStack",
    "FormattedDocument",
    "XMLFormatter",
    "render_attribute",
    "render_open_tag",
]
