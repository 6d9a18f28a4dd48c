"""Public prettifying API."""

from .prettifier import (
    XMLPrettifier,
    prettify,
    prettify_bytes,
    prettify_file,
    prettify_string,
)

__all__ = [
    "XMLPrettifier",
    "prettify",
    "prettify_bytes",
    "prettify_file",
    "prettify_string",
]
