"""Public parsing API for tolerant XML parsing."""

from .parser import XMLParser, parse, parse_document, parse_file, parse_string

__all__ = [
    "XMLParser",
    "parse",
    "parse_document",
    "parse_file",
    "parse_string",
]
