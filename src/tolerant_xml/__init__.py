"""Tolerant XML.

Builds XML element trees from SAX event streams and serializes them back to
text, degrading to a partial tree (or None) instead of raising on malformed
input. Also ships request encoding helpers for HTTP clients.

API levels:
- Level 1: parse_document() - bytes in, root element or None out
- Level 2: parse(), parse_string(), parse_file() - full ParseResult
- Level 3: XMLParser class - configured, reusable parser with statistics
"""

__version__ = "0.1.0"
__author__ = "Tolerant XML Team"

from .api import XMLParser, parse, parse_document, parse_file, parse_string
from .shared.config import ParserConfig
from .tree import ParseResult, XMLElement, serialize

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1 and 2: parsing functions
    "parse_document",
    "parse",
    "parse_string",
    "parse_file",

    # Level 3: configured parser
    "XMLParser",

    # Result objects and data structures
    "ParseResult",
    "XMLElement",
    "serialize",

    # Configuration
    "ParserConfig",
]
