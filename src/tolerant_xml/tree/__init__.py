"""Tree building and serialization for tolerant XML parsing.

Key Components:
    XMLElement: Element node with attributes, text, CDATA and children
    XMLTreeBuilder: State machine reducing parse events into a tree
    ParseResult: Best-effort tree plus diagnostics and metrics
    serialize: Renders a tree back into XML text
"""

from .builder import ParseResult, XMLTreeBuilder
from .element import XMLElement
from .serializer import escape_attribute, escape_xml, serialize

__all__ = [
    "ParseResult",
    "XMLElement",
    "XMLTreeBuilder",
    "escape_attribute",
    "escape_xml",
    "serialize",
]
