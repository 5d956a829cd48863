"""Serialization of element trees back into XML text.

Output is deterministic: attributes appear in mapping order and the five XML
reserved characters are escaped in attribute keys, values and text. Carriage
returns, and in attribute values also newlines and tabs, are written as
character references so a reparse returns them unchanged. CDATA payloads are
written verbatim. By default no indentation is emitted; with
``use_whitespace`` each nesting level is indented by one space.

Trees are walked with an explicit stack, so nesting depth is not bounded by
the interpreter's recursion limit.
"""

from typing import List, Optional, Tuple, Union
from xml.sax.saxutils import escape

from tolerant_xml.tree.element import XMLElement

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
INDENT_UNIT = " "

_TEXT_ENTITIES = {'"': "&quot;", "'": "&apos;", "\r": "&#13;"}
# Parsers normalize raw whitespace in attribute values to spaces
_ATTRIBUTE_ENTITIES = {**_TEXT_ENTITIES, "\n": "&#10;", "\t": "&#9;"}


def escape_xml(value: str) -> str:
    """Escape ``& < > " '`` as XML entities, and carriage returns as ``&#13;``."""
    return escape(value, _TEXT_ENTITIES)


def escape_attribute(value: str) -> str:
    """Escape an attribute value so that its whitespace survives a reparse."""
    return escape(value, _ATTRIBUTE_ENTITIES)


def serialize(
    element: XMLElement, indent_level: int = 0, use_whitespace: bool = False
) -> str:
    """Render ``element`` and its descendants as XML text.

    Args:
        element: Element to render
        indent_level: Nesting depth of ``element``; 0 adds the XML declaration
        use_whitespace: Indent nested lines with one space per level

    Returns:
        XML text. Elements without children, text or CDATA are self-closing.
        Elements without children keep their text or CDATA on the tag's line.

    Examples:
        >>> root = XMLElement("root")
        >>> root.add_child(XMLElement("a", attributes={"x": "1"}, text="hi"))
        >>> print(serialize(root))
        <?xml version="1.0" encoding="UTF-8"?>
        <root>
        <a x="1">hi</a>
        </root>
    """
    if indent_level < 0:
        raise ValueError("indent_level must be >= 0")

    spacer = INDENT_UNIT if use_whitespace else ""
    parts: List[str] = []
    if indent_level == 0:
        parts.append(XML_DECLARATION)

    # Entries are elements still to open, or literal closing text
    pending: List[Union[Tuple[XMLElement, int], str]] = [(element, indent_level)]
    while pending:
        entry = pending.pop()
        if isinstance(entry, str):
            parts.append(entry)
            continue

        current, level = entry
        closing = _write_opening(parts, current, level, spacer)
        if closing is None:
            continue
        pending.append(closing)
        for child in reversed(current.children):
            pending.append("\n")
            pending.append((child, level + 1))

    return "".join(parts)


def _write_opening(
    parts: List[str], element: XMLElement, indent_level: int, spacer: str
) -> Optional[str]:
    """Write the start tag and inline content; return the end tag, if any."""
    tab = spacer * indent_level
    has_children = bool(element.children)
    text = escape_xml(element.text) if element.text else ""

    parts.append(f"{tab}<{element.name}")
    for key, value in element.attributes.items():
        parts.append(f' {escape_xml(key)}="{escape_attribute(value)}"')

    if not has_children and element.cdata is None and not text:
        parts.append("/>")
        return None

    parts.append(">")
    if has_children:
        parts.append("\n")

    content = []
    if text:
        content.append(text)
    if element.cdata is not None:
        payload = element.cdata.decode("utf-8", errors="replace")
        content.append(f"<![CDATA[{payload}]]>")

    for line in content:
        parts.append(f"{tab}{spacer}{line}\n" if has_children else line)

    return f"{tab}</{element.name}>" if has_children else f"</{element.name}>"
