"""Parse event types exchanged between the tokenizer and the tree builder.

A tokenizer turns raw document bytes into an ordered, finite sequence of
``ParseEvent`` objects. The tree builder only depends on this event contract,
so any tokenizer that can produce it may be plugged in.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Optional


class EventType(Enum):
    """Kinds of structural events produced by a tokenizer."""

    DOCUMENT_START = auto()
    ELEMENT_START = auto()
    CHARACTERS = auto()
    CDATA = auto()
    ELEMENT_END = auto()
    DOCUMENT_END = auto()
    PARSE_ERROR = auto()


@dataclass(frozen=True)
class ParseEvent:
    """Single structural event.

    Only the fields relevant to ``type`` are populated:

    - ``ELEMENT_START``: ``name`` and ``attributes``
    - ``CHARACTERS``: ``text``
    - ``CDATA``: ``data``
    - ``ELEMENT_END``: ``name``
    - ``PARSE_ERROR``: ``detail``

    ``position`` holds the tokenizer's ``line``/``column`` when known.
    """

    type: EventType
    name: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    data: Optional[bytes] = None
    detail: Optional[str] = None
    position: Optional[Dict[str, int]] = None

    def __post_init__(self) -> None:
        """Validate that required payload is present for the event type."""
        if self.type in (EventType.ELEMENT_START, EventType.ELEMENT_END) and not self.name:
            raise ValueError(f"{self.type.name} event requires an element name")
        if self.type == EventType.CHARACTERS and self.text is None:
            raise ValueError("CHARACTERS event requires text")
        if self.type == EventType.CDATA and self.data is None:
            raise ValueError("CDATA event requires data")

    @classmethod
    def document_start(cls) -> "ParseEvent":
        return cls(EventType.DOCUMENT_START)

    @classmethod
    def element_start(
        cls,
        name: str,
        attributes: Optional[Dict[str, str]] = None,
        position: Optional[Dict[str, int]] = None,
    ) -> "ParseEvent":
        return cls(
            EventType.ELEMENT_START,
            name=name,
            attributes=dict(attributes or {}),
            position=position,
        )

    @classmethod
    def characters(cls, text: str) -> "ParseEvent":
        return cls(EventType.CHARACTERS, text=text)

    @classmethod
    def cdata(cls, data: bytes) -> "ParseEvent":
        return cls(EventType.CDATA, data=bytes(data))

    @classmethod
    def element_end(
        cls, name: str, position: Optional[Dict[str, int]] = None
    ) -> "ParseEvent":
        return cls(EventType.ELEMENT_END, name=name, position=position)

    @classmethod
    def document_end(cls) -> "ParseEvent":
        return cls(EventType.DOCUMENT_END)

    @classmethod
    def parse_error(
        cls, detail: str, position: Optional[Dict[str, int]] = None
    ) -> "ParseEvent":
        return cls(EventType.PARSE_ERROR, detail=detail, position=position)
