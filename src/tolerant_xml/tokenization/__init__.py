"""Tokenization layer for tolerant XML parsing.

Key Components:
    EventType: Kinds of structural events
    ParseEvent: A single event handed to the tree builder
    SAXEventSource: Hardened expat tokenizer producing event streams
"""

from .events import EventType, ParseEvent
from .sax import SAXEventSource

__all__ = [
    "EventType",
    "ParseEvent",
    "SAXEventSource",
]
