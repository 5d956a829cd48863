"""SAX-backed tokenizer producing ``ParseEvent`` streams.

The heavy lifting is done by expat through ``defusedxml``'s hardened SAX
reader, which refuses entity expansion and external references. This module
only adapts the SAX callbacks to the event contract of
:mod:`tolerant_xml.tokenization.events`, and turns tokenizer failures into a
terminating ``PARSE_ERROR`` event instead of an exception.
"""

from contextlib import suppress
from typing import Dict, Iterator, List, Optional, Union
from xml.sax import SAXException, SAXParseException
from xml.sax.expatreader import ExpatLocator
from xml.sax.handler import ContentHandler, LexicalHandler, property_lexical_handler

from defusedxml import DefusedXmlException
from defusedxml.expatreader import DefusedExpatParser

from tolerant_xml.shared import ParserConfig, get_logger
from tolerant_xml.tokenization.events import ParseEvent


class _EventCollector(ContentHandler, LexicalHandler):
    """Buffers SAX callbacks as ``ParseEvent`` objects until drained."""

    def __init__(self) -> None:
        ContentHandler.__init__(self)
        self.pending: List[ParseEvent] = []
        # Non-None while inside a CDATA section
        self._cdata_parts: Optional[List[str]] = None

    def _position(self) -> Optional[Dict[str, int]]:
        if self._locator is None:
            return None
        return {
            "line": self._locator.getLineNumber(),
            "column": self._locator.getColumnNumber(),
        }

    def drain(self) -> List[ParseEvent]:
        events, self.pending = self.pending, []
        return events

    def startDocument(self) -> None:
        self.pending.append(ParseEvent.document_start())

    def endDocument(self) -> None:
        self.pending.append(ParseEvent.document_end())

    def startElement(self, name, attrs) -> None:
        self.pending.append(
            ParseEvent.element_start(name, dict(attrs.items()), self._position())
        )

    def endElement(self, name) -> None:
        self.pending.append(ParseEvent.element_end(name, self._position()))

    def characters(self, content) -> None:
        if self._cdata_parts is not None:
            self._cdata_parts.append(content)
        else:
            self.pending.append(ParseEvent.characters(content))

    def ignorableWhitespace(self, whitespace) -> None:
        self.characters(whitespace)

    def startCDATA(self) -> None:
        self._cdata_parts = []

    def endCDATA(self) -> None:
        parts = self._cdata_parts or []
        self._cdata_parts = None
        self.pending.append(ParseEvent.cdata("".join(parts).encode("utf-8")))


class SAXEventSource:
    """Tokenizer that feeds a document to expat and yields parse events.

    Examples:
        >>> source = SAXEventSource()
        >>> [event.type.name for event in source.events(b'<a>hi</a>')]
        ['DOCUMENT_START', 'ELEMENT_START', 'CHARACTERS', 'ELEMENT_END', 'DOCUMENT_END']
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "sax_event_source")

    def _create_parser(self, handler: _EventCollector) -> DefusedExpatParser:
        parser = DefusedExpatParser(
            forbid_dtd=self.config.forbid_dtd,
            forbid_entities=self.config.forbid_entities,
            forbid_external=self.config.forbid_external,
        )
        parser.setContentHandler(handler)
        parser.setProperty(property_lexical_handler, handler)
        return parser

    def events(self, data: Union[str, bytes]) -> Iterator[ParseEvent]:
        """Tokenize ``data`` lazily, one chunk at a time.

        The stream ends with ``DOCUMENT_END`` on success, or with a single
        ``PARSE_ERROR`` event when the tokenizer gives up. Events produced
        before the failure are always delivered first. Abandoning the stream
        early still releases the underlying expat parser.
        """
        handler = _EventCollector()
        parser = self._create_parser(handler)
        handler.setDocumentLocator(ExpatLocator(parser))
        chunk_size = self.config.chunk_size
        closed = False

        self.logger.debug(
            "Tokenizing document",
            extra={"input_length": len(data), "chunk_size": chunk_size}
        )

        try:
            for offset in range(0, len(data), chunk_size):
                parser.feed(data[offset:offset + chunk_size])
                yield from handler.drain()
            parser.close()
            closed = True
            yield from handler.drain()

        except SAXParseException as e:
            yield from handler.drain()
            yield ParseEvent.parse_error(
                e.getMessage(),
                {"line": e.getLineNumber(), "column": e.getColumnNumber()},
            )

        except (SAXException, DefusedXmlException) as e:
            yield from handler.drain()
            yield ParseEvent.parse_error(f"{type(e).__name__}: {e}")

        finally:
            if not closed:
                self._release(parser)

    def _release(self, parser: DefusedExpatParser) -> None:
        # An unfinished document fails to close; no consumer is left for the error
        with suppress(SAXException, DefusedXmlException):
            parser.close()
        self.logger.debug("Released tokenizer before end of document")
