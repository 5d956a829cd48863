"""Tests for the SAX-backed event source."""

from typing import List
from unittest import mock

import pytest

from tolerant_xml.shared import ParserConfig
from tolerant_xml.tokenization import EventType, ParseEvent, SAXEventSource


def collect(data, config=None) -> List[ParseEvent]:
    return list(SAXEventSource(config).events(data))


def types_of(events: List[ParseEvent]) -> List[EventType]:
    return [event.type for event in events]


class CloseTrackingSource(SAXEventSource):
    """Event source that records calls to the reader's close()."""

    def _create_parser(self, handler):
        parser = super()._create_parser(handler)
        parser.close = mock.Mock(wraps=parser.close)
        self.parser = parser
        return parser


class TestWellFormedInput:
    """Test event streams for well-formed documents."""

    def test_simple_document(self) -> None:
        """Test the event sequence of a one-element document."""
        events = collect(b"<a>hi</a>")

        assert types_of(events) == [
            EventType.DOCUMENT_START,
            EventType.ELEMENT_START,
            EventType.CHARACTERS,
            EventType.ELEMENT_END,
            EventType.DOCUMENT_END,
        ]
        assert events[1].name == "a"
        assert events[2].text == "hi"
        assert events[3].name == "a"

    def test_attributes_are_reported(self) -> None:
        """Test that attributes arrive as a plain dict."""
        events = collect(b'<a x="1" y="two"/>')

        start = events[1]
        assert start.attributes == {"x": "1", "y": "two"}
        assert isinstance(start.attributes, dict)

    def test_element_positions(self) -> None:
        """Test that start events carry line numbers."""
        events = collect(b"<a>\n<b/>\n</a>")

        starts = [e for e in events if e.type is EventType.ELEMENT_START]
        assert [s.position["line"] for s in starts] == [1, 2]

    def test_element_start_line_and_column(self) -> None:
        """Test the exact position reported for an indented start tag."""
        events = collect(b"<a>\n  <b/>\n</a>")

        starts = [e for e in events if e.type is EventType.ELEMENT_START]
        assert starts[0].position == {"line": 1, "column": 0}
        assert starts[1].position == {"line": 2, "column": 2}

    def test_positions_survive_chunked_feeding(self) -> None:
        """Test that positions are tracked across feed boundaries."""
        data = b"<root>\n" + b"  <item/>\n" * 5 + b"</root>"

        events = collect(data, ParserConfig(chunk_size=3))

        items = [e for e in events if e.type is EventType.ELEMENT_START and e.name == "item"]
        assert [e.position["line"] for e in items] == [2, 3, 4, 5, 6]
        assert {e.position["column"] for e in items} == {2}

    def test_entities_are_decoded(self) -> None:
        """Test that predefined and character references are resolved."""
        events = collect(b"<a>&lt;&amp;&#65;</a>")

        text = "".join(e.text for e in events if e.type is EventType.CHARACTERS)
        assert text == "<&A"

    def test_cdata_is_a_single_event(self) -> None:
        """Test that CDATA content is reported once, as bytes."""
        events = collect(b"<a><![CDATA[<b>&x;</b>\n line]]></a>")

        cdata = [e for e in events if e.type is EventType.CDATA]
        assert len(cdata) == 1
        assert cdata[0].data == b"<b>&x;</b>\n line"
        assert EventType.CHARACTERS not in types_of(events)

    def test_empty_cdata(self) -> None:
        """Test that an empty CDATA section yields empty bytes."""
        events = collect(b"<a><![CDATA[]]></a>")

        cdata = [e for e in events if e.type is EventType.CDATA]
        assert [e.data for e in cdata] == [b""]

    def test_cdata_is_utf8_encoded(self) -> None:
        """Test non-ASCII CDATA content."""
        events = collect("<a><![CDATA[é€]]></a>".encode("utf-8"))

        cdata = [e for e in events if e.type is EventType.CDATA]
        assert cdata[0].data == "é€".encode("utf-8")

    def test_namespaced_names_pass_through(self) -> None:
        """Test that prefixes are kept in element and attribute names."""
        events = collect(b'<ns:a xmlns:ns="urn:x" ns:k="v"/>')

        start = events[1]
        assert start.name == "ns:a"
        assert start.attributes["ns:k"] == "v"

    def test_string_input(self) -> None:
        """Test that already-decoded text is accepted."""
        events = collect("<a>é</a>")

        assert types_of(events)[-1] is EventType.DOCUMENT_END
        assert events[2].text == "é"

    def test_declared_encoding_is_honored_for_bytes(self) -> None:
        """Test that the tokenizer decodes bytes by the XML declaration."""
        data = '<?xml version="1.0" encoding="ISO-8859-1"?><a>é</a>'.encode("latin-1")

        events = collect(data)

        assert events[2].text == "é"

    def test_small_chunks_produce_same_structure(self) -> None:
        """Test that chunked feeding does not change the element events."""
        data = b'<root><item id="1">value</item><![CDATA[raw data]]></root>'

        whole = collect(data)
        chunked = collect(data, ParserConfig(chunk_size=3))

        def structure(events):
            return [
                (e.type, e.name, e.attributes, e.data)
                for e in events
                if e.type is not EventType.CHARACTERS
            ]

        def text(events):
            return "".join(e.text for e in events if e.type is EventType.CHARACTERS)

        assert structure(chunked) == structure(whole)
        assert text(chunked) == text(whole)

    def test_events_are_lazy(self) -> None:
        """Test that events are produced as the document is consumed."""
        stream = SAXEventSource(ParserConfig(chunk_size=4)).events(b"<a><b/></a>")

        assert next(stream).type is EventType.DOCUMENT_START

    def test_abandoned_stream_releases_parser(self) -> None:
        """Test that closing the stream early still closes the expat reader."""
        source = CloseTrackingSource(ParserConfig(chunk_size=4))
        stream = source.events(b"<a><b/><c/><d/></a>")

        assert next(stream).type is EventType.DOCUMENT_START
        stream.close()

        source.parser.close.assert_called_once()

    def test_finished_stream_closes_parser_once(self) -> None:
        """Test that a fully consumed stream closes the reader exactly once."""
        source = CloseTrackingSource()

        assert types_of(list(source.events(b"<a/>")))[-1] is EventType.DOCUMENT_END
        source.parser.close.assert_called_once()


class TestMalformedInput:
    """Test that tokenizer failures end the stream with PARSE_ERROR."""

    def test_not_xml(self) -> None:
        """Test that plain text fails before any element starts."""
        events = collect(b"not xml")

        assert types_of(events) == [EventType.DOCUMENT_START, EventType.PARSE_ERROR]
        assert events[-1].detail
        assert events[-1].position["line"] == 1

    def test_truncated_document(self) -> None:
        """Test that unfinished input reports events before the error."""
        events = collect(b"<a><b>text")

        names = [e.name for e in events if e.type is EventType.ELEMENT_START]
        assert names == ["a", "b"]
        assert events[-1].type is EventType.PARSE_ERROR
        assert EventType.DOCUMENT_END not in types_of(events)

    def test_mismatched_tag(self) -> None:
        """Test that a wrong end tag stops the stream."""
        events = collect(b"<a><b></a>")

        assert events[-1].type is EventType.PARSE_ERROR
        assert types_of(events).count(EventType.PARSE_ERROR) == 1

    def test_parse_error_position(self) -> None:
        """Test that a mismatched end tag is located at its name."""
        events = collect(b"<root>\n  <a></b>")

        assert events[-1].type is EventType.PARSE_ERROR
        assert events[-1].position == {"line": 2, "column": 7}

    def test_error_in_late_chunk_keeps_earlier_events(self) -> None:
        """Test that events from successful chunks are delivered."""
        data = b"<root>" + b"<ok/>" * 20 + b"<bad attr=></root>"

        events = collect(data, ParserConfig(chunk_size=8))

        ok_count = sum(1 for e in events if e.type is EventType.ELEMENT_START and e.name == "ok")
        assert ok_count == 20
        assert events[-1].type is EventType.PARSE_ERROR

    def test_entity_declarations_are_rejected(self) -> None:
        """Test that entity declarations are refused by default."""
        data = b'<!DOCTYPE r [<!ENTITY e "boom">]><r>&e;</r>'

        events = collect(data)

        assert events[-1].type is EventType.PARSE_ERROR
        assert "EntitiesForbidden" in events[-1].detail

    def test_doctype_allowed_by_default(self) -> None:
        """Test that a plain DOCTYPE passes with default settings."""
        events = collect(b"<!DOCTYPE r><r/>")

        assert types_of(events)[-1] is EventType.DOCUMENT_END

    def test_doctype_rejected_in_strict_mode(self) -> None:
        """Test that strict configuration refuses any DOCTYPE."""
        events = collect(b"<!DOCTYPE r><r/>", ParserConfig.strict())

        assert events[-1].type is EventType.PARSE_ERROR
        assert "DTDForbidden" in events[-1].detail

    @pytest.mark.parametrize("data", [b"<", b"<a", b"</a>", b"<a></b>", b"<a><a>"])
    def test_stream_always_terminates_once(self, data: bytes) -> None:
        """Test that exactly one terminal event ends every stream."""
        events = collect(data)

        terminal = [
            e for e in events
            if e.type in (EventType.DOCUMENT_END, EventType.PARSE_ERROR)
        ]
        assert len(terminal) == 1
        assert events[-1] is terminal[0]
