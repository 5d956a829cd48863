"""Tree building from parse event streams.

This module implements the state machine that reduces a tokenizer's event
sequence into an ``XMLElement`` tree. It follows the never-fail philosophy:
tokenizer failures stop the build and surface the partial tree built so far,
recorded as diagnostics on the ``ParseResult`` rather than raised.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from tolerant_xml.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ParserConfig,
    PerformanceMetrics,
    get_logger,
)
from tolerant_xml.tokenization import EventType, ParseEvent
from tolerant_xml.tree.element import XMLElement


@dataclass
class ParseResult:
    """Result object for tree building operations.

    ``root`` is the best tree assembled, or None when no element was ever
    started. ``success`` is False when the tokenizer reported an error; the
    tree is then partial.
    """

    root: Optional[XMLElement] = None
    success: bool = True

    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def element_count(self) -> int:
        """Get total number of elements in the tree."""
        if self.root is None:
            return 0
        return sum(1 for _ in self.root.iter_elements())

    @property
    def max_depth(self) -> int:
        """Get depth of the deepest element (root = 0)."""
        if self.root is None:
            return 0
        deepest = 0
        pending = [(self.root, 0)]
        while pending:
            element, depth = pending.pop()
            deepest = max(deepest, depth)
            pending.extend((child, depth + 1) for child in element.children)
        return deepest

    @property
    def processing_time_ms(self) -> float:
        """Get processing time in milliseconds."""
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        entry = DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        )
        self.diagnostics.append(entry)

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        by_severity: Dict[str, int] = {}
        for diag in self.diagnostics:
            by_severity[diag.severity.name] = by_severity.get(diag.severity.name, 0) + 1

        return {
            "success": self.success,
            "root_name": self.root.name if self.root is not None else None,
            "element_count": self.element_count,
            "max_depth": self.max_depth,
            "has_errors": self.has_errors(),
            "diagnostics_by_severity": by_severity,
            "processing_time_ms": self.performance.processing_time_ms,
            "bytes_processed": self.performance.bytes_processed,
            "events_processed": self.performance.events_processed,
            "correlation_id": self.correlation_id,
        }


@dataclass
class _OpenFrame:
    """An element whose end event has not arrived yet, with pending content."""

    element: XMLElement
    text_parts: List[str] = field(default_factory=list)
    cdata: Optional[bytearray] = None


class XMLTreeBuilder:
    """Reduces parse events into an element tree.

    The builder's state is the root element and a stack of open frames whose
    top is the cursor (the innermost open element). Text and CDATA are
    buffered per frame and written to the element once, when it closes.

    Examples:
        >>> from tolerant_xml.tokenization import SAXEventSource
        >>> result = XMLTreeBuilder().build(SAXEventSource().events(b'<a><b/></a>'))
        >>> result.root.first_child_named('b').name
        'b'
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Parser configuration (trim and diagnostics settings)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_tree_builder")
        self._reset_state()

    @property
    def auto_trim_text(self) -> bool:
        return self.config.auto_trim_text

    @property
    def cursor(self) -> Optional[XMLElement]:
        """Innermost currently open element."""
        return self._stack[-1].element if self._stack else None

    def _reset_state(self) -> None:
        self._root: Optional[XMLElement] = None
        self._stack: List[_OpenFrame] = []
        self._stopped = False
        self._result = ParseResult(correlation_id=self.correlation_id)
        self._processing_start_time = time.time()

    def build(self, events: Iterable[ParseEvent]) -> ParseResult:
        """Build an element tree from an event stream.

        Args:
            events: Ordered parse events, as produced by a tokenizer

        Returns:
            ParseResult holding the root element (or None) and diagnostics
        """
        self._reset_state()
        self.logger.info("Starting tree building")

        for event in events:
            self.feed(event)
            if self._stopped:
                break

        result = self.result()
        self.logger.info(
            "Tree building completed",
            extra={
                "success": result.success,
                "element_count": result.element_count,
                "events_processed": result.performance.events_processed,
            }
        )
        return result

    def feed(self, event: ParseEvent) -> None:
        """Process a single event. Events after a terminal event are ignored."""
        if self._stopped:
            self.logger.debug(
                "Ignoring event after end of parse",
                extra={"event_type": event.type.name}
            )
            return

        self._result.performance.events_processed += 1

        if event.type == EventType.DOCUMENT_START:
            self._handle_document_start()
        elif event.type == EventType.ELEMENT_START:
            self._handle_element_start(event)
        elif event.type == EventType.CHARACTERS:
            self._handle_characters(event)
        elif event.type == EventType.CDATA:
            self._handle_cdata(event)
        elif event.type == EventType.ELEMENT_END:
            self._handle_element_end(event)
        elif event.type == EventType.DOCUMENT_END:
            self._stopped = True
        elif event.type == EventType.PARSE_ERROR:
            self._handle_parse_error(event)

    def result(self) -> ParseResult:
        """Finalize any still-open elements and return the result."""
        if self._stack:
            unclosed = len(self._stack)
            while self._stack:
                self._close_current_element()
            self._add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Finalized {unclosed} unclosed elements",
                "structure",
                details={"unclosed_count": unclosed},
            )

        result = self._result
        result.root = self._root
        result.performance.processing_time_ms = (
            time.time() - self._processing_start_time
        ) * 1000
        return result

    def _add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        if self.config.enable_diagnostics:
            self._result.add_diagnostic(severity, message, component, position, details)

    def _handle_document_start(self) -> None:
        self._root = None
        self._stack.clear()

    def _handle_element_start(self, event: ParseEvent) -> None:
        element = XMLElement(event.name, attributes=dict(event.attributes))
        self._result.performance.elements_created += 1

        if self._root is None:
            self._root = element
        current = self.cursor
        if current is not None:
            current.add_child(element)

        self._stack.append(_OpenFrame(element))

    def _handle_characters(self, event: ParseEvent) -> None:
        if not self._stack:
            self.logger.debug("Ignoring character data outside of any element")
            return
        self._stack[-1].text_parts.append(event.text)

    def _handle_cdata(self, event: ParseEvent) -> None:
        if not self._stack:
            self.logger.debug("Ignoring CDATA outside of any element")
            return
        frame = self._stack[-1]
        if frame.cdata is None:
            frame.cdata = bytearray()
        frame.cdata.extend(event.data)

    def _handle_element_end(self, event: ParseEvent) -> None:
        if not self._stack:
            self._add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"End tag </{event.name}> without open element ignored",
                "structure",
                position=event.position,
            )
            return

        if event.name != self.cursor.name:
            self.logger.debug(
                "End tag name does not match open element",
                extra={"end_name": event.name, "open_name": self.cursor.name}
            )
        self._close_current_element()

    def _handle_parse_error(self, event: ParseEvent) -> None:
        self._stopped = True
        self._result.success = False
        self.logger.warning(
            "Tokenizer reported a parse error; keeping partial tree",
            extra={"detail": event.detail, "position": event.position}
        )
        self._add_diagnostic(
            DiagnosticSeverity.ERROR,
            f"Parse error: {event.detail or 'unknown tokenizer failure'}",
            "tokenizer",
            position=event.position,
        )

    def _close_current_element(self) -> None:
        frame = self._stack.pop()
        element = frame.element

        if frame.text_parts:
            text = "".join(frame.text_parts)
            if self.auto_trim_text:
                text = text.strip()
            element.text = text or None

        if frame.cdata is not None:
            element.cdata = bytes(frame.cdata)
