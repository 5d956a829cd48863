"""Public parsing API for tolerant XML parsing.

The API goes from the single-call ``parse_document`` (bytes in, root element
or None out) to ``parse``/``parse_string``/``parse_file`` returning a full
``ParseResult``, and finally to the reusable, configured ``XMLParser`` class.
None of these raise for malformed input.
"""

import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from tolerant_xml.shared import (
    DiagnosticSeverity,
    ParserConfig,
    get_logger,
)
from tolerant_xml.tokenization import SAXEventSource
from tolerant_xml.tree import ParseResult, XMLElement, XMLTreeBuilder

# Type definitions for input data
InputType = Union[str, bytes, bytearray, BinaryIO, TextIO, Path, None]

MS_PER_SECOND = 1000


def parse_document(
    data: Optional[Union[bytes, bytearray, str]], auto_trim_text: bool = True
) -> Optional[XMLElement]:
    """Parse a document and return its root element.

    Args:
        data: XML document bytes (str is accepted as already-decoded text)
        auto_trim_text: Strip surrounding whitespace from element text

    Returns:
        The root element, or None for empty input or input in which no
        element could be started. A document that breaks off midway yields
        the partial tree built up to the failure.

    Examples:
        >>> root = parse_document(b'<root><a x="1">hi</a></root>')
        >>> root.name, root.first_child_named('a').text
        ('root', 'hi')
        >>> parse_document(b'not xml') is None
        True
    """
    config = ParserConfig(auto_trim_text=auto_trim_text)
    return _parse_direct_content(data, config, None).root


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse XML from bytes, text, a path or a file-like object.

    Args:
        input_data: XML content as bytes, string, file-like object, or Path
        config: Parser configuration (defaults to ``ParserConfig()``)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the tree and diagnostics

    Examples:
        >>> result = parse(b'<root><item>value</item></root>')
        >>> result.success, result.root.text_of('item')
        (True, 'value')
    """
    config = config or ParserConfig()
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse")

    logger.info(
        "Starting parse operation",
        extra={"input_type": type(input_data).__name__}
    )

    try:
        if input_data is None or isinstance(input_data, (str, bytes, bytearray)):
            return _parse_direct_content(input_data, config, correlation_id)
        if isinstance(input_data, Path):
            return parse_file(input_data, config, correlation_id)
        if hasattr(input_data, "read"):
            return _parse_direct_content(input_data.read(), config, correlation_id)

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            f"Unsupported input type: {type(input_data).__name__}",
            correlation_id,
            processing_time
        )

    except Exception as e:
        # Never-fail guarantee: return error result with diagnostics
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.exception(
            "Parse operation failed",
            extra={"processing_time_ms": processing_time}
        )
        return _create_error_result(
            f"Parse operation failed: {e}",
            correlation_id,
            processing_time
        )


def parse_string(
    xml_string: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse XML from a string.

    The text is handed to the tokenizer as-is, so an ``encoding`` in the XML
    declaration is ignored.

    Examples:
        >>> result = parse_string('<root><item id="1">Hello</item></root>')
        >>> result.root.attributes_of('item')
        {'id': '1'}
    """
    return _parse_direct_content(xml_string, config or ParserConfig(), correlation_id)


def parse_file(
    file_path: Union[str, Path],
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse XML from a file, letting the tokenizer detect the encoding.

    Missing or unreadable files produce an unsuccessful result with a
    CRITICAL diagnostic rather than an exception.

    Examples:
        >>> result = parse_file('missing.xml')
        >>> result.success
        False
    """
    config = config or ParserConfig()
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_file")
    path_obj = Path(file_path)

    logger.info("Starting file parse operation", extra={"file_path": str(path_obj)})

    error_message = None
    if not path_obj.exists():
        error_message = f"File not found: {path_obj}"
    elif not path_obj.is_file():
        error_message = f"Path is not a file: {path_obj}"

    if error_message is None:
        try:
            raw_data = path_obj.read_bytes()
        except OSError as e:
            error_message = f"Could not read file {path_obj}: {e}"

    if error_message is not None:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.warning(error_message)
        return _create_error_result(error_message, correlation_id, processing_time)

    result = _parse_direct_content(raw_data, config, correlation_id)
    result.add_diagnostic(
        DiagnosticSeverity.INFO,
        "File parsed",
        "file_parser",
        details={"file_path": str(path_obj), "size_bytes": len(raw_data)}
    )
    return result


def _parse_direct_content(
    content: Optional[Union[str, bytes, bytearray]],
    config: ParserConfig,
    correlation_id: Optional[str]
) -> ParseResult:
    """Tokenize and build a tree from in-memory content."""
    start_time = time.time()
    correlation_id = correlation_id or config.correlation_id
    logger = get_logger(__name__, correlation_id, "parse_direct")

    if not content:
        result = ParseResult(correlation_id=correlation_id)
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            "Empty input - no document produced",
            "api_parser",
            details={"input_type": type(content).__name__}
        )
        return result

    try:
        if isinstance(content, bytearray):
            content = bytes(content)

        # Text input is limited and reported in characters, bytes in bytes
        unit = "characters" if isinstance(content, str) else "bytes"
        truncated_from = None
        limit = config.max_input_size_bytes
        if limit is not None and len(content) > limit:
            truncated_from = len(content)
            content = content[:limit]

        source = SAXEventSource(config=config, correlation_id=correlation_id)
        builder = XMLTreeBuilder(config=config, correlation_id=correlation_id)
        result = builder.build(source.events(content))

        if truncated_from is not None:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Input truncated to {limit} of {truncated_from} {unit}",
                "api_parser",
                details={"limit": limit, "input_size": truncated_from, "unit": unit}
            )

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        result.performance.processing_time_ms = processing_time
        result.performance.bytes_processed = (
            len(content.encode("utf-8")) if isinstance(content, str) else len(content)
        )

        logger.debug(
            "Direct content parsing completed",
            extra={
                "success": result.success,
                "element_count": result.element_count,
                "processing_time_ms": processing_time,
            }
        )
        return result

    except Exception as e:
        # Never-fail: return error result
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.exception(
            "Direct content parsing failed",
            extra={"processing_time_ms": processing_time}
        )
        return _create_error_result(
            f"Content parsing failed: {e}",
            correlation_id,
            processing_time
        )


def _create_error_result(
    error_message: str,
    correlation_id: Optional[str],
    processing_time: float
) -> ParseResult:
    """Create an unsuccessful result carrying a CRITICAL diagnostic."""
    result = ParseResult(correlation_id=correlation_id, success=False)
    result.performance.processing_time_ms = processing_time

    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error_message,
        "api_parser"
    )

    return result


class XMLParser:
    """Configured, reusable XML parser.

    Attributes:
        config: Current parser configuration
        correlation_id: Correlation ID for request tracking

    Examples:
        >>> parser = XMLParser(ParserConfig.preserve_whitespace())
        >>> parser.parse(b'<a>  x  </a>').root.text
        '  x  '
        >>> parser.statistics['total_parses']
        1
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_parser")

        # Parser state for multi-parse scenarios
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

    def parse(
        self,
        input_data: InputType,
        correlation_id_override: Optional[str] = None
    ) -> ParseResult:
        """Parse XML with this parser's configuration.

        Args:
            input_data: XML content as bytes, string, file-like object, or Path
            correlation_id_override: Optional correlation ID for this parse only

        Returns:
            ParseResult containing the tree and diagnostics
        """
        correlation_id = correlation_id_override or self.correlation_id
        logger = self.logger.bind(correlation_id)

        result = parse(input_data, self.config, correlation_id)

        self._parse_count += 1
        self._total_processing_time += result.processing_time_ms
        if result.success:
            self._successful_parses += 1

        logger.info(
            "Configured parse completed",
            extra={
                "success": result.success,
                "total_parses": self._parse_count,
            }
        )
        return result

    def parse_document(self, data: Optional[Union[bytes, str]]) -> Optional[XMLElement]:
        """Parse ``data`` and return only its root element, or None."""
        return self.parse(data).root

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the parser configuration for subsequent parses."""
        self.config = config
        self.logger.info(
            "Parser reconfigured",
            extra={"config": config.to_dict()}
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

        self.logger.info("Parser statistics reset")
