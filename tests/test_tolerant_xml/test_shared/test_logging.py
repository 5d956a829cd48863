"""Tests for correlation-aware logging."""

import logging

import pytest

from tolerant_xml.shared import CorrelationLogger, get_logger


class TestCorrelationLogger:
    """Test structured context on log records."""

    def test_component_defaults_to_module_name(self) -> None:
        """Test that the last dotted name part becomes the component."""
        logger = get_logger("tolerant_xml.tree.builder")

        assert isinstance(logger, CorrelationLogger)
        assert logger.component == "builder"
        assert logger.correlation_id is None

    def test_records_carry_context(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that component and correlation ID are attached to records."""
        logger = get_logger("tolerant_xml.test", "corr-1", "unit")

        with caplog.at_level(logging.DEBUG, logger="tolerant_xml.test"):
            logger.debug("first", extra={"answer": 42})
            logger.warning("second")

        first, second = caplog.records
        assert first.component == "unit"
        assert first.correlation_id == "corr-1"
        assert first.answer == 42
        assert second.levelno == logging.WARNING

    def test_exception_includes_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that exception() records exception info."""
        logger = get_logger("tolerant_xml.test")

        with caplog.at_level(logging.ERROR, logger="tolerant_xml.test"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("failed")

        assert caplog.records[0].exc_info is not None

    def test_bind_changes_only_correlation_id(self) -> None:
        """Test deriving a logger for another request."""
        logger = get_logger("tolerant_xml.test", "old", "unit")

        bound = logger.bind("new")

        assert bound.correlation_id == "new"
        assert bound.component == "unit"
        assert bound.logger is logger.logger
        assert logger.correlation_id == "old"
