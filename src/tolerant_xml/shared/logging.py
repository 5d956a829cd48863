"""Correlation-aware logging for tolerant XML parsing.

Every record emitted through these loggers carries two extra attributes,
``component`` and ``correlation_id``, so one document can be followed from
the tokenizer through the tree builder to the API layer. Handlers and
formatters are left to the application.
"""

import logging
from typing import Any, MutableMapping, Optional, Tuple


class CorrelationLogger(logging.LoggerAdapter):
    """Logger adapter that stamps records with component and correlation ID.

    Per-call ``extra`` mappings are merged over the adapter's context instead
    of replacing it.

    Examples:
        >>> logger = get_logger("tolerant_xml.tree.builder", "req-1")
        >>> logger.component, logger.correlation_id
        ('builder', 'req-1')
    """

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        super().__init__(
            logging.getLogger(name),
            {
                "component": component or name.split(".")[-1],
                "correlation_id": correlation_id,
            },
        )

    @property
    def component(self) -> str:
        return self.extra["component"]

    @property
    def correlation_id(self) -> Optional[str]:
        return self.extra["correlation_id"]

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    def bind(self, correlation_id: Optional[str]) -> "CorrelationLogger":
        """Return a logger for the same component with another correlation ID."""
        return CorrelationLogger(self.logger.name, correlation_id, self.component)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name; defaults to the last part of ``name``
    """
    return CorrelationLogger(name, correlation_id, component)
