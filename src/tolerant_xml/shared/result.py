"""Diagnostic and metrics types shared by every parsing layer.

Failures in this library are reported as diagnostics attached to a result,
never as raised exceptions. These types carry that information.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Tolerated irregularities in the input
    ERROR = auto()      # Tokenizer failures; the tree is partial
    CRITICAL = auto()   # Internal failures; no tree was produced


@dataclass(frozen=True)
class DiagnosticEntry:
    """A problem or notable event observed while parsing one document.

    ``position`` is the tokenizer's ``line``/``column`` where one is known.
    """

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def __str__(self) -> str:
        location = ""
        if self.position:
            location = f" (line {self.position.get('line')}, column {self.position.get('column')})"
        return f"{self.severity.name} [{self.component}] {self.message}{location}"

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form, omitting empty position and details."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position:
            result["position"] = dict(self.position)
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Performance metrics for parsing operations."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    events_processed: int = 0
    elements_created: int = 0

    @property
    def bytes_per_second(self) -> float:
        """Calculate input bytes processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_processed * 1000.0) / self.processing_time_ms

    @property
    def events_per_second(self) -> float:
        """Calculate parse events reduced per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_processed * 1000.0) / self.processing_time_ms
