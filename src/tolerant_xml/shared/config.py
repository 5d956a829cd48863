"""Configuration objects for tolerant XML parsing.

The parser configuration is an immutable dataclass validated on creation.
Presets cover the common combinations of text trimming and DTD handling.
"""

import json
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, List, Optional

DEFAULT_CHUNK_SIZE = 64 * 1024


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError, ValueError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Configuration for the tokenizer and the tree builder.

    Attributes:
        auto_trim_text: Strip leading/trailing whitespace from element text
            when the element closes. Whitespace-only text becomes ``None``.
        chunk_size: Number of bytes handed to the tokenizer per feed call.
        forbid_dtd: Reject documents that carry any DOCTYPE declaration.
        forbid_entities: Reject documents that declare entities.
        forbid_external: Reject references to external entities or DTDs.
        max_input_size_bytes: Truncate input beyond this many bytes. Text
            (``str``) input is measured in characters instead.
        enable_diagnostics: Record diagnostics on parse results.
        correlation_id: Default correlation ID for logging and diagnostics.
    """

    auto_trim_text: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE
    forbid_dtd: bool = False
    forbid_entities: bool = True
    forbid_external: bool = True
    max_input_size_bytes: Optional[int] = None
    enable_diagnostics: bool = True
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate parser configuration."""
        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigValidationError(
                "chunk_size must be > 0",
                field_name="chunk_size",
                suggestions=[f"Use the default of {DEFAULT_CHUNK_SIZE}"],
            )
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ConfigValidationError(
                "max_input_size_bytes must be > 0 or None",
                field_name="max_input_size_bytes",
                suggestions=["Set to None to disable the limit"],
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ParserConfig().override(auto_trim_text=False)
            >>> config.auto_trim_text
            False
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(unknown)}",
                field_name=unknown[0],
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ParserConfig":
        """Trimmed text, DTDs allowed but entity declarations rejected."""
        return cls()

    @classmethod
    def preserve_whitespace(cls) -> "ParserConfig":
        """Keep element text exactly as the tokenizer reported it."""
        return cls(auto_trim_text=False)

    @classmethod
    def strict(cls) -> "ParserConfig":
        """Reject any DOCTYPE, entity declaration or external reference."""
        return cls(forbid_dtd=True, forbid_entities=True, forbid_external=True)
