"""Configuration classes for template parsing, merging and serialization.

Configuration is assembled once (from defaults, a JSON file, or overrides)
and passed by reference into the pipeline. Nothing here is read from
module-level state.
"""

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_COMPONENTS = ["reader", "serializer"]


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass
class ReaderConfig:
    """Configuration for the pull event reader."""

    buffer_size: int = 8192

    def __post_init__(self) -> None:
        """Validate reader configuration."""
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be > 0")


@dataclass
class SerializerConfig:
    """Configuration for the formatting serializer."""

    indent: str = "    "
    xml_declaration: bool = True
    encoding: str = "utf-8"
    xml_version: str = "1.0"
    newline: str = "\n"

    def __post_init__(self) -> None:
        """Validate serializer configuration."""
        if self.indent.strip(" \t"):
            raise ValueError("indent may only contain spaces and tabs")
        if self.newline not in ("\n", "\r\n"):
            raise ValueError("newline must be '\\n' or '\\r\\n'")
        if self.xml_version not in ("1.0", "1.1"):
            raise ValueError("xml_version must be '1.0' or '1.1'")
        if not self.encoding:
            raise ValueError("encoding cannot be empty")

    @property
    def pretty(self) -> bool:
        """Whether element boundaries are placed on their own lines."""
        return bool(self.indent)


@dataclass(frozen=True)
class MergeConfig:
    """Complete configuration for a parse, merge and serialize run.

    Immutable so one instance can be shared by every stage of a pipeline.
    """

    reader: ReaderConfig = field(default_factory=ReaderConfig)
    serializer: SerializerConfig = field(default_factory=SerializerConfig)
    correlation_id: Optional[str] = None
    logging_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.reader.__post_init__()
            self.serializer.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.logging_level not in _LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {_LOGGING_LEVELS}",
                field_name="logging_level",
                suggestions=_LOGGING_LEVELS,
            )

    def override(self, **kwargs: Any) -> "MergeConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field overrides; component fields use ``component__field``

        Returns:
            New MergeConfig instance with overrides applied

        Example:
            >>> config = MergeConfig().override(serializer__indent="  ")
            >>> config.serializer.indent
            '  '
        """
        nested: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component '{component}'",
                        field_name=key,
                        suggestions=_COMPONENTS,
                    )
                nested.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        for component, overrides in nested.items():
            try:
                new_fields[component] = replace(getattr(self, component), **overrides)
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name=component) from e

        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            "reader": {f.name: getattr(self.reader, f.name) for f in fields(self.reader)},
            "serializer": {
                f.name: getattr(self.serializer, f.name) for f in fields(self.serializer)
            },
            "correlation_id": self.correlation_id,
            "logging_level": self.logging_level,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MergeConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files are
        reported rather than silently ignored.
        """
        known = {"reader", "serializer", "correlation_id", "logging_level"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {unknown}",
                field_name=unknown[0],
                suggestions=sorted(known),
            )

        try:
            reader = ReaderConfig(**data.get("reader", {}))
            serializer = SerializerConfig(**data.get("serializer", {}))
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

        return cls(
            reader=reader,
            serializer=serializer,
            correlation_id=data.get("correlation_id"),
            logging_level=data.get("logging_level", "INFO"),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "MergeConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MergeConfig":
        """Load configuration from a JSON file."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    # Preset factory methods
    @classmethod
    def pretty(cls) -> "MergeConfig":
        """Indented output with an XML declaration (the default)."""
        return cls()

    @classmethod
    def compact(cls) -> "MergeConfig":
        """Unindented output without an XML declaration."""
        return cls(serializer=SerializerConfig(indent="", xml_declaration=False))
