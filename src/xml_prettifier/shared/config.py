"""Configuration classes for XML prettifying.

This module provides configuration objects for the character and formatting
layers. Configurations validate themselves on construction; the composite
``PrettifierConfig`` is immutable and can be serialized to and from JSON.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

DEFAULT_INDENT_WIDTH = 2
MAX_INDENT_WIDTH = 16
VALID_INDENT_CHARS = (" ", "\t")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class FormatterConfig:
    """Configuration for the formatting layer."""

    indent_width: int = DEFAULT_INDENT_WIDTH
    indent_char: str = " "

    def __post_init__(self) -> None:
        """Validate formatter configuration."""
        if not (0 <= self.indent_width <= MAX_INDENT_WIDTH):
            raise ConfigValidationError(
                f"indent_width must be between 0 and {MAX_INDENT_WIDTH}",
                field_name="indent_width",
            )
        if self.indent_char not in VALID_INDENT_CHARS:
            raise ConfigValidationError(
                "indent_char must be a single space or tab",
                field_name="indent_char",
            )

    @property
    def indent_unit(self) -> str:
        """String prepended once per nesting level."""
        return self.indent_char * self.indent_width


@dataclass(frozen=True)
class CharacterConfig:
    """Configuration for decoding input bytes."""

    fallback_encoding: str = "utf-8"
    detect_bom: bool = True
    honor_xml_declaration: bool = True
    max_input_size_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate character configuration."""
        if not self.fallback_encoding:
            raise ConfigValidationError(
                "fallback_encoding cannot be empty", field_name="fallback_encoding"
            )
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ConfigValidationError(
                "max_input_size_bytes must be > 0 or None",
                field_name="max_input_size_bytes",
            )


@dataclass(frozen=True)
class PrettifierConfig:
    """Complete configuration for one prettifier.

    Thread-safe due to frozen dataclass implementation.
    """

    character: CharacterConfig = field(default_factory=CharacterConfig)
    formatter: FormatterConfig = field(default_factory=FormatterConfig)
    correlation_id: Optional[str] = None
    enable_metrics: bool = True

    @classmethod
    def default(cls) -> "PrettifierConfig":
        """Two-space indentation, UTF-8 fallback."""
        return cls()

    @classmethod
    def compact(cls) -> "PrettifierConfig":
        """Single-space indentation for dense output."""
        return cls(formatter=FormatterConfig(indent_width=1))

    def override(self, **kwargs: Any) -> "PrettifierConfig":
        """Create a new configuration with specific overrides.

        Nested fields use double-underscore notation.

        Example:
            >>> config = PrettifierConfig().override(formatter__indent_width=4)
            >>> config.formatter.indent_width
            4
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        for component, overrides in nested_overrides.items():
            if component not in ("character", "formatter"):
                raise ConfigValidationError(
                    f"Unknown configuration component: {component}",
                    field_name=component,
                )
            try:
                new_fields[component] = replace(getattr(self, component), **overrides)
            except TypeError as e:
                raise ConfigValidationError(str(e), field_name=component) from e

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrettifierConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos do not silently fall back to
        defaults.
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                suggestions=sorted(known),
            )

        values: Dict[str, Any] = {}
        for key, value in data.items():
            try:
                if key == "character":
                    values[key] = CharacterConfig(**value)
                elif key == "formatter":
                    values[key] = FormatterConfig(**value)
                else:
                    values[key] = value
            except TypeError as e:
                raise ConfigValidationError(str(e), field_name=key) from e
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "PrettifierConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)
