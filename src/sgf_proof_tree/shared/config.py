"""Configuration classes for SGF proof-tree loading.

This module provides configuration objects for every layer: character
streams, tokenization, tree storage, node interpretation, error reporting
and logging. Component configurations validate themselves in
``__post_init__``; :class:`ProofTreeConfig` bundles them into one immutable
object with presets and JSON round-tripping.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .errors import (
    DEFAULT_CONTEXT_WINDOW,
    DEFAULT_HIGHLIGHT_END,
    DEFAULT_HIGHLIGHT_START,
)

NODE_KIND_NAMES = ("AND", "OR")
LOGGING_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StreamConfig:
    """Configuration for file-backed character streams."""

    encoding: Optional[str] = None   # None: detect
    fallback_encoding: str = "latin-1"
    detect_bom: bool = True

    def __post_init__(self) -> None:
        """Validate stream configuration."""
        if self.encoding is not None and not self.encoding:
            raise ValueError("encoding must be a codec name or None")
        if not self.fallback_encoding:
            raise ValueError("fallback_encoding cannot be empty")


@dataclass
class TokenizerConfig:
    """Configuration for the tokenizer."""

    enable_progress: bool = True
    progress_total: Optional[int] = None   # None: stream length

    def __post_init__(self) -> None:
        """Validate tokenizer configuration."""
        if self.progress_total is not None and self.progress_total < 0:
            raise ValueError("progress_total must be >= 0 or None")


@dataclass
class TreeConfig:
    """Configuration for node storage."""

    max_nodes: Optional[int] = None
    max_depth_warning: int = 10000

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        if self.max_nodes is not None and self.max_nodes <= 0:
            raise ValueError("max_nodes must be > 0 or None")
        if self.max_depth_warning <= 0:
            raise ValueError("max_depth_warning must be > 0")


@dataclass
class LoaderConfig:
    """Configuration for node interpretation and the load pipeline."""

    black_kind: str = "OR"
    white_kind: str = "AND"
    run_aggregation: bool = True

    def __post_init__(self) -> None:
        """Validate loader configuration."""
        if self.black_kind not in NODE_KIND_NAMES:
            raise ValueError(f"black_kind must be one of {list(NODE_KIND_NAMES)}")
        if self.white_kind not in NODE_KIND_NAMES:
            raise ValueError(f"white_kind must be one of {list(NODE_KIND_NAMES)}")
        if self.black_kind == self.white_kind:
            raise ValueError("black_kind and white_kind must differ")


@dataclass
class ErrorReportConfig:
    """Configuration for error message rendering."""

    detailed: bool = False
    context_window: int = DEFAULT_CONTEXT_WINDOW
    highlight_start: str = DEFAULT_HIGHLIGHT_START
    highlight_end: str = DEFAULT_HIGHLIGHT_END

    def __post_init__(self) -> None:
        """Validate error report configuration."""
        if self.context_window < 0:
            raise ValueError("context_window must be >= 0")


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "WARNING"
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {list(LOGGING_LEVELS)}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


_COMPONENTS = ("stream", "tokenizer", "tree", "loader", "errors", "global_")


@dataclass(frozen=True)
class ProofTreeConfig:
    """Complete configuration for loading SGF proof trees.

    Immutable: use :meth:`override` to derive modified copies.
    """

    stream: StreamConfig = field(default_factory=StreamConfig)
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    errors: ErrorReportConfig = field(default_factory=ErrorReportConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            for component in _COMPONENTS:
                getattr(self, component).__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "ProofTreeConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; component fields use the
                ``component__field`` notation

        Returns:
            New ProofTreeConfig instance with overrides applied

        Example:
            >>> config = ProofTreeConfig()
            >>> config.override(loader__black_kind="AND", loader__white_kind="OR")
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        try:
            for component, overrides in nested_overrides.items():
                new_fields[component] = replace(getattr(self, component), **overrides)
            return replace(self, **new_fields)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result: Dict[str, Any] = {}
        for component in _COMPONENTS:
            value = getattr(self, component)
            result[component] = {
                name: getattr(value, name) for name in value.__dataclass_fields__
            }
        result["name"] = self.name
        result["description"] = self.description
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProofTreeConfig":
        """Create configuration from dictionary.

        Missing components and fields keep their defaults.
        """
        field_values: Dict[str, Any] = {}
        try:
            for component in _COMPONENTS:
                if component in data:
                    component_type = cls.__dataclass_fields__[component].default_factory
                    field_values[component] = component_type(**data[component])  # type: ignore[misc]
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e
        for key in ("name", "description"):
            if key in data:
                field_values[key] = data[key]
        return cls(**field_values)

    @classmethod
    def from_json(cls, json_str: str) -> "ProofTreeConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    # Preset factory methods
    @classmethod
    def default(cls) -> "ProofTreeConfig":
        """Create the default configuration (``B`` is OR, ``W`` is AND)."""
        return cls(name="default")

    @classmethod
    def swapped_colors(cls) -> "ProofTreeConfig":
        """Create a preset for trees whose ``B`` nodes are AND nodes."""
        return cls(
            loader=LoaderConfig(black_kind="AND", white_kind="OR"),
            name="swapped_colors",
            description="B marks AND nodes and W marks OR nodes",
        )

    @classmethod
    def diagnostic(cls) -> "ProofTreeConfig":
        """Create a preset with detailed errors and debug logging."""
        return cls(
            errors=ErrorReportConfig(detailed=True),
            global_=GlobalConfig(logging_level="DEBUG"),
            name="diagnostic",
            description="Detailed error excerpts and debug logging",
        )
