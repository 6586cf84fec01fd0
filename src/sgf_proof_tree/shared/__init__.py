"""Shared utilities for SGF proof-tree loading.

This module provides the configuration objects, error hierarchy, result
types and logging helpers used across all processing layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    ErrorReportConfig,
    GlobalConfig,
    LoaderConfig,
    ProofTreeConfig,
    StreamConfig,
    TokenizerConfig,
    TreeConfig,
)
from .errors import (
    LexicalError,
    MalformedProofDataError,
    NodeAllocationError,
    SGFError,
    StructuralError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ErrorReportConfig",
    "GlobalConfig",
    "LoaderConfig",
    "ProofTreeConfig",
    "StreamConfig",
    "TokenizerConfig",
    "TreeConfig",
    "LexicalError",
    "MalformedProofDataError",
    "NodeAllocationError",
    "SGFError",
    "StructuralError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
