"""Shared utilities for template parsing and merging.

This module provides the error taxonomy, configuration objects, result types
and logging helpers used across the parser, merge and serialization layers.
"""

from .result import (
    MergeReport,
    SlotMergeSummary,
    SourceLocation,
)
from .errors import (
    DuplicateSlotError,
    InvalidSlotUsageError,
    MalformedDocumentError,
    MissingSlotsError,
    SerializationError,
    SlotError,
    StreamTerminatedError,
    StructureError,
    TemplateMergeError,
    UnknownSlotError,
    UnsupportedConstructError,
)
from .config import (
    ConfigError,
    ConfigValidationError,
    MergeConfig,
    ReaderConfig,
    SerializerConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "MergeReport",
    "SlotMergeSummary",
    "SourceLocation",
    "DuplicateSlotError",
    "InvalidSlotUsageError",
    "MalformedDocumentError",
    "MissingSlotsError",
    "SerializationError",
    "SlotError",
    "StreamTerminatedError",
    "StructureError",
    "TemplateMergeError",
    "UnknownSlotError",
    "UnsupportedConstructError",
    "ConfigError",
    "ConfigValidationError",
    "MergeConfig",
    "ReaderConfig",
    "SerializerConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
