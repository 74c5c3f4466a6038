"""Shared utilities for XML flattening.

This module provides configuration objects, exceptions, diagnostic types and
logging helpers used across the tree, flatten and records layers.
"""

from .config import (
    BASE_PREFIX,
    LATERAL_SEPARATOR,
    MAX_READ_COUNT,
    VERTICAL_SEPARATOR,
    CollisionPolicy,
    ConfigError,
    ConfigValidationError,
    CursorConfig,
    FlattenConfig,
    FlattenerConfig,
)
from .errors import (
    CursorPositionError,
    DocumentLoadError,
    FieldNameCollisionError,
    FieldNotFoundError,
    FlattenError,
    RunawayReadError,
    StructureNotFoundError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    FlattenMetrics,
)

__all__ = [
    "BASE_PREFIX",
    "LATERAL_SEPARATOR",
    "MAX_READ_COUNT",
    "VERTICAL_SEPARATOR",
    "CollisionPolicy",
    "ConfigError",
    "ConfigValidationError",
    "CursorConfig",
    "FlattenConfig",
    "FlattenerConfig",
    "CursorPositionError",
    "DocumentLoadError",
    "FieldNameCollisionError",
    "FieldNotFoundError",
    "FlattenError",
    "RunawayReadError",
    "StructureNotFoundError",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "FlattenMetrics",
]
