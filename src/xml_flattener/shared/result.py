"""Diagnostic and metric types shared by the flattening components."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry recorded while flattening a document."""

    severity: DiagnosticSeverity
    message: str
    component: str
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to a JSON friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class FlattenMetrics:
    """Counters collected during one flatten operation."""

    processing_time_ms: float = 0.0
    elements_before: int = 0
    elements_after: int = 0
    targets_found: int = 0
    targets_skipped: int = 0
    promotion_steps: int = 0
    merged_nodes: int = 0
    hoisted_nodes: int = 0
    folded_context_nodes: int = 0

    @property
    def rows_produced(self) -> int:
        """Number of repeating nodes that ended up as rows."""
        return self.targets_found - self.targets_skipped

    @property
    def average_promotion_depth(self) -> float:
        """Average number of levels each row was lifted."""
        if self.rows_produced <= 0:
            return 0.0
        return self.promotion_steps / self.rows_produced

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary representation."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "elements_before": self.elements_before,
            "elements_after": self.elements_after,
            "targets_found": self.targets_found,
            "targets_skipped": self.targets_skipped,
            "rows_produced": self.rows_produced,
            "promotion_steps": self.promotion_steps,
            "merged_nodes": self.merged_nodes,
            "hoisted_nodes": self.hoisted_nodes,
            "folded_context_nodes": self.folded_context_nodes,
        }
