"""Flattening of nested documents into one row per repeating node.

Key Components:
    RepeatedNodeDetector: Resolves the repeating node by query, tag or inference
    SiblingMerger: Copies scalar sibling context into every repeating instance
    ChildFlattener: Collapses nested substructures into prefixed leaves
    NodePromoter: Lifts a repeating node level by level up to the root
    FlattenEngine: Orchestrates the whole pass and returns a FlattenResult
"""

from .children import ChildFlattener
from .detector import (
    STRATEGY_INFERRED,
    STRATEGY_QUERY,
    STRATEGY_TAG,
    DetectionResult,
    FrequencyTable,
    RepeatedNodeDetector,
    collect_frequencies,
    select_candidate,
)
from .engine import FlattenEngine, FlattenResult
from .merger import SiblingMerger
from .promoter import NodePromoter, PromotionStats

__all__ = [
    "ChildFlattener",
    "STRATEGY_INFERRED",
    "STRATEGY_QUERY",
    "STRATEGY_TAG",
    "DetectionResult",
    "FrequencyTable",
    "RepeatedNodeDetector",
    "collect_frequencies",
    "select_candidate",
    "FlattenEngine",
    "FlattenResult",
    "SiblingMerger",
    "NodePromoter",
    "PromotionStats",
]
