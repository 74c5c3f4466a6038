"""Flatten engine: turns a nested document into one row per repeating node.

The engine owns a private deep copy of the input for the whole call. It
resolves the repeating node, flattens and promotes every instance to the
root, then folds whatever unrelated context is left at the root level into
every row.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from xml_flattener.flatten.children import ChildFlattener
from xml_flattener.flatten.detector import DetectionResult, RepeatedNodeDetector
from xml_flattener.flatten.merger import SiblingMerger
from xml_flattener.flatten.promoter import NodePromoter, PromotionStats
from xml_flattener.records.cursor import RecordCursor
from xml_flattener.shared import (
    CollisionPolicy,
    CursorConfig,
    DiagnosticEntry,
    DiagnosticSeverity,
    FieldNameCollisionError,
    FlattenConfig,
    FlattenMetrics,
    get_logger,
)
from xml_flattener.tree.nodes import XMLDocument, XMLElement

MS_PER_SECOND = 1000


@dataclass
class FlattenResult:
    """Outcome of a flatten operation.

    ``document`` is a new tree; the input document is never modified. Its
    root's children are the rows, in document order.
    """

    document: XMLDocument
    rows: List[XMLElement]
    node_name: str
    strategy: str
    metrics: FlattenMetrics = field(default_factory=FlattenMetrics)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    correlation_id: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a diagnostic entry for this operation."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def to_records(self, config: Optional[CursorConfig] = None) -> RecordCursor:
        """Project the rows into a record cursor positioned on the first row."""
        return RecordCursor.from_document(self.document, config=config)

    def summary(self) -> Dict[str, Any]:
        """Compact description used by the CLI and logs."""
        return {
            "node_name": self.node_name,
            "strategy": self.strategy,
            "rows": self.row_count,
            "metrics": self.metrics.to_dict(),
            "diagnostics": [entry.to_dict() for entry in self.diagnostics],
        }


class FlattenEngine:
    """Flattens documents according to a :class:`FlattenConfig`.

    Examples:
        >>> from xml_flattener.tree import parse_xml
        >>> doc = parse_xml("<r><c>USD</c><i><id>1</id></i><i><id>2</id></i></r>")
        >>> result = FlattenEngine().flatten(doc, "i")
        >>> [row.tag for row in result.rows]
        ['i', 'i']
    """

    def __init__(
        self,
        config: Optional[FlattenConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or FlattenConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self._logger = get_logger(__name__, self.correlation_id, "engine")

        self.detector = RepeatedNodeDetector(self.config, self.correlation_id)
        self.merger = SiblingMerger(self.config, self.correlation_id)
        self.flattener = ChildFlattener(self.config, self.correlation_id)
        self.promoter = NodePromoter(
            self.config, self.correlation_id, self.merger, self.flattener
        )

    def flatten(
        self, document: XMLDocument, selector: Optional[str] = None
    ) -> FlattenResult:
        """Flatten ``document`` into one root child per repeating node.

        Args:
            document: Source tree; left untouched
            selector: XPath expression or tag name of the repeating node;
                inferred when omitted or when it matches nothing

        Returns:
            FlattenResult holding the new tree and its rows

        Raises:
            StructureNotFoundError: If no repeating node can be resolved
            FieldNameCollisionError: If folding context produces a duplicate
                field under ``CollisionPolicy.ERROR``
        """
        start_time = time.time()
        metrics = FlattenMetrics(elements_before=document.total_elements)
        self.merger.reset()

        working = document.deep_copy()
        detection = self.detector.detect(working, selector)
        metrics.targets_found = len(detection.nodes)

        result = FlattenResult(
            document=working,
            rows=[],
            node_name=detection.node_name,
            strategy=detection.strategy,
            metrics=metrics,
            correlation_id=self.correlation_id,
        )
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            f"Repeating node <{detection.node_name}> resolved by {detection.strategy}",
            "detector",
            {"instances": len(detection.nodes), "selector": detection.selector},
        )

        self._promote_targets(working, detection, result)

        if self.config.fold_root_context:
            self._fold_root_context(working, result)

        result.rows = self._related_children(working, result.node_name)
        self._report_collisions(result)

        metrics.merged_nodes = self.merger.copies_made
        metrics.elements_after = working.total_elements
        metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

        self._logger.info(
            "Flatten completed",
            extra={
                "node_name": result.node_name,
                "strategy": result.strategy,
                "rows": result.row_count,
                "processing_time_ms": metrics.processing_time_ms,
            },
        )
        return result

    def is_related(self, tag: str, node_name: str) -> bool:
        """Check whether ``tag`` names the repeating node or a promoted copy.

        A promoted copy carries the node name as one of its vertical parts:
        ``name``, ``x_name``, ``name_x`` or ``x_name_y``.
        """
        separator = self.config.vertical_separator
        return (
            tag == node_name
            or tag.endswith(separator + node_name)
            or tag.startswith(node_name + separator)
            or separator + node_name + separator in tag
        )

    def _promote_targets(
        self,
        working: XMLDocument,
        detection: DetectionResult,
        result: FlattenResult,
    ) -> None:
        stats = PromotionStats()
        for target in detection.nodes:
            # An earlier promotion may have collapsed a nested instance
            if not working.contains(target):
                result.metrics.targets_skipped += 1
                result.add_diagnostic(
                    DiagnosticSeverity.WARNING,
                    f"Nested <{target.tag}> was absorbed by an enclosing instance",
                    "engine",
                )
                continue

            stats.hoisted += self.flattener.flatten(target)
            self.promoter.promote(working, target, stats)

        result.metrics.promotion_steps = stats.steps
        result.metrics.hoisted_nodes = stats.hoisted
        self._logger.debug(
            "Promoted repeating nodes",
            extra={
                "steps": stats.steps,
                "carried": stats.carried,
                "skipped": result.metrics.targets_skipped,
            },
        )

    def _related_children(
        self, working: XMLDocument, node_name: str
    ) -> List[XMLElement]:
        if working.root is None:
            return []
        return [
            child for child in working.root.children
            if self.is_related(child.tag, node_name)
        ]

    def _fold_root_context(self, working: XMLDocument, result: FlattenResult) -> None:
        root = working.root
        if root is None:
            return

        rows = self._related_children(working, result.node_name)
        context = [
            child for child in root.children
            if not self.is_related(child.tag, result.node_name)
        ]
        if not context:
            return

        # id of every folded element -> index of the context node it came from
        folded: Dict[int, int] = {}
        for index, node in enumerate(context):
            result.metrics.hoisted_nodes += self.flattener.flatten(node)

            if node.is_scalar:
                fields = [node.copy_as(self.config.base_name(node.tag))]
            else:
                fields = [
                    child.copy_as(self.config.join_lateral(node.tag, child.tag))
                    for child in node.children
                ]

            for row in rows:
                for item in fields:
                    self._fold_field(
                        row, item.deep_copy(), node.tag, index, folded, result
                    )
            node.detach()
            result.metrics.folded_context_nodes += 1

        self._logger.debug(
            "Folded root context into rows",
            extra={"context": [node.tag for node in context], "rows": len(rows)},
        )

    def _fold_field(
        self,
        row: XMLElement,
        item: XMLElement,
        origin: str,
        index: int,
        folded: Dict[int, int],
        result: FlattenResult,
    ) -> None:
        existing = row.find_child(item.tag)
        if existing is None:
            row.add_child(item)
            folded[id(item)] = index
            return

        if folded.get(id(existing), index) == index:
            # the row's own field, or a second value from the same container
            if self.merger.place(row, item, origin) is not None:
                folded[id(item)] = index
            return

        # the same context repeated at the root, e.g. one <currency> per row
        if self.config.collision_policy is CollisionPolicy.ERROR:
            self._logger.error(
                "Folded context collides with an existing field",
                extra={"field": item.tag, "row": row.tag},
            )
            raise FieldNameCollisionError(
                item.tag, existing.inner_text, item.inner_text
            )

        if existing.text != item.text or existing.attributes != item.attributes:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Root context '{item.tag}' repeats with a different value; "
                "the last one is kept",
                "engine",
                {"row": row.tag, "replaced": existing.inner_text},
            )
        existing.text = item.text
        existing.attributes = dict(item.attributes)
        folded[id(existing)] = index
        self._logger.debug(
            "Folded context replaced an existing field",
            extra={"field": item.tag, "row": row.tag},
        )

    def _report_collisions(self, result: FlattenResult) -> None:
        counts = Counter(
            (entry["field"], entry["stored_as"]) for entry in self.merger.collisions
        )
        for (name, stored_as), rows in counts.items():
            if stored_as is None:
                message = f"Context field '{name}' dropped; the name is taken"
            else:
                message = (
                    f"Context field '{name}' stored as '{stored_as}' to keep "
                    "the existing value"
                )
            result.add_diagnostic(
                DiagnosticSeverity.WARNING, message, "merger", {"rows": rows}
            )
