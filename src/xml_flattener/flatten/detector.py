"""Locating the repeating node that becomes one record per instance.

Detection tries, in order, an XPath query, a bare tag name and finally
inference. Inference is split into two pure phases: a collection pass that
counts ``(tag, depth)`` for every element with element children, and a
selection pass over the resulting frozen table.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from xml_flattener.shared import (
    FlattenConfig,
    StructureNotFoundError,
    get_logger,
)
from xml_flattener.tree.nodes import XMLDocument, XMLElement
from xml_flattener.tree.query import select_nodes

FrequencyKey = Tuple[str, int]

STRATEGY_QUERY = "query"
STRATEGY_TAG = "tag"
STRATEGY_INFERRED = "inferred"


@dataclass(frozen=True)
class FrequencyTable:
    """Occurrences of structured elements keyed by ``(tag, depth)``.

    ``keys`` keeps first-seen document order so selection is deterministic.
    """

    counts: Dict[FrequencyKey, int] = field(default_factory=dict)
    keys: Tuple[FrequencyKey, ...] = ()

    def __len__(self) -> int:
        return len(self.keys)

    def count(self, tag: str, depth: int) -> int:
        return self.counts.get((tag, depth), 0)

    def to_list(self) -> List[Dict[str, object]]:
        """Rows of ``tag``, ``depth`` and ``count`` in first-seen order."""
        return [
            {"tag": tag, "depth": depth, "count": self.counts[(tag, depth)]}
            for tag, depth in self.keys
        ]


@dataclass
class DetectionResult:
    """Outcome of repeating node detection."""

    nodes: List[XMLElement]
    strategy: str
    selector: Optional[str] = None
    frequencies: Optional[FrequencyTable] = None

    @property
    def node_name(self) -> str:
        """Tag of the repeating node (taken from the first instance)."""
        return self.nodes[0].tag


def collect_frequencies(document: XMLDocument) -> FrequencyTable:
    """Count ``(tag, depth)`` for every element that has element children.

    The root element is not counted: it cannot be promoted.
    """
    counts: Dict[FrequencyKey, int] = {}
    order: List[FrequencyKey] = []

    if document.root is None:
        return FrequencyTable()

    # Depth-first walk with an explicit stack to preserve document order
    stack: List[Tuple[XMLElement, int]] = [
        (child, 1) for child in reversed(document.root.children)
    ]
    while stack:
        element, depth = stack.pop()
        if not element.children:
            continue
        key = (element.tag, depth)
        if key not in counts:
            counts[key] = 0
            order.append(key)
        counts[key] += 1
        stack.extend((child, depth + 1) for child in reversed(element.children))

    return FrequencyTable(counts=counts, keys=tuple(order))


def select_candidate(table: FrequencyTable) -> Optional[Tuple[str, int, int]]:
    """Pick the most frequent key; ties go to the deeper one.

    Returns:
        ``(tag, depth, count)`` of the winner, or None for an empty table
    """
    best: Optional[Tuple[str, int, int]] = None
    for tag, depth in table.keys:
        count = table.counts[(tag, depth)]
        if best is None or count > best[2] or (count == best[2] and depth > best[1]):
            best = (tag, depth, count)
    return best


class RepeatedNodeDetector:
    """Finds the node instances that each represent one record."""

    def __init__(
        self,
        config: Optional[FlattenConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or FlattenConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self._logger = get_logger(__name__, self.correlation_id, "detector")

    def detect(
        self,
        document: XMLDocument,
        selector: Optional[str] = None,
    ) -> DetectionResult:
        """Resolve the repeating node instances of ``document``.

        Args:
            document: Tree to search
            selector: XPath expression or bare tag name; inference is used
                when it is empty or matches nothing

        Returns:
            DetectionResult with the instances in document order

        Raises:
            StructureNotFoundError: If nothing can be selected or inferred
        """
        if document.root is None:
            raise StructureNotFoundError("Document has no root element", selector)

        if selector and selector.strip():
            selector = selector.strip()

            nodes = [
                node for node in select_nodes(document, selector, self.correlation_id)
                if node is not document.root
            ]
            if nodes:
                self._log_result(STRATEGY_QUERY, selector, nodes)
                return DetectionResult(nodes, STRATEGY_QUERY, selector)

            nodes = self.find_by_tag(document, selector)
            if nodes:
                self._log_result(STRATEGY_TAG, selector, nodes)
                return DetectionResult(nodes, STRATEGY_TAG, selector)

            self._logger.debug(
                "Selector matched nothing, falling back to inference",
                extra={"selector": selector},
            )

        table = collect_frequencies(document)
        winner = select_candidate(table)
        if winner is None or winner[2] < self.config.min_repeat_count:
            candidates = [f"{tag}@{depth}" for tag, depth in table.keys]
            self._logger.error(
                "No repeating structure found",
                extra={"selector": selector, "candidates": candidates},
            )
            raise StructureNotFoundError(
                "Could not find any repeating XML nodes",
                selector=selector,
                candidates=candidates,
            )

        tag, depth, count = winner
        self._logger.debug(
            "Inferred repeating node",
            extra={"tag": tag, "depth": depth, "count": count},
        )
        nodes = self.find_by_tag(document, tag)
        self._log_result(STRATEGY_INFERRED, tag, nodes)
        return DetectionResult(nodes, STRATEGY_INFERRED, tag, frequencies=table)

    @staticmethod
    def find_by_tag(document: XMLDocument, tag: str) -> List[XMLElement]:
        """Every element below the root named ``tag``, in document order."""
        if document.root is None:
            return []
        return document.root.find_all(tag)

    def _log_result(self, strategy: str, selector: str, nodes: List[XMLElement]) -> None:
        self._logger.info(
            "Resolved repeating node",
            extra={
                "strategy": strategy,
                "selector": selector,
                "node_name": nodes[0].tag,
                "instances": len(nodes),
            },
        )
