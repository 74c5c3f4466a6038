"""Lifting a repeating node, one level at a time, up to the document root."""

from dataclasses import dataclass
from typing import Optional

from xml_flattener.flatten.children import ChildFlattener
from xml_flattener.flatten.merger import SiblingMerger
from xml_flattener.shared import FlattenConfig, get_logger
from xml_flattener.tree.nodes import XMLDocument, XMLElement


@dataclass
class PromotionStats:
    """Work done while promoting one node."""

    steps: int = 0
    merged: int = 0
    hoisted: int = 0
    carried: int = 0


class NodePromoter:
    """Moves a target node up until its parent is the document root.

    Every step renames the target ``parent<vertical>target`` and pulls the
    parent's scalar context into it, so no ancestor data is lost:

    1. structured siblings of the parent are collapsed (below the root
       level), scalar siblings of the parent are merged into every
       same-named parent, then the parent's scalar children are merged into
       every same-named target (pending instances included);
    2. the parent's other structured children are collapsed in place;
       branches still holding pending targets, and other repeating groups,
       are never collapsed;
    3. remaining scalar children of the parent move into the target, and
       the parent's own text is copied in as a ``<parent>`` leaf;
    4. a renamed copy of the target is inserted before the parent, the
       target is removed, and the parent too once it is empty.

    Context never overwrites a field the target already has; see
    :meth:`SiblingMerger.place`.
    """

    def __init__(
        self,
        config: Optional[FlattenConfig] = None,
        correlation_id: Optional[str] = None,
        merger: Optional[SiblingMerger] = None,
        flattener: Optional[ChildFlattener] = None,
    ) -> None:
        self.config = config or FlattenConfig()
        self._logger = get_logger(__name__, correlation_id, "promoter")
        self.merger = merger or SiblingMerger(self.config, correlation_id)
        self.flattener = flattener or ChildFlattener(self.config, correlation_id)

    def promote(
        self,
        document: XMLDocument,
        target: XMLElement,
        stats: Optional[PromotionStats] = None,
    ) -> XMLElement:
        """Promote ``target`` to a direct child of ``document.root``.

        Args:
            document: Document owning ``target``; mutated in place
            target: Node to lift
            stats: Optional accumulator for the work done

        Returns:
            The element that now stands for ``target`` under the root
        """
        if not document.contains(target):
            raise ValueError(f"<{target.tag}> is not part of this document")
        if target is document.root:
            raise ValueError("The document root cannot be promoted")

        stats = stats if stats is not None else PromotionStats()
        node_name = target.tag
        while target.parent is not document.root:
            target = self.promote_step(target, stats, node_name)
        return target

    def promote_step(
        self,
        target: XMLElement,
        stats: PromotionStats,
        node_name: Optional[str] = None,
    ) -> XMLElement:
        """Lift ``target`` one level and return its renamed replacement.

        ``node_name`` is the original tag of the repeating node; branches
        that still hold an instance of it are never collapsed.
        """
        parent = target.parent
        if parent is None or parent.parent is None:
            raise ValueError(f"<{target.tag}> has no grandparent to move into")
        grandparent = parent.parent
        config = self.config

        promoted_name = config.join_vertical(parent.tag, target.tag)
        target_parts = config.name_parts(target.tag)
        protected = node_name or target.tag

        # 1. push context down to every pending instance; root-level context
        # is left to the engine's final fold
        if grandparent.parent is not None:
            stats.hoisted += self.flattener.flatten(
                grandparent,
                exclude=config.name_parts(parent.tag) + target_parts,
                protect=protected,
                keep_groups=True,
            )
        stats.merged += len(self.merger.merge(parent, exclude=[promoted_name]))
        stats.merged += len(self.merger.merge(target, exclude=[target.tag]))

        # 2. collapse unrelated structures next to the target; other
        # repeating groups stay until the parent is emptied
        stats.hoisted += self.flattener.flatten(
            parent, exclude=target_parts, protect=protected, keep_groups=True
        )

        # 3. carry leftover scalars (duplicates, empty nodes) and the
        # parent's own text into the target
        for child in list(parent.children):
            if child is not target and child.is_scalar:
                if self.merger.place(target, child, parent.tag) is not None:
                    stats.carried += 1
        if parent.text:
            label = XMLElement(tag=parent.tag, text=parent.text)
            if self.merger.place(target, label, parent.tag) is not None:
                stats.carried += 1

        # 4. rename and lift
        promoted = XMLElement(
            tag=promoted_name,
            attributes=dict(target.attributes),
            text=target.text,
        )
        for child in list(target.children):
            promoted.add_child(child)
        grandparent.insert_before(promoted, parent)
        target.detach()

        # every target already holds a copy of the parent's text
        if not parent.children:
            parent.detach()

        stats.steps += 1
        self._logger.debug(
            "Promoted node one level",
            extra={
                "from": target.tag,
                "to": promoted_name,
                "into": grandparent.tag,
                "parent_removed": parent.parent is None,
            },
        )
        return promoted
