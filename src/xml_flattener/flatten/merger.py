"""Copying scalar sibling context into every instance of a repeating group."""

from typing import Any, Dict, Iterable, List, Optional

from xml_flattener.shared import (
    CollisionPolicy,
    FieldNameCollisionError,
    FlattenConfig,
    get_logger,
)
from xml_flattener.tree.nodes import XMLElement


class SiblingMerger:
    """Merges scalar siblings of a node into all of its same-named siblings.

    Given ``<order><no>1</no><item/><item/></order>`` and the first
    ``item``, the ``no`` leaf is copied into both items and then removed, so
    the context reaches every row of the group, not just the adjacent one.

    Context never replaces a field the recipient already has: the incoming
    copy is stored as ``<origin><lateral><name>`` instead (see :meth:`place`),
    or rejected under ``CollisionPolicy.ERROR``. Every such case is kept in
    ``collisions``.
    """

    def __init__(
        self,
        config: Optional[FlattenConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or FlattenConfig()
        self._logger = get_logger(__name__, correlation_id, "merger")
        self.copies_made = 0
        self.collisions: List[Dict[str, Any]] = []

    def reset(self) -> None:
        """Clear the counters kept across calls."""
        self.copies_made = 0
        self.collisions = []

    def collect(self, node: XMLElement, exclude: Iterable[str] = ()) -> List[XMLElement]:
        """Scalar siblings of ``node`` that qualify for merging.

        Scans the backward then the forward sibling chain; at most one
        sibling per name is taken (the first one encountered). Siblings
        named like ``node`` or listed in ``exclude`` never qualify.
        """
        if node.parent is None:
            return []

        excluded = set(exclude)
        claimed: Dict[str, XMLElement] = {}
        for chain in (node.previous_siblings(), node.next_siblings()):
            for sibling in chain:
                if (
                    sibling.tag != node.tag
                    and sibling.tag not in excluded
                    and sibling.tag not in claimed
                    and sibling.is_scalar
                ):
                    claimed[sibling.tag] = sibling

        parent = node.parent
        return sorted(claimed.values(), key=parent.index_of)

    def merge(self, node: XMLElement, exclude: Iterable[str] = ()) -> List[str]:
        """Copy qualifying siblings into every same-named sibling of ``node``.

        Args:
            node: Element about to be promoted (or its parent)
            exclude: Names that must never be merged

        Returns:
            Names of the merged siblings, in document order

        Raises:
            FieldNameCollisionError: If a recipient already has a merged
                name under ``CollisionPolicy.ERROR``
        """
        parent = node.parent
        leaves = self.collect(node, exclude)
        if parent is None or not leaves:
            return []

        recipients = parent.find_children(node.tag)
        for recipient in recipients:
            for leaf in leaves:
                self.place(recipient, leaf.deep_copy(), parent.tag)
        self.copies_made += len(recipients) * len(leaves)

        for leaf in leaves:
            leaf.detach()

        names = [leaf.tag for leaf in leaves]
        self._logger.debug(
            "Merged sibling context",
            extra={
                "node": node.tag,
                "parent": parent.tag,
                "fields": names,
                "recipients": len(recipients),
            },
        )
        return names

    def place(
        self, recipient: XMLElement, leaf: XMLElement, origin: str
    ) -> Optional[str]:
        """Append context ``leaf`` to ``recipient`` without touching its fields.

        When ``recipient`` already has a child named like ``leaf``, the leaf
        is renamed ``origin<lateral>name``; if that name is taken as well the
        leaf is dropped. Under ``CollisionPolicy.ERROR`` any clash raises.

        Args:
            recipient: Element receiving the context
            leaf: Scalar element to move in; detached from its parent
            origin: Tag of the element the context comes from

        Returns:
            The name the leaf was stored under, or None if it was dropped
        """
        existing = recipient.find_child(leaf.tag)
        if existing is None:
            recipient.add_child(leaf)
            return leaf.tag

        if self.config.collision_policy is CollisionPolicy.ERROR:
            self._logger.error(
                "Context collides with an existing field",
                extra={"field": leaf.tag, "row": recipient.tag, "origin": origin},
            )
            raise FieldNameCollisionError(
                leaf.tag, existing.inner_text, leaf.inner_text
            )

        name = leaf.tag
        renamed = self.config.join_lateral(origin, name)
        stored: Optional[str] = None
        if recipient.find_child(renamed) is None:
            leaf.tag = renamed
            recipient.add_child(leaf)
            stored = renamed
        else:
            leaf.detach()

        self.collisions.append(
            {"field": name, "row": recipient.tag, "stored_as": stored}
        )
        self._logger.warning(
            "Context field renamed to keep the existing value",
            extra={"field": name, "row": recipient.tag, "stored_as": stored},
        )
        return stored
