"""Collapsing nested substructures into a single level of scalar children."""

from collections import Counter
from typing import Iterable, Optional

from xml_flattener.shared import FlattenConfig, get_logger
from xml_flattener.tree.nodes import XMLElement


class ChildFlattener:
    """Collapses structured children of a container in place.

    ``<book><info><author>A</author><type>T</type></info></book>`` becomes
    ``<book><info-author>A</info-author><info-type>T</info-type></book>``.
    Deeper levels chain the lateral separator: ``a-b-c``.
    """

    def __init__(
        self,
        config: Optional[FlattenConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or FlattenConfig()
        self._logger = get_logger(__name__, correlation_id, "children")

    def is_excluded(self, tag: str, exclude: Iterable[str]) -> bool:
        """Check whether any ancestor name encoded in ``tag`` is excluded."""
        return not set(self.config.name_parts(tag)).isdisjoint(exclude)

    def flatten(
        self,
        container: XMLElement,
        exclude: Iterable[str] = (),
        protect: Optional[str] = None,
        keep_groups: bool = False,
    ) -> int:
        """Hoist every descendant of ``container``'s structured children.

        Each structured child is flattened recursively first, then replaced
        at its own position by its children renamed
        ``child<lateral>grandchild``. Scalar children stay untouched.

        Args:
            container: Element whose structured children are collapsed
            exclude: Names whose branches must be left alone, compared
                against every vertical-separator part of a child's tag
            protect: Tag of pending repeating nodes; a branch holding one
                is left alone
            keep_groups: Leave alone structured children whose tag occurs
                more than once in ``container`` (another repeating group)

        Returns:
            Number of nodes hoisted, across all levels
        """
        excluded = frozenset(exclude)
        hoisted = 0
        groups: Counter = Counter()
        if keep_groups:
            groups.update(
                child.tag for child in container.children if not child.is_scalar
            )

        for child in list(container.children):
            if child.is_scalar or self.is_excluded(child.tag, excluded):
                continue
            if protect is not None and child.find(protect) is not None:
                continue
            if groups[child.tag] > 1:
                continue

            hoisted += self.flatten(child)

            position = container.index_of(child)
            for grandchild in list(child.children):
                grandchild.tag = self.config.join_lateral(child.tag, grandchild.tag)
                container.insert_child(position, grandchild)
                position += 1
                hoisted += 1
            child.detach()

        if hoisted:
            self._logger.debug(
                "Flattened child structures",
                extra={"container": container.tag, "hoisted": hoisted},
            )
        return hoisted
