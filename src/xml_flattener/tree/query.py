"""Structural queries (XPath) against the document tree.

Queries are evaluated by lxml on a mirror of the tree; the matching lxml
nodes are mapped back to the original :class:`XMLElement` objects, so the
results can be mutated in place.
"""

from typing import Any, Dict, List, Optional, Union

from lxml import etree

from xml_flattener.shared import get_logger
from xml_flattener.tree.loader import mirror_to_lxml
from xml_flattener.tree.nodes import XMLDocument, XMLElement


def select_nodes(
    context: Union[XMLDocument, XMLElement],
    expression: str,
    correlation_id: Optional[str] = None,
) -> List[XMLElement]:
    """Evaluate an XPath expression and return the matching elements.

    For a document the expression is evaluated relative to its root
    element, so ``item`` selects the root's ``item`` children and
    ``//item`` selects every ``item``. Non-element results (strings,
    numbers, attributes) are ignored.

    An expression lxml cannot compile or evaluate matches nothing; the
    reason is logged at debug level.
    """
    logger = get_logger(__name__, correlation_id, "select_nodes")

    element = context.root if isinstance(context, XMLDocument) else context
    if element is None or not expression or not expression.strip():
        return []

    tree_root = element.get_root()
    try:
        _, lxml_by_id = mirror_to_lxml(tree_root)
    except ValueError as e:
        logger.debug(
            "Tree contains names XPath cannot address",
            extra={"expression": expression, "error": str(e)},
        )
        return []

    source_by_lxml: Dict[Any, XMLElement] = {}
    for source in tree_root.iter():
        source_by_lxml[lxml_by_id[id(source)]] = source

    try:
        hits = lxml_by_id[id(element)].xpath(expression)
    except etree.XPathError as e:
        logger.debug(
            "Expression is not a usable XPath query",
            extra={"expression": expression, "error": str(e)},
        )
        return []

    if not isinstance(hits, list):
        return []

    return [source_by_lxml[hit] for hit in hits if hit in source_by_lxml]


def xml_value(element: Optional[XMLElement], path: Optional[str]) -> str:
    """Inner text of the first element matched by ``path``.

    Returns an empty string when the element is missing, the path is empty
    or nothing matches.
    """
    if element is None or not path:
        return ""

    matches = select_nodes(element, path)
    if not matches:
        return ""
    return matches[0].inner_text


def attr_value(element: Optional[XMLElement], name: str) -> str:
    """Attribute value of ``element``, or an empty string if it is absent."""
    if element is None:
        return ""
    return element.get_attribute(name) or ""
