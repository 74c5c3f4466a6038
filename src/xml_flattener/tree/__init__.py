"""Document tree model, loaders and structural queries.

Key Components:
    XMLDocument: Root document container with navigation
    XMLElement: Element with attributes, optional text and ordered children
    parse_xml / parse_file / json_to_document: Build documents from input
    to_xml_string: Serialize a document back to XML
    select_nodes: Evaluate XPath expressions against a document
"""

from .loader import (
    from_lxml,
    json_to_document,
    parse_file,
    parse_xml,
    to_lxml,
    to_xml_string,
)
from .nodes import XMLDocument, XMLElement
from .query import attr_value, select_nodes, xml_value

__all__ = [
    "XMLDocument",
    "XMLElement",
    "from_lxml",
    "json_to_document",
    "parse_file",
    "parse_xml",
    "to_lxml",
    "to_xml_string",
    "attr_value",
    "select_nodes",
    "xml_value",
]
