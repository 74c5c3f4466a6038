"""Loading tree documents from XML or JSON and writing them back to XML.

Parsing is delegated to lxml; the resulting elements are converted into the
package's own :class:`XMLElement` tree so the flatten engine never touches
lxml objects directly.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from lxml import etree

from xml_flattener.shared import DocumentLoadError, get_logger
from xml_flattener.tree.nodes import XMLDocument, XMLElement

XMLInput = Union[str, bytes]

DEFAULT_ROOT_NAME = "root"
DEFAULT_ARRAY_ITEM_NAME = "item"

# Unicode input must not carry an encoding declaration for lxml
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def _make_parser(recover: bool) -> etree.XMLParser:
    return etree.XMLParser(
        remove_blank_text=True,
        remove_comments=True,
        remove_pis=True,
        resolve_entities=False,
        no_network=True,
        recover=recover,
    )


def parse_xml(
    content: XMLInput,
    recover: bool = False,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse XML text or bytes into a document.

    Args:
        content: XML document as text or raw bytes
        recover: Let lxml repair malformed markup instead of failing
        correlation_id: Optional correlation ID for request tracking

    Returns:
        XMLDocument holding the converted tree

    Raises:
        DocumentLoadError: If the content is not well-formed XML
    """
    logger = get_logger(__name__, correlation_id, "parse_xml")

    if isinstance(content, str):
        content = _XML_DECLARATION.sub("", content, count=1)
    if not content or not content.strip():
        raise DocumentLoadError("XML input is empty")

    try:
        lxml_root = etree.fromstring(content, _make_parser(recover))
    except etree.XMLSyntaxError as e:
        logger.error("XML parsing failed", extra={"error": str(e)})
        raise DocumentLoadError(f"Invalid XML: {e}", {"line": e.lineno}) from e

    if lxml_root is None:
        raise DocumentLoadError("XML input did not contain a root element")

    document = from_lxml(lxml_root)
    logger.debug(
        "Parsed XML document",
        extra={"root": document.root.tag, "elements": document.total_elements},
    )
    return document


def parse_file(
    file_path: Union[str, Path],
    recover: bool = False,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse an XML file into a document.

    The file is read as bytes so lxml can honour the encoding declaration.
    """
    path_obj = Path(file_path)
    if not path_obj.exists():
        raise DocumentLoadError(f"File not found: {path_obj}")
    if not path_obj.is_file():
        raise DocumentLoadError(f"Path is not a file: {path_obj}")

    document = parse_xml(path_obj.read_bytes(), recover, correlation_id)
    document.source = str(path_obj)
    return document


def from_lxml(lxml_element: Any) -> XMLDocument:
    """Convert an lxml element (and its subtree) into a document.

    Namespaces are dropped: tags and attribute names keep their local names.
    """
    if not hasattr(lxml_element, "tag"):
        raise DocumentLoadError("Input is not an lxml element")

    docinfo = lxml_element.getroottree().docinfo
    return XMLDocument(
        root=_convert_from_lxml(lxml_element),
        encoding=(docinfo.encoding or "utf-8").lower(),
        version=docinfo.xml_version or "1.0",
    )


def _convert_from_lxml(lxml_element: Any) -> XMLElement:
    """Convert lxml.etree.Element to XMLElement."""
    element = XMLElement(
        tag=etree.QName(lxml_element).localname,
        attributes={
            etree.QName(name).localname: value
            for name, value in lxml_element.attrib.items()
        },
    )

    text_parts = [lxml_element.text or ""]
    for lxml_child in lxml_element:
        if isinstance(lxml_child.tag, str):
            element.add_child(_convert_from_lxml(lxml_child))
        if lxml_child.tail and lxml_child.tail.strip():
            text_parts.append(lxml_child.tail)

    text = "".join(text_parts)
    if element.children and not text.strip():
        text = ""
    element.text = text or None
    return element


def to_lxml(element: XMLElement) -> Any:
    """Convert an XMLElement subtree to lxml.etree.Element."""
    lxml_element, _ = mirror_to_lxml(element)
    return lxml_element


def mirror_to_lxml(element: XMLElement) -> Tuple[Any, Dict[int, Any]]:
    """Convert a subtree and return the lxml node for every source element.

    Returns:
        The lxml root and a mapping ``id(XMLElement) -> lxml element``.
        The mapping keeps every lxml proxy alive, so elements returned by
        a later XPath evaluation are the very same objects.
    """
    mapping: Dict[int, Any] = {}

    def convert(source: XMLElement) -> Any:
        lxml_element = etree.Element(source.tag)
        for key, value in source.attributes.items():
            lxml_element.set(key, value)
        if source.text:
            lxml_element.text = source.text
        for child in source.children:
            lxml_element.append(convert(child))
        mapping[id(source)] = lxml_element
        return lxml_element

    return convert(element), mapping


def to_xml_string(
    document: Union[XMLDocument, XMLElement],
    pretty: bool = False,
) -> str:
    """Serialize a document or element subtree to XML text."""
    root = document.root if isinstance(document, XMLDocument) else document
    if root is None:
        return ""

    try:
        lxml_root = to_lxml(root)
    except ValueError as e:
        raise DocumentLoadError(f"Tree cannot be serialized as XML: {e}") from e
    return etree.tostring(lxml_root, encoding="unicode", pretty_print=pretty)


def json_to_document(
    json_data: Union[str, bytes, Dict[str, Any], List[Any]],
    root_name: str = "",
    array_item_name: str = DEFAULT_ARRAY_ITEM_NAME,
) -> XMLDocument:
    """Build a document from a JSON payload.

    Objects become elements, arrays become repeated elements named after
    their key, scalars become text. Keys starting with ``@`` become
    attributes and a ``#text`` key becomes the element text.

    Args:
        json_data: JSON text, or an already decoded object/array
        root_name: Name of a root element wrapping the payload. When empty,
            a payload that is an object with a single object-valued key uses
            that key as the root; anything else is wrapped in ``root``.
        array_item_name: Element name for members of a top-level array

    Raises:
        DocumentLoadError: If the JSON cannot be decoded or converted
    """
    if isinstance(json_data, (str, bytes)):
        try:
            data = json.loads(json_data)
        except json.JSONDecodeError as e:
            raise DocumentLoadError(f"Invalid JSON: {e}") from e
    else:
        data = json_data

    if isinstance(data, list):
        root = XMLElement(tag=root_name or DEFAULT_ROOT_NAME)
        for value in data:
            _append_json_value(root, array_item_name, value)
    elif isinstance(data, dict):
        if not root_name and len(data) == 1:
            (key, value), = data.items()
            if isinstance(value, dict):
                root = XMLElement(tag=key)
                _fill_from_json_object(root, value)
                return XMLDocument(root=root)
        root = XMLElement(tag=root_name or DEFAULT_ROOT_NAME)
        _fill_from_json_object(root, data)
    else:
        raise DocumentLoadError("JSON payload must be an object or an array")

    return XMLDocument(root=root)


def _json_scalar(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _fill_from_json_object(element: XMLElement, data: Dict[str, Any]) -> None:
    for key, value in data.items():
        if not key:
            raise DocumentLoadError("JSON object keys cannot be empty")
        if key.startswith("@"):
            element.set_attribute(key[1:], _json_scalar(value) or "")
        elif key == "#text":
            element.text = _json_scalar(value)
        elif isinstance(value, list):
            for item in value:
                _append_json_value(element, key, item)
        else:
            _append_json_value(element, key, value)


def _append_json_value(parent: XMLElement, tag: str, value: Any) -> None:
    child = parent.add_child(XMLElement(tag=tag))
    if isinstance(value, dict):
        _fill_from_json_object(child, value)
    elif isinstance(value, list):
        for item in value:
            _append_json_value(child, tag, item)
    else:
        child.text = _json_scalar(value)
