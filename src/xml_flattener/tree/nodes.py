"""In-memory document tree consumed and produced by the flatten engine.

The tree is deliberately small: ordered children with exclusive ownership,
string attributes and optional direct text. Mixed content is not modelled;
a node either holds text or holds element children (a promoted row can hold
both while it is being built).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass(eq=False)
class XMLElement:
    """Represents a single element in the document tree.

    Equality is identity: two elements with the same content are still two
    distinct nodes of the tree.
    """

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    children: List["XMLElement"] = field(default_factory=list)
    parent: Optional["XMLElement"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate element values and establish parent-child relationships."""
        if not self.tag:
            raise ValueError("Element tag cannot be empty")

        for child in self.children:
            child.parent = self

    @property
    def is_leaf(self) -> bool:
        """Check if this is a text node: no element children, non-empty text."""
        return not self.children and bool(self.text)

    @property
    def is_empty(self) -> bool:
        """Check if this node has neither children nor text, like ``<PONum/>``."""
        return not self.children and not self.text

    @property
    def is_scalar(self) -> bool:
        """Check if this node holds at most a scalar value."""
        return not self.children

    @property
    def inner_text(self) -> str:
        """Concatenated text of this element and all its descendants."""
        parts = [self.text or ""]
        parts.extend(child.inner_text for child in self.children)
        return "".join(parts)

    def _check_child(self, child: "XMLElement") -> None:
        if not isinstance(child, XMLElement):
            raise TypeError("Child must be an XMLElement instance")
        ancestor: Optional[XMLElement] = self
        while ancestor is not None:
            if ancestor is child:
                raise ValueError("Cannot add an element to its own subtree")
            ancestor = ancestor.parent

    def add_child(self, child: "XMLElement") -> "XMLElement":
        """Append a child, detaching it from any previous parent."""
        self._check_child(child)
        if child.parent is not None:
            child.parent.remove_child(child)

        child.parent = self
        self.children.append(child)
        return child

    def insert_child(self, index: int, child: "XMLElement") -> "XMLElement":
        """Insert child element at specific index."""
        self._check_child(child)
        if not (0 <= index <= len(self.children)):
            raise IndexError("Child index out of range")
        if child.parent is not None:
            previous = child.parent
            if previous is self and previous.index_of(child) < index:
                index -= 1
            previous.remove_child(child)

        child.parent = self
        self.children.insert(index, child)
        return child

    def insert_before(self, child: "XMLElement", reference: "XMLElement") -> "XMLElement":
        """Insert ``child`` immediately before the existing child ``reference``."""
        return self.insert_child(self.index_of(reference), child)

    def remove_child(self, child: "XMLElement") -> bool:
        """Remove a child element and clear parent relationship."""
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                child.parent = None
                return True
        return False

    def detach(self) -> "XMLElement":
        """Remove this element from its parent, if any."""
        if self.parent is not None:
            self.parent.remove_child(self)
        return self

    def index_of(self, child: "XMLElement") -> int:
        """Position of ``child`` among this element's children."""
        for index, existing in enumerate(self.children):
            if existing is child:
                return index
        raise ValueError(f"<{child.tag}> is not a child of <{self.tag}>")

    def previous_siblings(self) -> Iterator["XMLElement"]:
        """Siblings before this element, nearest first."""
        if self.parent is None:
            return iter(())
        siblings = self.parent.children[:self.parent.index_of(self)]
        return reversed(siblings)

    def next_siblings(self) -> Iterator["XMLElement"]:
        """Siblings after this element, nearest first."""
        if self.parent is None:
            return iter(())
        return iter(self.parent.children[self.parent.index_of(self) + 1:])

    def find_child(self, tag: str) -> Optional["XMLElement"]:
        """Find first direct child with matching tag name."""
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def find_children(self, tag: str) -> List["XMLElement"]:
        """Find all direct children with matching tag name."""
        return [child for child in self.children if child.tag == tag]

    def iter(self) -> Iterator["XMLElement"]:
        """Iterate over this element and all descendants in document order."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find(self, tag: str) -> Optional["XMLElement"]:
        """Find first descendant element with matching tag name."""
        return next((elem for elem in self.find_all(tag)), None)

    def find_all(self, tag: str) -> List["XMLElement"]:
        """Find all descendant elements with matching tag name."""
        return [
            elem for child in self.children for elem in child.iter()
            if elem.tag == tag
        ]

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: str) -> None:
        """Set attribute value."""
        if not isinstance(name, str) or not isinstance(value, str):
            raise TypeError("Attribute name and value must be strings")
        self.attributes[name] = value

    def get_depth(self) -> int:
        """Get depth of this element in the tree (root = 0)."""
        depth = 0
        ancestor = self.parent
        while ancestor is not None:
            depth += 1
            ancestor = ancestor.parent
        return depth

    def get_root(self) -> "XMLElement":
        """Topmost ancestor of this element."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def get_path(self) -> str:
        """Get XPath-like path to this element."""
        if self.parent is None:
            return f"/{self.tag}"

        parent_path = self.parent.get_path()
        siblings = self.parent.find_children(self.tag)
        if len(siblings) > 1:
            position = next(
                i for i, sibling in enumerate(siblings, start=1) if sibling is self
            )
            return f"{parent_path}/{self.tag}[{position}]"

        return f"{parent_path}/{self.tag}"

    def deep_copy(self) -> "XMLElement":
        """Copy this element and its subtree; the copy has no parent."""
        return XMLElement(
            tag=self.tag,
            attributes=dict(self.attributes),
            text=self.text,
            children=[child.deep_copy() for child in self.children],
        )

    def copy_as(self, tag: str) -> "XMLElement":
        """Deep copy of this element under a different tag name."""
        duplicate = self.deep_copy()
        duplicate.tag = tag
        return duplicate

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {"tag": self.tag}

        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.text:
            result["text"] = self.text
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]

        return result


@dataclass
class XMLDocument:
    """Root document container with metadata and navigation."""

    root: Optional[XMLElement] = None
    encoding: str = "utf-8"
    version: str = "1.0"
    source: Optional[str] = None

    def __post_init__(self) -> None:
        if self.root is not None and self.root.parent is not None:
            raise ValueError("Document root cannot have a parent")

    @property
    def total_elements(self) -> int:
        """Number of elements currently in the tree."""
        return sum(1 for _ in self.iter_elements())

    @property
    def max_depth(self) -> int:
        """Depth of the deepest element (root = 0)."""
        if self.root is None:
            return 0

        def depth_below(element: XMLElement) -> int:
            if not element.children:
                return 0
            return 1 + max(depth_below(child) for child in element.children)

        return depth_below(self.root)

    def iter_elements(self) -> Iterator[XMLElement]:
        """Iterate over all elements in document order."""
        if self.root is None:
            return iter(())
        return self.root.iter()

    def contains(self, element: XMLElement) -> bool:
        """Check that ``element`` is still attached to this document."""
        return self.root is not None and element.get_root() is self.root

    def find(self, tag: str) -> Optional[XMLElement]:
        """Find first element with matching tag name."""
        return next((elem for elem in self.find_all(tag)), None)

    def find_all(self, tag: str) -> List[XMLElement]:
        """Find all elements with matching tag name, root included."""
        return [elem for elem in self.iter_elements() if elem.tag == tag]

    def deep_copy(self) -> "XMLDocument":
        """Independent copy of the whole document."""
        return XMLDocument(
            root=self.root.deep_copy() if self.root is not None else None,
            encoding=self.encoding,
            version=self.version,
            source=self.source,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        result: Dict[str, Any] = {
            "encoding": self.encoding,
            "version": self.version,
            "total_elements": self.total_elements,
            "max_depth": self.max_depth,
        }

        if self.root is not None:
            result["root"] = self.root.to_dict()

        return result
