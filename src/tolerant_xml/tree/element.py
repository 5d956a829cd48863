"""XML element node for the tolerant document tree.

Ownership runs strictly from parent to children. The upward ``parent`` link is
a weak reference, so a tree is released as soon as its root is dropped and
the back-references never form a reference cycle.
"""

import weakref
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass(eq=False)
class XMLElement:
    """Represents a single XML element in the document tree.

    Holds the element's attributes, accumulated text, raw CDATA payload and
    ordered children, plus a weak back-reference to its parent.
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    cdata: Optional[bytes] = None
    children: List["XMLElement"] = field(default_factory=list, repr=False)
    _parent_ref: Optional["weakref.ReferenceType[XMLElement]"] = field(
        default=None, init=False, repr=False
    )

    def __post_init__(self) -> None:
        """Validate the element name and attach any initial children."""
        if not self.name:
            raise ValueError("Element name cannot be empty")

        initial_children = self.children
        self.children = []
        for child in initial_children:
            self.add_child(child)

    def __setattr__(self, key: str, value: Any) -> None:
        if key == "name" and "name" in self.__dict__:
            raise AttributeError("Element name cannot be changed after construction")
        super().__setattr__(key, value)

    @property
    def parent(self) -> Optional["XMLElement"]:
        """Parent element, or None for a root (or a parent that was released)."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def root(self) -> "XMLElement":
        """Topmost ancestor of this element; the element itself if detached."""
        element = self
        while element.parent is not None:
            element = element.parent
        return element

    @property
    def ancestors(self) -> List["XMLElement"]:
        """List of ancestors, most immediate first."""
        result = []
        element = self.parent
        while element is not None:
            result.append(element)
            element = element.parent
        return result

    def add_child(self, child: Optional["XMLElement"]) -> None:
        """Append a child element and establish the parent relationship.

        A ``None`` child is ignored. A child can be attached only once, and
        never to itself or to one of its own descendants.
        """
        if child is None:
            return
        if not isinstance(child, XMLElement):
            raise TypeError("Child must be an XMLElement instance")
        if child.parent is not None:
            raise ValueError(
                f"Element <{child.name}> is already attached to <{child.parent.name}>"
            )
        # A detached child is an ancestor of self only as the root of its tree
        if self.root is child:
            raise ValueError(
                f"Adding <{child.name}> to <{self.name}> would create a cycle"
            )

        child._parent_ref = weakref.ref(self)
        self.children.append(child)

    def children_named(self, name: Optional[str]) -> List["XMLElement"]:
        """Find all direct children with matching name, in document order."""
        if name is None:
            return []
        return [child for child in self.children if child.name == name]

    def first_child_named(self, name: Optional[str]) -> Optional["XMLElement"]:
        """Find first direct child with matching name."""
        if name is None:
            return None
        for child in self.children:
            if child.name == name:
                return child
        return None

    def text_of(self, name: Optional[str]) -> Optional[str]:
        """Text of the first direct child with matching name."""
        child = self.first_child_named(name)
        return child.text if child is not None else None

    def cdata_of(self, name: Optional[str]) -> Optional[bytes]:
        """CDATA payload of the first direct child with matching name."""
        child = self.first_child_named(name)
        return child.cdata if child is not None else None

    def attributes_of(self, name: Optional[str]) -> Optional[Dict[str, str]]:
        """Attributes of the first direct child with matching name."""
        child = self.first_child_named(name)
        return child.attributes if child is not None else None

    def iter_elements(self) -> Iterator["XMLElement"]:
        """Iterate over this element and its descendants in document order."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def get_depth(self) -> int:
        """Get depth of this element in the tree (root = 0)."""
        return len(self.ancestors)

    def is_equivalent(self, other: object) -> bool:
        """Compare name, attributes, text, CDATA and children at every level.

        The parent link is ignored, so a detached copy is equivalent to the
        subtree it was copied from.
        """
        pairs = [(self, other)]
        while pairs:
            mine, theirs = pairs.pop()
            if not isinstance(theirs, XMLElement):
                return False
            if (
                mine.name != theirs.name
                or mine.attributes != theirs.attributes
                or mine.text != theirs.text
                or mine.cdata != theirs.cdata
                or len(mine.children) != len(theirs.children)
            ):
                return False
            pairs.extend(zip(mine.children, theirs.children))
        return True

    def copy(self) -> "XMLElement":
        """Make a detached deep copy of this element and its descendants."""
        duplicate = self._copy_node()
        pending = [(self, duplicate)]
        while pending:
            original, target = pending.pop()
            for child in original.children:
                child_copy = child._copy_node()
                target.add_child(child_copy)
                pending.append((child, child_copy))
        return duplicate

    def _copy_node(self) -> "XMLElement":
        return XMLElement(
            self.name,
            attributes=dict(self.attributes),
            text=self.text,
            cdata=self.cdata,
        )

    def serialize(self, indent_level: int = 0, use_whitespace: bool = False) -> str:
        """Render this element and its descendants as XML text.

        See :func:`tolerant_xml.tree.serializer.serialize`.
        """
        from tolerant_xml.tree.serializer import serialize

        return serialize(self, indent_level, use_whitespace)

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to nested dictionary representation."""
        result = self._node_dict()
        pending = [(self, result)]
        while pending:
            element, data = pending.pop()
            if not element.children:
                continue
            data["children"] = []
            for child in element.children:
                child_data = child._node_dict()
                data["children"].append(child_data)
                pending.append((child, child_data))
        return result

    def _node_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "attributes": dict(self.attributes),
        }

        if self.text is not None:
            result["text"] = self.text

        if self.cdata is not None:
            result["cdata"] = self.cdata.decode("utf-8", errors="replace")

        return result

    @classmethod
    def from_bytes(
        cls, data: Optional[bytes], auto_trim_text: bool = True
    ) -> Optional["XMLElement"]:
        """Parse ``data`` and return its root element, or None.

        Examples:
            >>> root = XMLElement.from_bytes(b'<root><a x="1">hi</a></root>')
            >>> root.text_of("a")
            'hi'
        """
        from tolerant_xml.api.parser import parse_document

        return parse_document(data, auto_trim_text=auto_trim_text)
