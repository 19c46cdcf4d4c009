"""Document node model for template documents.

This module implements the in-memory tree that the streaming parser builds
and the serializer writes back out: elements, text, comments, CDATA sections
and processing-instruction slots. Every node can marshall itself to an XML
stream writer and reports whether it has content, which the writer uses to
decide whether an element can be self-closed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
)

from .arena import NodeArena

if TYPE_CHECKING:
    from xml_slot_merge.serialization.writer import XMLStreamWriter


class Node(ABC):
    """Base class for every node variant."""

    @abstractmethod
    def marshall(self, writer: "XMLStreamWriter") -> None:
        """Write this node's XML representation to ``writer``."""

    def has_content(self) -> bool:
        """Whether this node produces output that keeps its parent open."""
        return True


@dataclass(frozen=True)
class AttributeValue:
    """Attribute payload; the attribute's local name is its key on the element."""

    value: str
    namespace: Optional[str] = None


@dataclass(frozen=True)
class TextNode(Node):
    """Character data."""

    text: str

    def marshall(self, writer: "XMLStreamWriter") -> None:
        writer.write_characters(self.text)


@dataclass(frozen=True)
class CommentNode(Node):
    """An XML comment."""

    comment: str

    def marshall(self, writer: "XMLStreamWriter") -> None:
        writer.write_comment(self.comment)


@dataclass(frozen=True)
class CDataNode(Node):
    """A CDATA section."""

    data: str

    def marshall(self, writer: "XMLStreamWriter") -> None:
        writer.write_cdata(self.data)


class ElementNode(Node):
    """A single element with its attributes and ordered children.

    When no namespace is given, an element constructed under a parent takes
    the parent's namespace. The namespace never changes afterwards; moving
    an element into another tree goes through ``update_for_new_ns_and_parent``,
    which builds a copy.
    """

    def __init__(
        self,
        name: str,
        parent: Optional["ElementNode"] = None,
        namespace: Optional[str] = None,
        arena: Optional[NodeArena] = None,
    ) -> None:
        if not name:
            raise ValueError("Element name cannot be empty")

        if parent is not None:
            if arena is not None and arena is not parent.arena:
                raise ValueError("Element must belong to its parent's arena")
            arena = parent.arena
            if namespace is None:
                namespace = parent.namespace

        self.name = name
        self.namespace: Optional[str] = namespace or None
        self.attributes: Dict[str, AttributeValue] = {}
        self.namespace_declarations: Dict[str, str] = {}
        self.children: List[Node] = []
        self.arena = arena if arena is not None else NodeArena()
        self.parent_id: Optional[int] = parent.node_id if parent is not None else None
        self.node_id = self.arena.register(self)

    @property
    def parent(self) -> Optional["ElementNode"]:
        """Parent element, resolved through the arena."""
        return self.arena.get(self.parent_id)

    def update_for_new_ns_and_parent(
        self, parent: "ElementNode", namespace: Optional[str]
    ) -> "ElementNode":
        """Deep-copy this subtree under ``parent`` with every element in ``namespace``.

        Attributes, namespace declarations and child order are preserved.
        Nested elements are copied recursively; text, comment and CDATA
        children are immutable and carried over unchanged. The original
        subtree is not modified.
        """
        # An empty namespace is explicit and must not fall back to the parent's.
        copy = ElementNode(self.name, parent, namespace or "")
        copy.attributes.update(self.attributes)
        copy.namespace_declarations.update(self.namespace_declarations)

        for child in self.children:
            if isinstance(child, ElementNode):
                copy.children.append(child.update_for_new_ns_and_parent(copy, namespace))
            else:
                copy.children.append(child)
        return copy

    def get_named_child_element(self, name: str) -> Optional["ElementNode"]:
        """Find the first direct child element with tag name ``name``."""
        for node in self.children:
            if isinstance(node, ElementNode) and node.name == name:
                return node
        return None

    def named_child_elements(self, name: str) -> List["ElementNode"]:
        """Find all direct child elements with tag name ``name``."""
        return [
            node for node in self.children
            if isinstance(node, ElementNode) and node.name == name
        ]

    def add_attribute(self, name: str, value: AttributeValue) -> None:
        self.attributes[name] = value

    def add_namespace_declaration(self, prefix: str, uri: str) -> None:
        if not prefix:
            raise ValueError("Only prefixed namespace declarations are recorded")
        self.namespace_declarations[prefix] = uri

    def add_child(self, child: Node) -> None:
        """Append a child node."""
        if isinstance(child, ElementNode) and child.parent is not self:
            raise ValueError(
                f"{child!r} was not constructed under {self!r}; "
                "use update_for_new_ns_and_parent to move elements"
            )
        self.children.append(child)

    def iter_children(self) -> Iterator[Node]:
        return iter(self.children)

    def iter_elements(self) -> Iterator["ElementNode"]:
        """Iterate over this element and all descendant elements in document order."""
        yield self
        for child in self.children:
            if isinstance(child, ElementNode):
                yield from child.iter_elements()

    def get_attribute_value(
        self, name: str, default: Optional[str] = None
    ) -> Optional[str]:
        attribute = self.attributes.get(name)
        if attribute is None:
            return default
        return attribute.value

    @property
    def text(self) -> str:
        """Concatenated text and CDATA content of the direct children."""
        parts = []
        for child in self.children:
            if isinstance(child, TextNode):
                parts.append(child.text)
            elif isinstance(child, CDataNode):
                parts.append(child.data)
        return "".join(parts)

    def is_empty(self) -> bool:
        """Whether the element is written as a self-closed tag."""
        return not any(child.has_content() for child in self.children)

    def marshall(self, writer: "XMLStreamWriter") -> None:
        empty = self.is_empty()
        namespace = self.namespace or ""

        for prefix, uri in self.namespace_declarations.items():
            writer.set_prefix(prefix, uri)

        prefix = writer.namespace_context.get_prefix(namespace)
        if prefix is None:
            # Unknown namespace; it becomes the default
            writer.set_default_namespace(namespace)
            if empty:
                writer.write_empty_element(self.name)
            else:
                writer.write_start_element(self.name)
            writer.write_default_namespace(namespace)
        elif empty:
            writer.write_empty_element(self.name, namespace)
        else:
            writer.write_start_element(self.name, namespace)

        for declared_prefix, uri in self.namespace_declarations.items():
            writer.write_namespace(declared_prefix, uri)

        for name, attribute in self.attributes.items():
            writer.write_attribute(name, attribute.value, attribute.namespace)

        if not empty and any(_writes_text(child) for child in self.children):
            writer.preserve_content()

        for child in self.children:
            child.marshall(writer)

        if not empty:
            writer.write_end_element()

    def __repr__(self) -> str:
        return f"Element(name={self.name},ns={self.namespace})"


class ProcessingInstructionNode(Node):
    """A named slot declared by a processing instruction.

    At serialization time the slot writes its delegates, in the order they
    were added, in place of the original instruction.
    """

    def __init__(
        self,
        parent: ElementNode,
        name: str,
        data: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not name:
            raise ValueError("Processing instruction name cannot be empty")
        self.arena = parent.arena
        self.parent_id = parent.node_id
        self.name = name
        self.data: Dict[str, str] = dict(data or {})
        self.delegates: List[Node] = []

    @property
    def parent(self) -> ElementNode:
        parent = self.arena.get(self.parent_id)
        if parent is None:
            raise KeyError(f"Slot <?{self.name}?> has no parent element")
        return parent

    def add_delegate(self, delegate: Optional[Node], use_parent_ns: bool = True) -> None:
        """Append a node to emit in place of this slot.

        Elements are deep-copied under the slot's parent element, taking the
        parent's namespace when ``use_parent_ns`` is set; they are never
        aliased from another tree.
        """
        if delegate is None:
            return
        if isinstance(delegate, ElementNode):
            parent = self.parent
            namespace = parent.namespace if use_parent_ns else delegate.namespace
            delegate = delegate.update_for_new_ns_and_parent(parent, namespace)
        self.delegates.append(delegate)

    def get_data_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.data.get(name, default)

    def has_content(self) -> bool:
        return any(delegate.has_content() for delegate in self.delegates)

    def marshall(self, writer: "XMLStreamWriter") -> None:
        for delegate in self.delegates:
            delegate.marshall(writer)

    def __repr__(self) -> str:
        return f"ProcessingInstruction(name={self.name},delegates={len(self.delegates)})"


def _writes_text(node: Node) -> bool:
    if isinstance(node, TextNode):
        return bool(node.text)
    if isinstance(node, CDataNode):
        return True
    if isinstance(node, ProcessingInstructionNode):
        return any(_writes_text(delegate) for delegate in node.delegates)
    return False
