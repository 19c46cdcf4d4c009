"""Streaming tree parser.

``NodeParser`` walks an ``XMLEventReader`` with a single current-element
cursor and builds an ``ElementNode`` tree rooted at an expected element.
Processing instructions are delegated to a pluggable handler; without one
they are rejected.
"""

from typing import Callable, Optional

from xml_slot_merge.shared import (
    SourceLocation,
    StreamTerminatedError,
    StructureError,
    UnsupportedConstructError,
    get_logger,
)
from xml_slot_merge.tree import (
    AttributeValue,
    CDataNode,
    CommentNode,
    ElementNode,
    Node,
    NodeArena,
    TextNode,
)

from .events import XMLEvent, XMLEventReader, XMLEventType

ProcessingInstructionHandler = Callable[[XMLEvent, ElementNode], Node]


class NodeParser:
    """Builds a document tree from a pull event stream."""

    def __init__(
        self,
        processing_instruction_handler: Optional[ProcessingInstructionHandler] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize parser.

        Args:
            processing_instruction_handler: Called with each processing
                instruction event and the current element; returns the node
                to append. ``None`` makes processing instructions an error.
            correlation_id: Optional correlation ID for run tracking
        """
        self.processing_instruction_handler = processing_instruction_handler
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "node_parser")

    def parse(self, reader: XMLEventReader, root_name: str) -> ElementNode:
        """Parse a complete document whose root element is ``root_name``.

        Raises:
            StructureError: If the document has no root element, or the
                root element is not ``root_name``
            StreamTerminatedError: If the input ends before the root closes
        """
        event = next(reader, None)
        if event is None or event.type != XMLEventType.START_DOCUMENT:
            raise StructureError("Expected start of document")

        start = self._next_start_element(reader, root_name)
        root = self.parse_node(reader, start, root_name, NodeArena(reader.source_name))
        self.logger.debug(
            "Parsed document",
            extra={
                "source": reader.source_name,
                "root_element": root_name,
                "element_count": len(root.arena),
            },
        )
        return root

    def _next_start_element(self, reader: XMLEventReader, name: str) -> XMLEvent:
        for event in reader:
            if event.type == XMLEventType.START_ELEMENT:
                if event.name != name:
                    raise StructureError(
                        f"Expected root element <{name}>, found <{event.qualified_name}>",
                        event.location,
                    )
                return event
        raise StructureError(f"No start element found, expected <{name}>")

    def parse_node(
        self,
        reader: XMLEventReader,
        start: XMLEvent,
        node_name: str,
        arena: Optional[NodeArena] = None,
    ) -> ElementNode:
        """Parse the element opened by ``start`` and everything inside it.

        Parsing finishes when the cursor climbs back out of the element
        opened by ``start``; a nested element reusing ``node_name`` does not
        end the parse.
        """
        if start.type != XMLEventType.START_ELEMENT:
            raise StructureError("Expected start element", start.location)
        if start.name != node_name:
            raise StructureError(f"Expected <{node_name}>", start.location)

        root = self._create_element(start, None, arena)
        current = root
        last_location: SourceLocation = start.location

        for event in reader:
            last_location = event.location
            event_type = event.type

            if event_type == XMLEventType.END_ELEMENT:
                if current is root:
                    return root
                parent = current.parent
                if parent is None:
                    raise StructureError(
                        f"Element <{current.name}> closed outside <{node_name}>", event.location
                    )
                current = parent
            elif event_type == XMLEventType.START_ELEMENT:
                child = self._create_element(event, current)
                current.add_child(child)
                current = child
            elif event_type == XMLEventType.COMMENT:
                current.add_child(CommentNode(event.text or ""))
            elif event_type == XMLEventType.CDATA:
                current.add_child(CDataNode(event.text or ""))
            elif event_type == XMLEventType.CHARACTERS:
                if not event.is_whitespace:
                    current.add_child(TextNode(event.text or ""))
            elif event_type == XMLEventType.PROCESSING_INSTRUCTION:
                current.add_child(self.parse_processing_instruction(event, current))
            elif event_type == XMLEventType.END_DOCUMENT:
                break

        raise StreamTerminatedError(
            f"Element <{current.name}> was not terminated", last_location
        )

    def parse_processing_instruction(self, event: XMLEvent, parent: ElementNode) -> Node:
        """Turn a processing instruction into a node via the configured handler."""
        if self.processing_instruction_handler is None:
            raise UnsupportedConstructError(
                f"Processing instructions not supported: <?{event.name}?>",
                event.location,
            )
        return self.processing_instruction_handler(event, parent)

    def _create_element(
        self,
        event: XMLEvent,
        parent: Optional[ElementNode],
        arena: Optional[NodeArena] = None,
    ) -> ElementNode:
        element = ElementNode(event.name or "", parent, event.namespace or None, arena)
        for prefix, uri in event.namespace_declarations:
            element.add_namespace_declaration(prefix, uri)
        for attribute in event.attributes:
            element.add_attribute(
                attribute.name,
                self.create_attribute_value(attribute.value, attribute.namespace),
            )
        return element

    def create_attribute_value(
        self, value: str, namespace: Optional[str] = None
    ) -> AttributeValue:
        """Build the stored value for an attribute; override to wrap or validate."""
        return AttributeValue(value, namespace)
