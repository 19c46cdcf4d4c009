"""Streaming parser building document trees from XML input.

The parser consumes a pull event stream, builds an element tree rooted at
an expected element, and hands processing instructions to a slot registry
that validates them against the document type's slot vocabulary.
"""

from .events import (
    EventAttribute,
    InputType,
    XMLEvent,
    XMLEventReader,
    XMLEventType,
    open_source,
)
from .node_parser import NodeParser, ProcessingInstructionHandler
from .slots import (
    SlotDefinition,
    SlotRegistry,
    SlotVocabulary,
    parse_processing_instruction_data,
)
from .documents import (
    POM_DOCUMENT,
    SERVER_CONFIG_DOCUMENT,
    DocumentType,
    ParsedDocument,
    parse_document,
)

__all__ = [
    "EventAttribute",
    "InputType",
    "XMLEvent",
    "XMLEventReader",
    "XMLEventType",
    "open_source",
    "NodeParser",
    "ProcessingInstructionHandler",
    "SlotDefinition",
    "SlotRegistry",
    "SlotVocabulary",
    "parse_processing_instruction_data",
    "POM_DOCUMENT",
    "SERVER_CONFIG_DOCUMENT",
    "DocumentType",
    "ParsedDocument",
    "parse_document",
]
