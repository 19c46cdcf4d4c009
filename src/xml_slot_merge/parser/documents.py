"""Document types and the document-level parse entry point."""

from dataclasses import dataclass, field
from typing import Dict, Optional

from xml_slot_merge.shared import MergeConfig, UnknownSlotError, get_logger
from xml_slot_merge.tree import ElementNode, ProcessingInstructionNode

from .events import InputType, XMLEventReader, open_source
from .node_parser import NodeParser
from .slots import SlotDefinition, SlotRegistry, SlotVocabulary


@dataclass(frozen=True)
class DocumentType:
    """Shape of a document: the expected root element and its slots."""

    name: str
    root_name: str
    vocabulary: SlotVocabulary = field(default_factory=SlotVocabulary, compare=False)

    def __post_init__(self) -> None:
        if not self.root_name:
            raise ValueError("Root element name cannot be empty")

    @property
    def has_slots(self) -> bool:
        return len(self.vocabulary) > 0

    def with_root(self, root_name: str) -> "DocumentType":
        """Same document type with a different expected root element."""
        return DocumentType(self.name, root_name, self.vocabulary)


POM_DOCUMENT = DocumentType(
    "pom",
    "project",
    SlotVocabulary(
        [
            SlotDefinition(
                "MAVEN_PLUGIN_CONFIG",
                description="Build plugin configuration",
            ),
            SlotDefinition(
                "DOCKER_PLUGIN_ENV_VARS",
                description="Environment variables of the image build plugin",
            ),
            SlotDefinition(
                "DATASOURCES_FEATURE_PACK",
                description="Feature packs providing data source drivers",
            ),
        ]
    ),
)

SERVER_CONFIG_DOCUMENT = DocumentType("server-config", "server-config")


@dataclass
class ParsedDocument:
    """A parsed document tree and the slots found while parsing it."""

    root: ElementNode
    slots: Dict[str, ProcessingInstructionNode]
    document_type: DocumentType
    source: Optional[str] = None

    def slot(self, name: str) -> ProcessingInstructionNode:
        """Look up a slot by name.

        Raises:
            UnknownSlotError: If the document declares no such slot
        """
        node = self.slots.get(name)
        if node is None:
            raise UnknownSlotError(name)
        return node

    @property
    def element_count(self) -> int:
        return len(self.root.arena)


def parse_document(
    source: InputType,
    document_type: DocumentType,
    config: Optional[MergeConfig] = None,
) -> ParsedDocument:
    """Parse ``source`` as a document of ``document_type``.

    Processing instructions are handled by a slot registry for the document
    type's vocabulary; a document type without slots gets a plain parser,
    for which any processing instruction is an error. Required slots are
    checked once the whole document has been read.

    Args:
        source: Path, document text or bytes, or an open stream
        document_type: Expected root element and slot vocabulary
        config: Merge configuration; defaults are used when omitted

    Returns:
        ParsedDocument with the tree and its slots

    Raises:
        TemplateMergeError: If the document is malformed or its slots invalid
        OSError: If the source cannot be read
    """
    config = config or MergeConfig()
    logger = get_logger(__name__, config.correlation_id, "document_parser")

    with open_source(source) as (stream, source_name):
        logger.debug(
            "Parsing document",
            extra={"source": source_name, "document_type": document_type.name},
        )
        registry = (
            SlotRegistry(document_type.vocabulary, source_name, config.correlation_id)
            if document_type.has_slots
            else None
        )
        parser = NodeParser(registry, config.correlation_id)
        reader = XMLEventReader(stream, config.reader, source_name)
        root = parser.parse(reader, document_type.root_name)

    slots: Dict[str, ProcessingInstructionNode] = {}
    if registry is not None:
        registry.validate_all_present()
        slots = dict(registry.slots)

    logger.info(
        "Parsed document",
        extra={
            "source": source_name,
            "document_type": document_type.name,
            "element_count": len(root.arena),
            "slot_count": len(slots),
        },
    )
    return ParsedDocument(root, slots, document_type, source_name)
