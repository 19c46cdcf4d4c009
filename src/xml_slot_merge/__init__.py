"""XML Slot Merge.

Parses XML template documents whose processing instructions mark named
insertion points ("slots"), splices the content of fragment documents into
those slots, and writes the assembled document back out with deterministic
formatting and minimal namespace declarations.

API levels:
- Level 1: Pipeline - assemble(), render()
- Level 2: Document parsing - parse_document() with a DocumentType
- Level 3: Building blocks - NodeParser, SlotRegistry, MergeEngine, serialize()
"""

__version__ = "0.1.0"
__author__ = "XML Slot Merge Team"

# Level 1: Pipeline
from .api import assemble, render

# Level 2: Document parsing
from .parser import (
    POM_DOCUMENT,
    SERVER_CONFIG_DOCUMENT,
    DocumentType,
    ParsedDocument,
    SlotDefinition,
    SlotVocabulary,
    parse_document,
)

# Level 3: Building blocks
from .merge import MergeEngine, merge_fragments
from .parser import NodeParser, SlotRegistry
from .serialization import serialize

# Configuration, results and errors
from .shared import MergeConfig, MergeReport, TemplateMergeError
from .tree import ElementNode, ProcessingInstructionNode

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Pipeline
    "assemble",
    "render",

    # Level 2: Document parsing
    "POM_DOCUMENT",
    "SERVER_CONFIG_DOCUMENT",
    "DocumentType",
    "ParsedDocument",
    "SlotDefinition",
    "SlotVocabulary",
    "parse_document",

    # Level 3: Building blocks
    "MergeEngine",
    "merge_fragments",
    "NodeParser",
    "SlotRegistry",
    "serialize",

    # Configuration, results and errors
    "MergeConfig",
    "MergeReport",
    "TemplateMergeError",
    "ElementNode",
    "ProcessingInstructionNode",
]
