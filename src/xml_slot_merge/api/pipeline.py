"""Parse, merge and serialize pipeline.

This is the entry point used by callers that already resolved where the
host document and fragments live. Resolving locations (remote URLs,
environment lookups, archive extraction) is left to the caller.
"""

import os
import time
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

import psutil

from xml_slot_merge.merge import MergeEngine
from xml_slot_merge.parser import (
    POM_DOCUMENT,
    SERVER_CONFIG_DOCUMENT,
    DocumentType,
    InputType,
    ParsedDocument,
    parse_document,
)
from xml_slot_merge.serialization import OutputType, serialize, serialize_to_string
from xml_slot_merge.shared import (
    MergeConfig,
    MergeReport,
    TemplateMergeError,
    get_logger,
)
from xml_slot_merge.tree import ElementNode

FragmentLocations = Mapping[str, Sequence[InputType]]

# Constants for pipeline operations
MS_PER_SECOND = 1000


def _describe(location: Union[InputType, OutputType], is_output: bool = False) -> str:
    # Output strings are paths; input strings are document content
    if isinstance(location, Path) or (is_output and isinstance(location, str)):
        return str(location)
    if isinstance(location, (str, bytes)):
        return "<content>"
    name = getattr(location, "name", None)
    return str(name) if name else "<stream>"


def _resident_memory() -> int:
    return psutil.Process(os.getpid()).memory_info().rss


def assemble(
    host: InputType,
    fragments: FragmentLocations,
    output: OutputType,
    *,
    host_type: DocumentType = POM_DOCUMENT,
    fragment_type: DocumentType = SERVER_CONFIG_DOCUMENT,
    config: Optional[MergeConfig] = None,
) -> MergeReport:
    """Merge fragment documents into a host document's slots and write the result.

    The host is parsed first and its slots validated. Fragments are then
    parsed and merged slot by slot in mapping order, and within a slot in
    the order of their locations, so several fragments targeting one slot
    are concatenated in arrival order.

    Args:
        host: Host document as a path, text, bytes or open stream
        fragments: Fragment locations keyed by target slot name
        output: Output path or open text stream
        host_type: Expected shape of the host document
        fragment_type: Expected shape of every fragment document
        config: Merge configuration

    Returns:
        MergeReport describing what was attached to each slot

    Raises:
        TemplateMergeError: If any document is invalid or a slot is unknown
        OSError: If a document cannot be read or the output written
    """
    config = config or MergeConfig()
    logger = get_logger(__name__, config.correlation_id, "pipeline")
    start_time = time.time()
    memory_before = _resident_memory()

    logger.info(
        "Starting assembly",
        extra={
            "host": _describe(host),
            "slot_count": len(fragments),
            "output": _describe(output, is_output=True),
        },
    )

    try:
        host_document = parse_document(host, host_type, config)
        report = MergeReport(
            host=host_document.source or _describe(host),
            output=_describe(output, is_output=True),
            host_elements=host_document.element_count,
            correlation_id=config.correlation_id,
        )
        for slot_name in host_document.slots:
            report.slot_summary(slot_name)

        engine = MergeEngine(host_document, report, config.correlation_id)
        for slot_name, locations in fragments.items():
            host_document.slot(slot_name)
            for location in locations:
                fragment = parse_document(location, fragment_type, config)
                report.fragment_elements += fragment.element_count
                engine.merge_fragment(slot_name, fragment.root, fragment.source)

        serialize(host_document.root, output, config.serializer)
    except (TemplateMergeError, OSError):
        logger.exception("Assembly failed", extra={"host": _describe(host)})
        raise

    report.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    report.memory_used_bytes = max(_resident_memory() - memory_before, 0)

    logger.info(
        "Assembly complete",
        extra={
            "fragments_merged": report.fragments_merged,
            "delegates_attached": report.delegates_attached,
            "processing_time_ms": report.processing_time_ms,
        },
    )
    return report


def render(
    document: Union[ParsedDocument, ElementNode],
    config: Optional[MergeConfig] = None,
) -> str:
    """Serialize a parsed document, or a tree, to a string."""
    config = config or MergeConfig()
    root = document.root if isinstance(document, ParsedDocument) else document
    return serialize_to_string(root, config.serializer)
