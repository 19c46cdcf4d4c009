"""Merge engine splicing fragment documents into host slots.

This is the only place where content from one document enters another.
Fragment elements are always deep-copied under the slot's parent element,
so fragment trees are never aliased into, or mutated by, the host.
"""

from typing import Iterable, Optional, Tuple

from xml_slot_merge.parser import ParsedDocument
from xml_slot_merge.shared import MergeReport, get_logger
from xml_slot_merge.tree import ElementNode

FragmentPair = Tuple[str, ElementNode]


class MergeEngine:
    """Attaches fragment content to the slots of one host document."""

    def __init__(
        self,
        host: ParsedDocument,
        report: Optional[MergeReport] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize merge engine.

        Args:
            host: Parsed host document holding the slots
            report: Report updated with per-slot attachment counts
            correlation_id: Optional correlation ID for run tracking
        """
        self.host = host
        self.report = report if report is not None else MergeReport(host.source or "<host>")
        self.logger = get_logger(__name__, correlation_id, "merge_engine").bind(
            host=host.source
        )

    def merge_fragment(
        self,
        slot_name: str,
        fragment_root: ElementNode,
        fragment_source: Optional[str] = None,
    ) -> int:
        """Append the children of ``fragment_root`` as delegates of a slot.

        Children keep their order and land after any delegates the slot
        already has.

        Returns:
            Number of delegates attached

        Raises:
            UnknownSlotError: If the host declares no slot named ``slot_name``
        """
        slot = self.host.slot(slot_name)
        before = len(slot.delegates)
        for child in fragment_root.iter_children():
            slot.add_delegate(child)
        attached = len(slot.delegates) - before

        summary = self.report.slot_summary(slot_name)
        summary.fragments.append(fragment_source or fragment_root.arena.source or "<fragment>")
        summary.delegates_attached += attached

        self.logger.debug(
            "Attached fragment to slot",
            extra={
                "slot": slot_name,
                "fragment": fragment_source,
                "delegates": attached,
                "slot_parent": slot.parent.name,
            },
        )
        return attached

    def merge(self, pairs: Iterable[FragmentPair]) -> MergeReport:
        """Merge every ``(slot name, fragment root)`` pair in order."""
        for slot_name, fragment_root in pairs:
            self.merge_fragment(slot_name, fragment_root)
        self.logger.info(
            "Merged fragments",
            extra={
                "fragments": self.report.fragments_merged,
                "delegates": self.report.delegates_attached,
            },
        )
        return self.report


def merge_fragments(
    host: ParsedDocument,
    pairs: Iterable[FragmentPair],
    correlation_id: Optional[str] = None,
) -> MergeReport:
    """Merge fragment roots into the host's slots.

    Args:
        host: Parsed host document
        pairs: ``(slot name, fragment root)`` pairs, applied in order
        correlation_id: Optional correlation ID for run tracking

    Returns:
        MergeReport with per-slot attachment counts
    """
    return MergeEngine(host, correlation_id=correlation_id).merge(pairs)
