"""Processing-instruction slots.

A document type declares a closed vocabulary of processing-instruction
names that act as insertion points ("slots"). ``SlotRegistry`` is the
processing-instruction hook handed to the tree parser: it validates each
instruction against the vocabulary, builds the slot node and remembers it,
and after the parse checks that every required slot was seen.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from xml_slot_merge.shared import (
    DuplicateSlotError,
    InvalidSlotUsageError,
    MissingSlotsError,
    UnknownSlotError,
    get_logger,
)
from xml_slot_merge.tree import ElementNode, ProcessingInstructionNode

from .events import XMLEvent

_DATA_PAIR = re.compile(
    r"""([A-Za-z_][\w.\-]*)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=]+))"""
)


def parse_processing_instruction_data(data: Optional[str]) -> Dict[str, str]:
    """Parse ``key=value`` pairs from a processing instruction's data.

    Pairs are separated by whitespace; values may be single- or
    double-quoted. Empty or blank data gives an empty mapping.

    Raises:
        ValueError: If the data does not follow the grammar
    """
    values: Dict[str, str] = {}
    if not data:
        return values

    position = 0
    length = len(data)
    while position < length:
        if data[position].isspace():
            position += 1
            continue
        match = _DATA_PAIR.match(data, position)
        if match is None:
            raise ValueError(f"cannot parse data at position {position}: {data!r}")
        key, double_quoted, single_quoted, bare = match.groups()
        if double_quoted is not None:
            values[key] = double_quoted
        elif single_quoted is not None:
            values[key] = single_quoted
        else:
            values[key] = bare
        position = match.end()
        if position < length and not data[position].isspace():
            raise ValueError(f"expected whitespace at position {position}: {data!r}")
    return values


@dataclass(frozen=True)
class SlotDefinition:
    """A recognised processing-instruction name and its usage rules."""

    name: str
    accepts_data: bool = False
    required: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Slot name cannot be empty")
        if self.name.lower().startswith("xml"):
            raise ValueError(f"Slot name cannot start with 'xml': {self.name}")


class SlotVocabulary:
    """Closed, ordered set of slot definitions for one document type."""

    def __init__(self, definitions: Iterable[SlotDefinition] = ()) -> None:
        self._definitions: Dict[str, SlotDefinition] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                raise ValueError(f"Duplicate slot definition: {definition.name}")
            self._definitions[definition.name] = definition

    def get(self, name: str) -> Optional[SlotDefinition]:
        return self._definitions.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._definitions)

    @property
    def required_names(self) -> List[str]:
        return [d.name for d in self._definitions.values() if d.required]

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[SlotDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"SlotVocabulary({self.names})"


class SlotRegistry:
    """Processing-instruction handler that records the slots of one document.

    An instance is used for a single parse; the slots it found are available
    afterwards through ``slots``.
    """

    def __init__(
        self,
        vocabulary: SlotVocabulary,
        source_name: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.vocabulary = vocabulary
        self.source_name = source_name
        self.slots: Dict[str, ProcessingInstructionNode] = {}
        self.logger = get_logger(__name__, correlation_id, "slot_registry").bind(
            source=source_name
        )

    def __call__(self, event: XMLEvent, parent: ElementNode) -> ProcessingInstructionNode:
        """Handle a processing-instruction event found under ``parent``."""
        name = event.name or ""
        definition = self.vocabulary.get(name)
        if definition is None:
            raise UnknownSlotError(name, event.location)

        try:
            data = parse_processing_instruction_data(event.text)
        except ValueError as e:
            raise InvalidSlotUsageError(name, f"has invalid data: {e}", event.location) from e

        if data and not definition.accepts_data:
            raise InvalidSlotUsageError(name, "should not take any data", event.location)
        if name in self.slots:
            raise DuplicateSlotError(name, event.location)

        node = ProcessingInstructionNode(parent, name, data)
        self.slots[name] = node
        self.logger.debug(
            "Registered slot",
            extra={"slot": name, "parent_element": parent.name, "line": event.location.line},
        )
        return node

    def get(self, name: str) -> Optional[ProcessingInstructionNode]:
        return self.slots.get(name)

    def missing(self) -> List[str]:
        """Required slot names not seen so far, in declaration order."""
        return [name for name in self.vocabulary.required_names if name not in self.slots]

    def validate_all_present(self) -> None:
        """Check that every required slot was found.

        Raises:
            MissingSlotsError: Listing every missing slot
        """
        missing = self.missing()
        if missing:
            raise MissingSlotsError(missing, self.source_name)
