"""Result and report types shared by the parsing and merging layers."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SourceLocation:
    """Position of an event in a source document."""

    line: int
    column: int
    offset: int = 0
    source: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def __str__(self) -> str:
        position = f"line {self.line}, column {self.column}"
        if self.source:
            return f"{self.source}: {position}"
        return position


@dataclass
class SlotMergeSummary:
    """What was attached to a single slot during a merge."""

    slot_name: str
    fragments: List[str] = field(default_factory=list)
    delegates_attached: int = 0

    @property
    def has_content(self) -> bool:
        return self.delegates_attached > 0


@dataclass
class MergeReport:
    """Summary of one parse, merge and serialize pipeline run."""

    host: str
    output: Optional[str] = None
    slots: Dict[str, SlotMergeSummary] = field(default_factory=dict)
    host_elements: int = 0
    fragment_elements: int = 0
    processing_time_ms: float = 0.0
    memory_used_bytes: int = 0
    correlation_id: Optional[str] = None
    started_at: float = field(default_factory=time.time)

    @property
    def fragments_merged(self) -> int:
        """Total number of fragment documents merged into the host."""
        return sum(len(summary.fragments) for summary in self.slots.values())

    @property
    def delegates_attached(self) -> int:
        """Total number of nodes attached to slots."""
        return sum(summary.delegates_attached for summary in self.slots.values())

    def slot_summary(self, slot_name: str) -> SlotMergeSummary:
        """Get (creating if needed) the summary for a slot."""
        if slot_name not in self.slots:
            self.slots[slot_name] = SlotMergeSummary(slot_name)
        return self.slots[slot_name]

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary representation."""
        return {
            "host": self.host,
            "output": self.output,
            "slots": {
                name: {
                    "fragments": list(summary.fragments),
                    "delegates_attached": summary.delegates_attached,
                }
                for name, summary in self.slots.items()
            },
            "fragments_merged": self.fragments_merged,
            "delegates_attached": self.delegates_attached,
            "host_elements": self.host_elements,
            "fragment_elements": self.fragment_elements,
            "processing_time_ms": self.processing_time_ms,
            "memory_used_bytes": self.memory_used_bytes,
            "correlation_id": self.correlation_id,
        }
