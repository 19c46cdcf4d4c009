"""Error taxonomy for template parsing, slot validation and merging.

Every failure raised by this package derives from ``TemplateMergeError``.
Errors are terminal: nothing is retried internally, and each one carries
enough context (slot or element name, and a source location where one is
known) to diagnose the problem without re-running.
"""

from typing import Iterable, List, Optional

from .result import SourceLocation


def format_processing_instruction(name: str) -> str:
    """Render a slot name the way it appears in a document."""
    return f"<?{name}?>"


class TemplateMergeError(Exception):
    """Base exception for all parse, slot and merge failures."""

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.message} at {self.location}"


class StructureError(TemplateMergeError):
    """The input does not begin with, or is missing, the expected root element."""


class StreamTerminatedError(TemplateMergeError):
    """The input ended before the open elements were closed."""


class UnsupportedConstructError(TemplateMergeError):
    """A construct appeared that the parser has no handler for."""


class MalformedDocumentError(TemplateMergeError):
    """The input is not well-formed XML."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[int] = None,
    ):
        super().__init__(message, location)
        self.code = code


class SerializationError(TemplateMergeError):
    """The stream writer was used in a way that cannot produce well-formed XML."""


class SlotError(TemplateMergeError):
    """Base exception for slot (processing instruction placeholder) failures."""


class UnknownSlotError(SlotError):
    """A processing instruction or merge target names an undeclared slot."""

    def __init__(self, slot_name: str, location: Optional[SourceLocation] = None):
        super().__init__(
            f"Unknown processing instruction {format_processing_instruction(slot_name)}",
            location,
        )
        self.slot_name = slot_name


class InvalidSlotUsageError(SlotError):
    """A slot was given data it does not accept, or unparseable data."""

    def __init__(
        self,
        slot_name: str,
        reason: str,
        location: Optional[SourceLocation] = None,
    ):
        super().__init__(
            f"{format_processing_instruction(slot_name)} {reason}", location
        )
        self.slot_name = slot_name
        self.reason = reason


class DuplicateSlotError(SlotError):
    """The same slot occurs more than once in a single document."""

    def __init__(self, slot_name: str, location: Optional[SourceLocation] = None):
        super().__init__(
            "Can only have one occurrence of "
            f"{format_processing_instruction(slot_name)}",
            location,
        )
        self.slot_name = slot_name


class MissingSlotsError(SlotError):
    """One or more required slots were not found in a fully parsed document."""

    def __init__(self, missing: Iterable[str], document: Optional[str] = None):
        self.missing: List[str] = list(missing)
        rendered = ", ".join(
            format_processing_instruction(name) for name in self.missing
        )
        subject = f"The input {document}" if document else "The input document"
        super().__init__(
            f"{subject} is missing the following processing instructions: "
            f"{rendered}"
        )
