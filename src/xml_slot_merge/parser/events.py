"""Pull-style XML event stream built on the expat parser.

expat pushes callbacks as it consumes input; ``XMLEventReader`` turns those
callbacks into a queue of ``XMLEvent`` objects and feeds the underlying
stream in chunks only when the consumer asks for more events. This gives
the tree parser a cursor-style loop while keeping memory bounded by the
chunk size rather than the document size.
"""

import io
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import (
    IO,
    Deque,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)
from xml.parsers import expat

from xml_slot_merge.shared import (
    MalformedDocumentError,
    ReaderConfig,
    SourceLocation,
    get_logger,
)

# Type definitions for input data
InputType = Union[str, bytes, Path, IO[str], IO[bytes]]

_NAMESPACE_SEPARATOR = " "
_XML_WHITESPACE = " \t\r\n"

# expat errors that mean the input simply stopped early
_TRUNCATION_ERRORS = frozenset(
    expat.errors.codes[message]
    for message in (
        expat.errors.XML_ERROR_NO_ELEMENTS,
        expat.errors.XML_ERROR_UNCLOSED_TOKEN,
        expat.errors.XML_ERROR_UNCLOSED_CDATA_SECTION,
        expat.errors.XML_ERROR_PARTIAL_CHAR,
    )
)

logger = get_logger(__name__, component="event_reader")


class XMLEventType(Enum):
    """Event types produced by the reader."""

    START_DOCUMENT = auto()
    START_ELEMENT = auto()
    END_ELEMENT = auto()
    CHARACTERS = auto()
    CDATA = auto()
    COMMENT = auto()
    PROCESSING_INSTRUCTION = auto()
    END_DOCUMENT = auto()


@dataclass(frozen=True)
class EventAttribute:
    """An attribute as declared on a start element."""

    name: str
    value: str
    namespace: Optional[str] = None
    prefix: Optional[str] = None


@dataclass(frozen=True)
class XMLEvent:
    """A single event in the pull stream.

    ``name`` is the local name for element events and the target for
    processing instructions. ``text`` holds character data, CDATA and
    comment payloads, and processing-instruction data.
    """

    type: XMLEventType
    location: SourceLocation
    name: Optional[str] = None
    namespace: Optional[str] = None
    prefix: Optional[str] = None
    attributes: Tuple[EventAttribute, ...] = ()
    namespace_declarations: Tuple[Tuple[str, str], ...] = ()
    text: Optional[str] = None

    @property
    def is_whitespace(self) -> bool:
        """Whether this is a character event containing only XML whitespace."""
        return (
            self.type == XMLEventType.CHARACTERS
            and not (self.text or "").strip(_XML_WHITESPACE)
        )

    @property
    def qualified_name(self) -> Optional[str]:
        if self.prefix and self.name:
            return f"{self.prefix}:{self.name}"
        return self.name


def _split_name(name: str) -> Tuple[Optional[str], str, Optional[str]]:
    """Split an expat ``uri local prefix`` name into its parts."""
    parts = name.split(_NAMESPACE_SEPARATOR)
    if len(parts) == 1:
        return None, parts[0], None
    if len(parts) == 2:
        return parts[0], parts[1], None
    return parts[0], parts[1], parts[2]


class XMLEventReader:
    """Iterator over the XML events of a character or byte stream.

    Errors raised by expat are deferred until the events produced before
    the error have been consumed, so a consumer that stops early (for
    example after the root element closes) never sees trailing garbage.
    """

    def __init__(
        self,
        stream: Union[IO[str], IO[bytes]],
        config: Optional[ReaderConfig] = None,
        source_name: Optional[str] = None,
    ) -> None:
        self.stream = stream
        self.config = config or ReaderConfig()
        self.source_name = source_name

        self._events: Deque[XMLEvent] = deque()
        self._error: Optional[MalformedDocumentError] = None
        self._finished = False

        self._text_parts: List[str] = []
        self._text_location: Optional[SourceLocation] = None
        self._cdata_parts: Optional[List[str]] = None
        self._cdata_location: Optional[SourceLocation] = None
        self._pending_declarations: List[Tuple[str, str]] = []

        self._parser = self._create_parser()
        self._events.append(
            XMLEvent(XMLEventType.START_DOCUMENT, SourceLocation(1, 1, 0, source_name))
        )

    def _create_parser(self) -> "expat.XMLParserType":
        parser = expat.ParserCreate(
            namespace_separator=_NAMESPACE_SEPARATOR, intern={}
        )
        parser.namespace_prefixes = True
        parser.ordered_attributes = True
        parser.StartElementHandler = self._start_element
        parser.EndElementHandler = self._end_element
        parser.CharacterDataHandler = self._character_data
        parser.CommentHandler = self._comment
        parser.ProcessingInstructionHandler = self._processing_instruction
        parser.StartCdataSectionHandler = self._start_cdata
        parser.EndCdataSectionHandler = self._end_cdata
        parser.StartNamespaceDeclHandler = self._start_namespace
        parser.EntityDeclHandler = self._entity_declaration
        return parser

    def __iter__(self) -> Iterator[XMLEvent]:
        return self

    def __next__(self) -> XMLEvent:
        while not self._events:
            if self._error is not None:
                raise self._error
            if self._finished:
                raise StopIteration
            self._feed()
        return self._events.popleft()

    # Input handling

    def _feed(self) -> None:
        chunk = self.stream.read(self.config.buffer_size)
        final = not chunk
        try:
            if final:
                self._parser.Parse(b"", True)
            else:
                self._parser.Parse(chunk, False)
        except expat.ExpatError as e:
            self._finished = True
            if e.code in _TRUNCATION_ERRORS:
                logger.debug(
                    "Input ended before the document was complete",
                    extra={"source": self.source_name, "expat_error": e.code},
                )
                return
            self._error = MalformedDocumentError(
                expat.ErrorString(e.code),
                SourceLocation(max(e.lineno, 1), e.offset + 1, 0, self.source_name),
                code=e.code,
            )
            return
        except MalformedDocumentError as e:
            self._finished = True
            self._error = e
            return

        if final:
            self._flush_text()
            self._finished = True
            self._events.append(XMLEvent(XMLEventType.END_DOCUMENT, self._location()))

    def _location(self) -> SourceLocation:
        parser = self._parser
        return SourceLocation(
            max(parser.CurrentLineNumber, 1),
            parser.CurrentColumnNumber + 1,
            max(parser.CurrentByteIndex, 0),
            self.source_name,
        )

    # expat callbacks

    def _flush_text(self) -> None:
        if self._text_parts:
            if self._text_location is None:
                raise MalformedDocumentError("Character data without a position", self._location())
            self._events.append(
                XMLEvent(
                    XMLEventType.CHARACTERS,
                    self._text_location,
                    text="".join(self._text_parts),
                )
            )
            self._text_parts = []
            self._text_location = None

    def _start_namespace(self, prefix: Optional[str], uri: Optional[str]) -> None:
        if prefix and uri:
            self._pending_declarations.append((prefix, uri))

    def _start_element(self, name: str, attributes: List[str]) -> None:
        self._flush_text()
        namespace, local_name, prefix = _split_name(name)
        event_attributes = []
        for index in range(0, len(attributes), 2):
            attr_ns, attr_name, attr_prefix = _split_name(attributes[index])
            event_attributes.append(
                EventAttribute(attr_name, attributes[index + 1], attr_ns, attr_prefix)
            )
        self._events.append(
            XMLEvent(
                XMLEventType.START_ELEMENT,
                self._location(),
                name=local_name,
                namespace=namespace,
                prefix=prefix,
                attributes=tuple(event_attributes),
                namespace_declarations=tuple(self._pending_declarations),
            )
        )
        self._pending_declarations = []

    def _end_element(self, name: str) -> None:
        self._flush_text()
        namespace, local_name, prefix = _split_name(name)
        self._events.append(
            XMLEvent(
                XMLEventType.END_ELEMENT,
                self._location(),
                name=local_name,
                namespace=namespace,
                prefix=prefix,
            )
        )

    def _character_data(self, data: str) -> None:
        if self._cdata_parts is not None:
            self._cdata_parts.append(data)
            return
        if not self._text_parts:
            self._text_location = self._location()
        self._text_parts.append(data)

    def _start_cdata(self) -> None:
        self._flush_text()
        self._cdata_parts = []
        self._cdata_location = self._location()

    def _end_cdata(self) -> None:
        if self._cdata_parts is None or self._cdata_location is None:
            raise MalformedDocumentError("CDATA section closed before it opened", self._location())
        self._events.append(
            XMLEvent(
                XMLEventType.CDATA,
                self._cdata_location,
                text="".join(self._cdata_parts),
            )
        )
        self._cdata_parts = None
        self._cdata_location = None

    def _comment(self, data: str) -> None:
        self._flush_text()
        self._events.append(XMLEvent(XMLEventType.COMMENT, self._location(), text=data))

    def _processing_instruction(self, target: str, data: str) -> None:
        self._flush_text()
        self._events.append(
            XMLEvent(
                XMLEventType.PROCESSING_INSTRUCTION,
                self._location(),
                name=target,
                text=data,
            )
        )

    def _entity_declaration(self, entity_name: str, *args: object) -> None:
        raise MalformedDocumentError(
            f"Entity declarations are not supported: {entity_name}",
            self._location(),
        )


@contextmanager
def open_source(source: InputType) -> Iterator[Tuple[Union[IO[str], IO[bytes]], str]]:
    """Open ``source`` for reading and close it again if it was opened here.

    Paths are opened in binary mode so that expat honours the document's
    encoding declaration. ``str`` and ``bytes`` are treated as document
    content; file-like objects are read as-is and left open for the caller.

    Yields:
        Tuple of (stream, display name)
    """
    if isinstance(source, Path):
        with source.open("rb") as stream:
            yield stream, str(source)
    elif isinstance(source, str):
        yield io.StringIO(source), "<string>"
    elif isinstance(source, bytes):
        yield io.BytesIO(source), "<bytes>"
    elif hasattr(source, "read"):
        name = getattr(source, "name", None)
        yield source, str(name) if name else "<stream>"
    else:
        raise TypeError(f"Unsupported input type: {type(source).__name__}")
