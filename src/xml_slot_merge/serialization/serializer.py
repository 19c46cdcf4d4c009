"""Formatting serializer for finished document trees."""

import io
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Optional, Union

from xml_slot_merge.shared import SerializerConfig, get_logger
from xml_slot_merge.tree import ElementNode

from .writer import FormattingXMLStreamWriter, XMLStreamWriter

OutputType = Union[str, Path, IO[str]]

logger = get_logger(__name__, component="serializer")


def create_writer(
    stream: IO[str], config: Optional[SerializerConfig] = None
) -> XMLStreamWriter:
    """Create the writer matching ``config``: indenting, or plain for compact output."""
    config = config or SerializerConfig()
    if config.pretty:
        return FormattingXMLStreamWriter(stream, config.indent, config.newline)
    return XMLStreamWriter(stream)


@contextmanager
def managed_writer(
    target: OutputType, config: Optional[SerializerConfig] = None
) -> Iterator[XMLStreamWriter]:
    """Scoped writer for ``target``, released on every exit path.

    Paths (``str`` or ``Path``) are opened here and closed again; streams
    are left open for their owner. If the body raises, that error
    propagates and a failure while closing the writer is only logged. If
    the body succeeds, a close failure propagates.

    Yields:
        Writer for the target
    """
    config = config or SerializerConfig()
    if isinstance(target, (str, Path)):
        with open(target, "w", encoding=config.encoding, newline="") as stream:
            with _scoped(create_writer(stream, config)) as writer:
                yield writer
    else:
        with _scoped(create_writer(target, config)) as writer:
            yield writer


@contextmanager
def _scoped(writer: XMLStreamWriter) -> Iterator[XMLStreamWriter]:
    try:
        yield writer
    except BaseException:
        try:
            writer.close()
        except Exception as close_error:
            logger.debug(
                "Suppressed error closing writer after a failure",
                extra={"close_error": repr(close_error)},
            )
        raise
    writer.close()


def serialize(
    root: ElementNode,
    target: OutputType,
    config: Optional[SerializerConfig] = None,
) -> None:
    """Write the tree under ``root`` to ``target``.

    Args:
        root: Root element of the document
        target: Output path or open text stream
        config: Serializer configuration

    Raises:
        SerializationError: If the tree cannot be written as well-formed XML
        OSError: If the target cannot be written
    """
    config = config or SerializerConfig()
    with managed_writer(target, config) as writer:
        if config.xml_declaration:
            writer.write_start_document(config.encoding, config.xml_version)
        root.marshall(writer)
        writer.write_end_document()
    logger.debug("Serialized document", extra={"root_element": root.name})


def serialize_to_string(
    root: ElementNode, config: Optional[SerializerConfig] = None
) -> str:
    buffer = io.StringIO()
    serialize(root, buffer, config)
    return buffer.getvalue()
