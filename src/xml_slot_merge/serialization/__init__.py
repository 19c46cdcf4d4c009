"""Serialization of document trees back to XML."""

from .writer import (
    XML_NAMESPACE,
    FormattingXMLStreamWriter,
    NamespaceContext,
    XMLStreamWriter,
)
from .serializer import (
    OutputType,
    create_writer,
    managed_writer,
    serialize,
    serialize_to_string,
)

__all__ = [
    "XML_NAMESPACE",
    "FormattingXMLStreamWriter",
    "NamespaceContext",
    "XMLStreamWriter",
    "OutputType",
    "create_writer",
    "managed_writer",
    "serialize",
    "serialize_to_string",
]
