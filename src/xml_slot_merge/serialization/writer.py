"""Namespace-aware XML stream writers.

``XMLStreamWriter`` writes markup to a text stream one call at a time and
keeps a ``NamespaceContext`` of the prefix bindings in scope, so callers can
ask whether a namespace already has a prefix before deciding how to write an
element. ``FormattingXMLStreamWriter`` adds indentation on element
boundaries without changing attribute or text output.
"""

from typing import IO, Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

from xml_slot_merge.shared import SerializationError

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

_ATTRIBUTE_ENTITIES = {
    '"': "&quot;",
    "\n": "&#10;",
    "\r": "&#13;",
    "\t": "&#9;",
}


class NamespaceContext:
    """Stack of prefix bindings, one scope per open element.

    Bindings made with ``bind`` before an element is started are pending;
    they become the new element's scope when ``push`` is called. The empty
    prefix stands for the default namespace, and the empty URI for no
    namespace.
    """

    def __init__(self) -> None:
        self._scopes: List[Dict[str, str]] = [{"": "", "xml": XML_NAMESPACE}]
        self._pending: Dict[str, str] = {}

    @property
    def depth(self) -> int:
        return len(self._scopes) - 1

    def bind(self, prefix: str, uri: str) -> None:
        """Bind ``prefix`` for the next element to be started."""
        self._pending[prefix] = uri

    def declare(self, prefix: str, uri: str) -> None:
        """Bind ``prefix`` in the innermost open scope."""
        self._scopes[-1][prefix] = uri

    def push(self) -> None:
        self._scopes.append(self._pending)
        self._pending = {}

    def pop(self) -> None:
        if len(self._scopes) == 1:
            raise SerializationError("No namespace scope to close")
        self._scopes.pop()

    def _bindings(self) -> List[Dict[str, str]]:
        return [self._pending] + self._scopes[::-1]

    def get_namespace_uri(self, prefix: str) -> Optional[str]:
        """Resolve a prefix to the namespace it is currently bound to."""
        for bindings in self._bindings():
            if prefix in bindings:
                return bindings[prefix]
        return None

    def get_prefix(self, uri: str, allow_default: bool = True) -> Optional[str]:
        """Find a prefix currently bound to ``uri``.

        Inner bindings win over outer ones and the default namespace wins
        over named prefixes within a scope. A prefix rebound to another
        namespace further in is never returned.

        Returns:
            The prefix, ``""`` for the default namespace, or ``None`` when
            ``uri`` is not bound
        """
        for bindings in self._bindings():
            for prefix in sorted(bindings, key=bool):
                if prefix == "" and not allow_default:
                    continue
                if bindings[prefix] == uri and self.get_namespace_uri(prefix) == uri:
                    return prefix
        return None


class XMLStreamWriter:
    """Writes XML markup to a text stream.

    Element and attribute names are written with the prefix currently bound
    to their namespace. A start tag stays open until content, another
    element or the end tag is written, so attributes and namespace
    declarations can follow ``write_start_element``.
    """

    def __init__(self, stream: IO[str]) -> None:
        self.stream = stream
        self._namespaces = NamespaceContext()
        self.closed = False
        self._elements: List[str] = []
        self._tag_open = False
        self._tag_empty = False
        self._written = False

    @property
    def namespace_context(self) -> NamespaceContext:
        """Bindings in scope for the next element.

        A pending self-closing tag is finished first, since its bindings go
        out of scope as soon as anything else is written.
        """
        if self._tag_empty:
            self._close_start_tag()
        return self._namespaces

    # Low-level output

    def _write(self, text: str) -> None:
        if self.closed:
            raise SerializationError("Writer is closed")
        self.stream.write(text)
        self._written = True

    def _close_start_tag(self) -> None:
        if not self._tag_open:
            return
        self._tag_open = False
        if self._tag_empty:
            self._tag_empty = False
            self._write("/>")
            self._namespaces.pop()
        else:
            self._write(">")

    def _qualified_name(self, local_name: str, namespace: Optional[str]) -> str:
        if namespace is None:
            return local_name
        prefix = self._namespaces.get_prefix(namespace)
        if prefix is None:
            raise SerializationError(
                f"Namespace {namespace!r} of <{local_name}> is not bound to a prefix"
            )
        return f"{prefix}:{local_name}" if prefix else local_name

    def _require_open_tag(self, what: str) -> None:
        if not self._tag_open:
            raise SerializationError(f"Cannot write {what} outside a start tag")

    # Namespace bindings

    def set_prefix(self, prefix: str, uri: str) -> None:
        """Bind ``prefix`` to ``uri`` for the next element."""
        self._namespaces.bind(prefix, uri)

    def set_default_namespace(self, uri: str) -> None:
        """Make ``uri`` the default namespace for the next element."""
        self._namespaces.bind("", uri)

    # Markup

    def write_start_document(self, encoding: str = "utf-8", version: str = "1.0") -> None:
        if self._written:
            raise SerializationError("XML declaration must come first")
        self._write(f'<?xml version="{version}" encoding="{encoding}"?>')

    def write_start_element(self, local_name: str, namespace: Optional[str] = None) -> None:
        """Open an element.

        Args:
            local_name: Tag name without prefix
            namespace: Namespace whose bound prefix is used; ``None`` writes
                the name unprefixed
        """
        self._close_start_tag()
        qualified_name = self._qualified_name(local_name, namespace)
        self._namespaces.push()
        self._write(f"<{qualified_name}")
        self._elements.append(qualified_name)
        self._tag_open = True

    def write_empty_element(self, local_name: str, namespace: Optional[str] = None) -> None:
        """Open a self-closing element; attributes may still follow."""
        self._close_start_tag()
        qualified_name = self._qualified_name(local_name, namespace)
        self._namespaces.push()
        self._write(f"<{qualified_name}")
        self._tag_open = True
        self._tag_empty = True

    def write_end_element(self) -> None:
        if not self._elements:
            raise SerializationError("No open element to close")
        self._close_start_tag()
        self._write(f"</{self._elements.pop()}>")
        self._namespaces.pop()

    def write_default_namespace(self, uri: str) -> None:
        self._require_open_tag("a namespace declaration")
        self._write(f' xmlns="{escape(uri, _ATTRIBUTE_ENTITIES)}"')
        self._namespaces.declare("", uri)

    def write_namespace(self, prefix: str, uri: str) -> None:
        if not prefix:
            self.write_default_namespace(uri)
            return
        self._require_open_tag("a namespace declaration")
        self._write(f' xmlns:{prefix}="{escape(uri, _ATTRIBUTE_ENTITIES)}"')
        self._namespaces.declare(prefix, uri)

    def write_attribute(self, name: str, value: str, namespace: Optional[str] = None) -> None:
        """Write an attribute on the open start tag.

        A namespaced attribute takes a named prefix bound to its namespace;
        without one in scope it is written unprefixed.
        """
        self._require_open_tag(f"attribute {name!r}")
        if namespace:
            prefix = self._namespaces.get_prefix(namespace, allow_default=False)
            if prefix:
                name = f"{prefix}:{name}"
        self._write(f' {name}="{escape(value, _ATTRIBUTE_ENTITIES)}"')

    def write_characters(self, text: str) -> None:
        self._close_start_tag()
        self._write(escape(text, {"\r": "&#13;"}))

    def write_cdata(self, data: str) -> None:
        self._close_start_tag()
        # "]]>" cannot occur inside a section; split it across two
        self._write("<![CDATA[" + data.replace("]]>", "]]]]><![CDATA[>") + "]]>")

    def write_comment(self, comment: str) -> None:
        if "--" in comment or comment.endswith("-"):
            raise SerializationError(f"Comment text cannot contain '--': {comment!r}")
        self._close_start_tag()
        self._write(f"<!--{comment}-->")

    def preserve_content(self) -> None:
        """Mark the open element as holding text.

        The plain writer never adds whitespace, so there is nothing to do.
        """

    def write_end_document(self) -> None:
        """Close the open start tag and every open element."""
        self._close_start_tag()
        while self._elements:
            self.write_end_element()

    # Lifecycle

    @property
    def open_elements(self) -> Tuple[str, ...]:
        return tuple(self._elements)

    def flush(self) -> None:
        if not self.closed:
            self.stream.flush()

    def close(self) -> None:
        """Flush and release the writer; the stream itself stays open."""
        if self.closed:
            return
        try:
            self.flush()
        finally:
            self.closed = True


class FormattingXMLStreamWriter(XMLStreamWriter):
    """Stream writer that indents element boundaries.

    Every element and comment starts on a new line indented by its depth.
    End tags go on their own line only when the element contained child
    markup, so text-only elements stay on one line. Once an element holds
    text or CDATA, nothing inside it is indented, since added whitespace
    would become part of its text. Text, CDATA and attributes are written
    exactly as the plain writer does. An empty ``indent`` produces
    unformatted output.
    """

    def __init__(self, stream: IO[str], indent: str = "    ", newline: str = "\n") -> None:
        super().__init__(stream)
        self.indent = indent
        self.newline = newline if indent else ""
        self._level = 0
        self._has_markup: List[bool] = []
        # Depth of the outermost open element with text content
        self._verbatim_level: Optional[int] = None

    def _break_line(self) -> None:
        if self.newline and self._written and self._verbatim_level is None:
            self._write(self.newline + self.indent * self._level)

    def _before_markup(self) -> None:
        self._close_start_tag()
        if self._has_markup:
            self._has_markup[-1] = True
        self._break_line()

    def preserve_content(self) -> None:
        if self._has_markup and self._verbatim_level is None:
            self._verbatim_level = self._level

    def write_start_element(self, local_name: str, namespace: Optional[str] = None) -> None:
        self._before_markup()
        super().write_start_element(local_name, namespace)
        self._level += 1
        self._has_markup.append(False)

    def write_empty_element(self, local_name: str, namespace: Optional[str] = None) -> None:
        self._before_markup()
        super().write_empty_element(local_name, namespace)

    def write_end_element(self) -> None:
        if not self._has_markup:
            raise SerializationError("No open element to close")
        self._level -= 1
        if self._has_markup.pop():
            self._close_start_tag()
            self._break_line()
        super().write_end_element()
        if self._verbatim_level is not None and self._level < self._verbatim_level:
            self._verbatim_level = None

    def write_characters(self, text: str) -> None:
        if text:
            self.preserve_content()
        super().write_characters(text)

    def write_cdata(self, data: str) -> None:
        self.preserve_content()
        super().write_cdata(data)

    def write_comment(self, comment: str) -> None:
        self._before_markup()
        super().write_comment(comment)

    def write_end_document(self) -> None:
        super().write_end_document()
        if self.newline and self._written:
            self._write(self.newline)
