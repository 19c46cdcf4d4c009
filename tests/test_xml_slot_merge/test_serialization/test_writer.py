"""Tests for the namespace-aware stream writers."""

import io

import pytest

from xml_slot_merge.serialization import (
    FormattingXMLStreamWriter,
    NamespaceContext,
    XMLStreamWriter,
)
from xml_slot_merge.shared import SerializationError


class TestNamespaceContext:
    """Test prefix binding lookups."""

    def test_initial_bindings(self):
        context = NamespaceContext()

        assert context.get_prefix("") == ""
        assert context.get_prefix("urn:x") is None
        assert context.get_namespace_uri("xml") == "http://www.w3.org/XML/1998/namespace"

    def test_pending_bindings_apply_to_next_scope(self):
        context = NamespaceContext()
        context.bind("p", "urn:p")
        assert context.get_prefix("urn:p") == "p"

        context.push()
        assert context.get_prefix("urn:p") == "p"

        context.pop()
        assert context.get_prefix("urn:p") is None

    def test_default_preferred_over_prefix(self):
        context = NamespaceContext()
        context.bind("p", "urn:x")
        context.bind("", "urn:x")
        context.push()

        assert context.get_prefix("urn:x") == ""
        assert context.get_prefix("urn:x", allow_default=False) == "p"

    def test_shadowed_prefix_is_not_returned(self):
        context = NamespaceContext()
        context.bind("p", "urn:x")
        context.push()
        context.bind("p", "urn:other")
        context.push()

        assert context.get_prefix("urn:x") is None
        assert context.get_prefix("urn:other") == "p"

    def test_unbalanced_pop(self):
        with pytest.raises(SerializationError):
            NamespaceContext().pop()


class TestXMLStreamWriter:
    """Test the plain writer."""

    def test_elements_attributes_and_content(self):
        out = io.StringIO()
        writer = XMLStreamWriter(out)

        writer.write_start_element("a")
        writer.write_attribute("x", 'say "hi" & <bye>')
        writer.write_characters("1 < 2 & 3")
        writer.write_empty_element("b")
        writer.write_comment(" c ")
        writer.write_cdata("raw ]]> data")
        writer.write_end_element()

        assert out.getvalue() == (
            '<a x="say &quot;hi&quot; &amp; &lt;bye&gt;">1 &lt; 2 &amp; 3<b/>'
            "<!-- c --><![CDATA[raw ]]]]><![CDATA[> data]]></a>"
        )

    def test_default_namespace_declaration(self):
        out = io.StringIO()
        writer = XMLStreamWriter(out)

        writer.set_default_namespace("urn:y")
        writer.write_start_element("a")
        writer.write_default_namespace("urn:y")
        writer.write_empty_element("b", "urn:y")
        writer.write_end_element()

        assert out.getvalue() == '<a xmlns="urn:y"><b/></a>'

    def test_prefixed_names(self):
        out = io.StringIO()
        writer = XMLStreamWriter(out)

        writer.set_prefix("p", "urn:p")
        writer.write_start_element("a")
        writer.write_namespace("p", "urn:p")
        writer.write_attribute("ref", "r", "urn:p")
        writer.write_attribute("loose", "l", "urn:unbound")
        writer.write_empty_element("b", "urn:p")
        writer.write_end_document()

        assert out.getvalue() == '<a xmlns:p="urn:p" p:ref="r" loose="l"><p:b/></a>'

    def test_unbound_namespace(self):
        writer = XMLStreamWriter(io.StringIO())

        with pytest.raises(SerializationError, match="not bound"):
            writer.write_start_element("a", "urn:unknown")

    def test_empty_element_scope_ends_with_its_tag(self):
        out = io.StringIO()
        writer = XMLStreamWriter(out)

        writer.write_start_element("root")
        writer.set_default_namespace("urn:y")
        writer.write_empty_element("a")
        writer.write_default_namespace("urn:y")

        assert writer.namespace_context.get_prefix("") == ""
        assert out.getvalue() == '<root><a xmlns="urn:y"/>'

    def test_attribute_outside_start_tag(self):
        writer = XMLStreamWriter(io.StringIO())
        writer.write_start_element("a")
        writer.write_characters("text")

        with pytest.raises(SerializationError, match="outside a start tag"):
            writer.write_attribute("x", "1")

    def test_end_without_start(self):
        with pytest.raises(SerializationError, match="No open element"):
            XMLStreamWriter(io.StringIO()).write_end_element()

    def test_invalid_comment(self):
        writer = XMLStreamWriter(io.StringIO())

        with pytest.raises(SerializationError):
            writer.write_comment("a -- b")

    def test_closed_writer(self):
        out = io.StringIO()
        writer = XMLStreamWriter(out)
        writer.close()
        writer.close()

        assert writer.closed
        assert not out.closed
        with pytest.raises(SerializationError, match="closed"):
            writer.write_start_element("a")

    def test_declaration_must_come_first(self):
        writer = XMLStreamWriter(io.StringIO())
        writer.write_empty_element("a")

        with pytest.raises(SerializationError):
            writer.write_start_document()


class TestFormattingXMLStreamWriter:
    """Test indentation of element boundaries."""

    def test_indents_nested_elements(self):
        out = io.StringIO()
        writer = FormattingXMLStreamWriter(out, indent="  ")

        writer.write_start_document()
        writer.write_start_element("a")
        writer.write_start_element("b")
        writer.write_characters("text")
        writer.write_end_element()
        writer.write_comment("note")
        writer.write_empty_element("c")
        writer.write_end_element()
        writer.write_end_document()

        assert out.getvalue() == (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            "<a>\n"
            "  <b>text</b>\n"
            "  <!--note-->\n"
            "  <c/>\n"
            "</a>\n"
        )

    def test_empty_indent_is_unformatted(self):
        out = io.StringIO()
        writer = FormattingXMLStreamWriter(out, indent="")

        writer.write_start_element("a")
        writer.write_empty_element("b")
        writer.write_end_document()

        assert out.getvalue() == "<a><b/></a>"

    def test_crlf_newlines(self):
        out = io.StringIO(newline="")
        writer = FormattingXMLStreamWriter(out, indent="\t", newline="\r\n")

        writer.write_start_element("a")
        writer.write_empty_element("b")
        writer.write_end_document()

        assert out.getvalue() == "<a>\r\n\t<b/>\r\n</a>\r\n"

    def test_text_content_is_not_indented(self):
        out = io.StringIO()
        writer = FormattingXMLStreamWriter(out, indent="  ")

        writer.write_start_element("root")
        writer.write_start_element("a")
        writer.write_characters("x")
        writer.write_start_element("b")
        writer.write_empty_element("c")
        writer.write_end_element()
        writer.write_characters("y")
        writer.write_end_element()
        writer.write_empty_element("d")
        writer.write_end_document()

        assert out.getvalue() == (
            "<root>\n"
            "  <a>x<b><c/></b>y</a>\n"
            "  <d/>\n"
            "</root>\n"
        )

    def test_preserve_content_before_child_markup(self):
        out = io.StringIO()
        writer = FormattingXMLStreamWriter(out, indent="  ")

        writer.write_start_element("a")
        writer.preserve_content()
        writer.write_empty_element("b")
        writer.write_characters("y")
        writer.write_end_document()

        assert out.getvalue() == "<a><b/>y</a>\n"
