"""Tests for the pull event reader."""

import io

import pytest

from xml_slot_merge.parser import XMLEventReader, XMLEventType, open_source
from xml_slot_merge.shared import MalformedDocumentError, ReaderConfig


def read_all(text, buffer_size=8192):
    return list(XMLEventReader(io.StringIO(text), ReaderConfig(buffer_size=buffer_size)))


class TestXMLEventReader:
    """Test event production."""

    def test_event_sequence(self):
        events = read_all("<a>x<![CDATA[y]]><!--c--><?pi d?></a>")

        assert [e.type for e in events] == [
            XMLEventType.START_DOCUMENT,
            XMLEventType.START_ELEMENT,
            XMLEventType.CHARACTERS,
            XMLEventType.CDATA,
            XMLEventType.COMMENT,
            XMLEventType.PROCESSING_INSTRUCTION,
            XMLEventType.END_ELEMENT,
            XMLEventType.END_DOCUMENT,
        ]
        assert events[2].text == "x"
        assert events[3].text == "y"
        assert events[4].text == "c"
        assert events[5].name == "pi"
        assert events[5].text == "d"

    def test_character_data_is_coalesced_across_chunks(self):
        events = read_all("<a>hello world</a>", buffer_size=2)

        text_events = [e for e in events if e.type == XMLEventType.CHARACTERS]
        assert len(text_events) == 1
        assert text_events[0].text == "hello world"

    def test_namespaces_and_attributes(self):
        events = read_all(
            '<root xmlns="urn:d" xmlns:p="urn:p" id="1" p:ref="r"><p:child/></root>'
        )
        root, child = events[1], events[2]

        assert root.name == "root"
        assert root.namespace == "urn:d"
        assert root.prefix is None
        assert root.namespace_declarations == (("p", "urn:p"),)
        assert [(a.name, a.value, a.namespace) for a in root.attributes] == [
            ("id", "1", None),
            ("ref", "r", "urn:p"),
        ]
        assert child.name == "child"
        assert child.namespace == "urn:p"
        assert child.qualified_name == "p:child"

    def test_whitespace_detection(self):
        events = read_all("<a>\n  <b/>\n</a>")

        text_events = [e for e in events if e.type == XMLEventType.CHARACTERS]
        assert text_events
        assert all(e.is_whitespace for e in text_events)

    def test_locations(self):
        events = read_all("<a>\n  <b/>\n</a>")
        start_b = [e for e in events if e.name == "b"][0]

        assert start_b.location.line == 2

    def test_malformed_input(self):
        reader = XMLEventReader(io.StringIO("<a></b>"))

        assert next(reader).type == XMLEventType.START_DOCUMENT
        assert next(reader).type == XMLEventType.START_ELEMENT
        with pytest.raises(MalformedDocumentError) as exc_info:
            next(reader)
        assert exc_info.value.location.line == 1

    def test_truncated_input_ends_the_stream(self):
        events = read_all("<a><b>")

        assert events[-1].type == XMLEventType.START_ELEMENT
        assert XMLEventType.END_DOCUMENT not in [e.type for e in events]

    def test_entity_declarations_are_rejected(self):
        with pytest.raises(MalformedDocumentError, match="Entity declarations"):
            read_all('<!DOCTYPE a [<!ENTITY e "x">]><a>&e;</a>')

    def test_bytes_input_honours_declared_encoding(self):
        data = '<?xml version="1.0" encoding="ISO-8859-1"?><a>caf\xe9</a>'.encode("latin-1")
        events = list(XMLEventReader(io.BytesIO(data)))

        assert events[2].text == "caf\xe9"


class TestOpenSource:
    """Test input normalisation."""

    def test_string_content(self):
        with open_source("<a/>") as (stream, name):
            assert stream.read() == "<a/>"
            assert name == "<string>"

    def test_path_is_opened_and_closed(self, tmp_path):
        path = tmp_path / "doc.xml"
        path.write_bytes(b"<a/>")

        with open_source(path) as (stream, name):
            assert stream.read() == b"<a/>"
            assert name == str(path)
        assert stream.closed

    def test_stream_is_left_open(self):
        source = io.StringIO("<a/>")
        with open_source(source) as (stream, name):
            assert stream is source
            assert name == "<stream>"
        assert not source.closed

    def test_unsupported_input(self):
        with pytest.raises(TypeError, match="Unsupported input type"):
            with open_source(42):
                pass
