#!/usr/bin/env python3
"""
Quick Start Guide for XML Slot Merge.

This example walks through parsing a host document with slots, merging
fragment documents into them, and writing the assembled result.
"""

import io

from xml_slot_merge import (
    POM_DOCUMENT,
    SERVER_CONFIG_DOCUMENT,
    DocumentType,
    MergeConfig,
    SlotDefinition,
    SlotVocabulary,
    TemplateMergeError,
    assemble,
    merge_fragments,
    parse_document,
    render,
)

HOST_POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
    <build>
        <plugins>
            <?MAVEN_PLUGIN_CONFIG?>
        </plugins>
    </build>
    <profiles><?DOCKER_PLUGIN_ENV_VARS?></profiles>
    <dependencies><?DATASOURCES_FEATURE_PACK?></dependencies>
</project>
"""

PLUGIN_FRAGMENT = """<server-config>
    <plugin>
        <groupId>org.example</groupId>
        <artifactId>image-builder</artifactId>
    </plugin>
</server-config>
"""


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - XML Slot Merge")
    print("=" * 45)

    # Step 1: Parse a host document and look at its slots
    print("\n📄 Step 1: Parsing the host document")
    print("-" * 30)

    host = parse_document(HOST_POM, POM_DOCUMENT)
    print(f"✅ Root element: <{host.root.name}> in {host.root.namespace}")
    print(f"📍 Slots found: {', '.join(host.slots)}")

    # Step 2: Merge a fragment into one slot
    print("\n🧩 Step 2: Merging a fragment")
    print("-" * 30)

    fragment = parse_document(PLUGIN_FRAGMENT, SERVER_CONFIG_DOCUMENT)
    report = merge_fragments(host, [("MAVEN_PLUGIN_CONFIG", fragment.root)])
    print(f"✅ Nodes attached: {report.delegates_attached}")

    # Step 3: Serialize; empty slots collapse their parent elements
    print("\n🖨️  Step 3: Serializing")
    print("-" * 30)
    print(render(host))


def custom_document_type_example():
    """Slots are not limited to build descriptors."""

    print("\n🔧 Custom document type")
    print("-" * 30)

    host_type = DocumentType(
        "settings",
        "settings",
        SlotVocabulary([
            SlotDefinition("SERVERS"),
            SlotDefinition("MIRRORS", required=False, accepts_data=True),
        ]),
    )
    out = io.StringIO()
    assemble(
        io.StringIO("<settings><servers><?SERVERS?></servers></settings>"),
        {"SERVERS": [io.StringIO("<f><server><id>central</id></server></f>")]},
        out,
        host_type=host_type,
        fragment_type=DocumentType("fragment", "f"),
        config=MergeConfig.compact(),
    )
    print(out.getvalue())


def error_handling_example():
    """Every failure is a TemplateMergeError naming the slot and position."""

    print("\n⚠️  Error handling")
    print("-" * 30)

    try:
        parse_document("<project>\n  <?UNKNOWN_PI?>\n</project>", POM_DOCUMENT)
    except TemplateMergeError as e:
        print(f"❌ {type(e).__name__}: {e}")


if __name__ == "__main__":
    quick_start_example()
    custom_document_type_example()
    error_handling_example()
