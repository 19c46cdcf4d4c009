"""Main CLI entry point for the xml-slot-merge command-line tool.

Provides commands to merge fragment documents into a host document's
slots, to check a host document, and to list the slots a host may declare.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from xml_slot_merge import __version__
from xml_slot_merge.api import assemble
from xml_slot_merge.parser import (
    POM_DOCUMENT,
    SERVER_CONFIG_DOCUMENT,
    parse_document,
)
from xml_slot_merge.shared import (
    ConfigError,
    MergeConfig,
    SlotError,
    TemplateMergeError,
    configure_logging,
    get_logger,
)

logger = get_logger(__name__, component="cli")


def parse_fragment_option(value: str) -> Tuple[str, Path]:
    """Parse a ``SLOT=PATH`` fragment option."""
    slot_name, separator, path = value.partition("=")
    if not separator or not slot_name or not path:
        raise argparse.ArgumentTypeError(
            f"expected SLOT=PATH, got {value!r}"
        )
    return slot_name, Path(path)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-slot-merge",
        description="Merge XML fragments into the processing-instruction slots of a host document"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Merge command
    merge_parser = subparsers.add_parser("merge", help="Merge fragments into a host document")
    merge_parser.add_argument(
        "host",
        type=Path,
        help="Host document containing the slots"
    )
    merge_parser.add_argument(
        "--fragment", "-f",
        dest="fragments",
        action="append",
        default=[],
        type=parse_fragment_option,
        metavar="SLOT=PATH",
        help="Fragment to merge into a slot; repeat to merge several"
    )
    merge_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    merge_parser.add_argument(
        "--fragment-root",
        default=SERVER_CONFIG_DOCUMENT.root_name,
        help=f"Root element of fragment documents (default: {SERVER_CONFIG_DOCUMENT.root_name})"
    )
    merge_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    merge_parser.add_argument(
        "--compact",
        action="store_true",
        help="Write unindented output without an XML declaration"
    )

    # Check command
    check_parser = subparsers.add_parser("check", help="Parse a host document and validate its slots")
    check_parser.add_argument(
        "host",
        type=Path,
        help="Host document to check"
    )
    check_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Slots command
    slots_parser = subparsers.add_parser("slots", help="List the slots a host document may declare")
    slots_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def load_config(args: argparse.Namespace) -> MergeConfig:
    """Build the merge configuration from a config file and command-line flags."""
    config = MergeConfig.from_file(args.config) if args.config else MergeConfig()
    if args.compact:
        config = config.override(serializer__indent="", serializer__xml_declaration=False)
    return config


def resolve_logging_level(
    args: argparse.Namespace, config: Optional[MergeConfig] = None
) -> Union[int, str]:
    """Pick the logging level; command-line flags win over the config file."""
    if args.verbose:
        return logging.DEBUG
    if args.quiet:
        return logging.ERROR
    if config is not None:
        return config.logging_level
    return logging.WARNING


def cmd_merge(args: argparse.Namespace, config: Optional[MergeConfig] = None) -> int:
    """Handle merge command."""
    if config is None:
        try:
            config = load_config(args)
        except (ConfigError, OSError) as e:
            print(f"Error loading configuration: {e}", file=sys.stderr)
            return 1

    fragments: Dict[str, List[Path]] = {}
    for slot_name, path in args.fragments:
        fragments.setdefault(slot_name, []).append(path)

    fragment_type = SERVER_CONFIG_DOCUMENT.with_root(args.fragment_root)
    output = args.output if args.output else sys.stdout

    try:
        report = assemble(
            args.host,
            fragments,
            output,
            fragment_type=fragment_type,
            config=config,
        )
    except (TemplateMergeError, OSError) as e:
        logger.debug("Merge command failed", extra={"host": str(args.host)})
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(
            f"Merged {report.fragments_merged} fragments, "
            f"{report.delegates_attached} nodes attached "
            f"({report.processing_time_ms:.1f}ms)",
            file=sys.stderr,
        )
        for summary in report.slots.values():
            print(
                f"   {summary.slot_name}: {len(summary.fragments)} fragments, "
                f"{summary.delegates_attached} nodes",
                file=sys.stderr,
            )
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    result: Dict[str, Any] = {"file": str(args.host), "valid": False}
    try:
        document = parse_document(args.host, POM_DOCUMENT)
    except SlotError as e:
        result["error"] = str(e)
        result["missing"] = list(getattr(e, "missing", []))
    except (TemplateMergeError, OSError) as e:
        result["error"] = str(e)
    else:
        result["valid"] = True
        result["root"] = document.root.name
        result["elements"] = document.element_count
        result["slots"] = list(document.slots)

    if args.format == "json":
        print(json.dumps(result, indent=2))
    elif result["valid"]:
        print(f"✓ {result['file']}")
        print(f"   Elements: {result['elements']}, Slots: {', '.join(result['slots'])}")
    else:
        print(f"✗ {result['file']}")
        print(f"   Error: {result['error']}")

    return 0 if result["valid"] else 1


def cmd_slots(args: argparse.Namespace) -> int:
    """Handle slots command."""
    definitions = [
        {
            "name": definition.name,
            "accepts_data": definition.accepts_data,
            "required": definition.required,
            "description": definition.description,
        }
        for definition in POM_DOCUMENT.vocabulary
    ]

    if args.format == "json":
        print(json.dumps(definitions, indent=2))
    else:
        for definition in definitions:
            flags = "required" if definition["required"] else "optional"
            if definition["accepts_data"]:
                flags += ", accepts data"
            print(f"<?{definition['name']}?>  ({flags})")
            if definition["description"]:
                print(f"   {definition['description']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config: Optional[MergeConfig] = None
    if getattr(args, "config", None):
        try:
            config = load_config(args)
        except (ConfigError, OSError) as e:
            print(f"Error loading configuration: {e}", file=sys.stderr)
            return 1

    configure_logging(resolve_logging_level(args, config))

    # Route to appropriate command handler
    try:
        if args.command == "merge":
            return cmd_merge(args, config)
        elif args.command == "check":
            return cmd_check(args)
        elif args.command == "slots":
            return cmd_slots(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
