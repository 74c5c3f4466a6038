"""Main CLI entry point for the xml-flatten command-line tool.

Provides commands to flatten XML (or JSON) files into flat records and to
inspect which repeating node would be chosen.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from xml_flattener import __version__
from xml_flattener.flatten import FlattenEngine, FlattenResult, RepeatedNodeDetector
from xml_flattener.records import RecordCursor, records_to_csv, records_to_json
from xml_flattener.shared import ConfigError, FlattenError, FlattenerConfig, get_logger
from xml_flattener.tree import json_to_document, parse_file, to_xml_string
from xml_flattener.tree.nodes import XMLDocument

OUTPUT_FORMATS = ["json", "csv", "xml"]
PRESETS = ["default", "strict"]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-flatten",
        description="Flatten nested XML into one flat record per repeating node"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Flatten command
    flatten_parser = subparsers.add_parser(
        "flatten", help="Flatten a file into records"
    )
    _add_input_arguments(flatten_parser)
    flatten_parser.add_argument(
        "--format", "-f",
        choices=OUTPUT_FORMATS,
        default="json",
        help="Output format (default: json)"
    )
    flatten_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    flatten_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )
    flatten_parser.add_argument(
        "--preset",
        choices=PRESETS,
        help="Configuration preset; ignored when --config is given"
    )
    flatten_parser.add_argument(
        "--records-root",
        help="Wrap JSON output as {ROOT: [...], recordCount: n}"
    )

    # Detect command
    detect_parser = subparsers.add_parser(
        "detect", help="Show the repeating node and the frequency table"
    )
    _add_input_arguments(detect_parser)
    detect_parser.add_argument(
        "--format", "-f",
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


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        type=Path,
        help="XML file to read (JSON with --json)"
    )
    parser.add_argument(
        "--node", "-n",
        help="XPath expression or tag name of the repeating node"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Read the input as JSON instead of XML"
    )
    parser.add_argument(
        "--root-name",
        default="",
        help="Root element name used when converting JSON input"
    )


def load_config(args: argparse.Namespace) -> FlattenerConfig:
    """Build the configuration from --config or --preset."""
    if getattr(args, "config", None):
        try:
            content = args.config.read_text()
        except OSError as e:
            raise ConfigError(f"Could not read config file: {e}") from e
        return FlattenerConfig.from_json(content)
    if getattr(args, "preset", None) == "strict":
        return FlattenerConfig.strict()
    return FlattenerConfig()


def load_document(args: argparse.Namespace) -> XMLDocument:
    """Read the input file as XML, or as JSON when --json is set."""
    if args.json:
        try:
            content = args.path.read_text()
        except OSError as e:
            raise FlattenError(f"Could not read {args.path}: {e}") from e
        return json_to_document(content, args.root_name)
    return parse_file(args.path)


def format_output(
    result: FlattenResult,
    cursor: RecordCursor,
    format_type: str,
    records_root: Optional[str] = None,
) -> str:
    """Format flattened records for output."""
    if format_type == "csv":
        return records_to_csv(cursor)
    if format_type == "xml":
        return to_xml_string(result.document, pretty=True)
    return records_to_json(cursor, root=records_root, indent=2)


def cmd_flatten(args: argparse.Namespace) -> int:
    """Handle flatten command."""
    logger = get_logger(__name__, None, "cli")

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    if not (args.verbose or args.quiet):
        logging.getLogger("xml_flattener").setLevel(config.logging_level)

    try:
        document = load_document(args)
        result = FlattenEngine(config.flatten).flatten(document, args.node)
        cursor = result.to_records(config.cursor)
        formatted_output = format_output(result, cursor, args.format, args.records_root)
    except FlattenError as e:
        logger.error("Flatten failed", extra={"path": str(args.path), "error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        try:
            args.output.write_text(formatted_output)
            print(
                f"{cursor.record_count} records written to {args.output}",
                file=sys.stderr,
            )
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(formatted_output)

    return 0


def cmd_detect(args: argparse.Namespace) -> int:
    """Handle detect command."""
    try:
        document = load_document(args)
        detection = RepeatedNodeDetector().detect(document, args.node)
    except FlattenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    frequencies = detection.frequencies.to_list() if detection.frequencies else []

    if args.format == "json":
        print(json.dumps({
            "node_name": detection.node_name,
            "strategy": detection.strategy,
            "selector": detection.selector,
            "instances": len(detection.nodes),
            "frequencies": frequencies,
        }, indent=2))
        return 0

    print(f"Repeating node: {detection.node_name}")
    print(f"Strategy: {detection.strategy}")
    print(f"Instances: {len(detection.nodes)}")
    if frequencies:
        print("-" * 40)
        for entry in frequencies:
            print(f"{entry['tag']:<24} depth={entry['depth']:<4} count={entry['count']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "flatten":
            return cmd_flatten(args)
        elif args.command == "detect":
            return cmd_detect(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
