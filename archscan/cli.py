"""Command-line interface for architecture scans."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import Optional

from archscan.config import DEFAULT_CONFIG_PATH, ConfigError, ScanConfig, load_config
from archscan.export import write_architecture
from archscan.model import DEFAULT_LAYERS
from archscan.scanner import InvalidProjectPathError, ProjectScanner


class ExitCode(IntEnum):
    SUCCESS = 0
    CONFIG_ERROR = 1
    INVALID_PATH = 2


def _get_config(config_path: Optional[str]) -> ScanConfig:
    """Load config from --config, else .archscan.yaml in the working directory."""
    if config_path:
        return load_config(config_path)
    return load_config(Path.cwd() / DEFAULT_CONFIG_PATH)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def cmd_scan(args: argparse.Namespace) -> int:
    """Scan a project and print a summary."""
    _configure_logging(args.verbose)

    try:
        config = _get_config(args.config)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    if args.workers is not None:
        if args.workers < 1:
            error = ConfigError("'--workers' must be an integer >= 1", error_type="argument_invalid")
            print(json.dumps(error.to_json()), file=sys.stderr)
            return ExitCode.CONFIG_ERROR
        config.relation_workers = args.workers

    print(f"Scanning {args.project}...")
    try:
        architecture = ProjectScanner(config).scan(args.project)
    except InvalidProjectPathError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.INVALID_PATH

    stats = architecture.statistics()
    print(f"  Components: {stats['total_components']}")
    for kind, count in sorted(stats["components_by_kind"].items()):
        print(f"    {kind}: {count}")
    print(f"  Relations: {stats['total_relations']}")

    if args.output:
        output_path = write_architecture(architecture, args.output)
        print(f"Output: {output_path}")

    return ExitCode.SUCCESS


def cmd_layers(args: argparse.Namespace) -> int:
    """Print the layer table."""
    for layer, kinds in DEFAULT_LAYERS.items():
        print(f"{layer}: {', '.join(kinds)}")
    return ExitCode.SUCCESS


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="archscan",
        description="Reverse-engineer the architecture of a PHP project",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="Classify components and infer their relations",
    )
    scan_parser.add_argument("project", help="Project root directory")
    scan_parser.add_argument(
        "--config",
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    scan_parser.add_argument("--output", help="Write the architecture as JSON to this file")
    scan_parser.add_argument(
        "--workers",
        type=int,
        help="Threads used for relation inference",
    )
    scan_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log skipped files and symbol collisions",
    )

    # layers command
    subparsers.add_parser(
        "layers",
        help="Show the layer table",
    )

    args = parser.parse_args(argv)

    commands = {
        "scan": cmd_scan,
        "layers": cmd_layers,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
