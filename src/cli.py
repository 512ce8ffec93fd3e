#!/usr/bin/env python3
"""
Command line access to the property store.

Usage:
    python -m src.cli list
    python -m src.cli get font.size --default 12
    python -m src.cli set font.size=14 font.name=Helvetica
    python -m src.cli remove font.name
    python -m src.cli check font.size font.name
    python -m src.cli --file ./app.properties list

Without --file the default file (~/.<app_name>, see PROPSTORE_* settings)
is used. Exit status: 0 success, 1 missing key, 2 load/save failure.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from src.core.config import get_settings
from src.core.exceptions import ConfigError
from src.core.logging import configure_logging, get_logger
from src.store.config_store import ConfigStore

# =============================================================================
# Constants
# =============================================================================

EXIT_OK: Final[int] = 0
EXIT_MISSING: Final[int] = 1
EXIT_ERROR: Final[int] = 2

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="propstore",
        description="Read and modify a property configuration file.",
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="property file to use instead of the default file",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    get_cmd = commands.add_parser("get", help="print the value of a key")
    get_cmd.add_argument("key")
    get_cmd.add_argument("--default", default=None, help="value printed when the key is missing")

    set_cmd = commands.add_parser("set", help="set keys from key=value expressions and save")
    set_cmd.add_argument("expressions", nargs="+", metavar="KEY=VALUE")

    remove_cmd = commands.add_parser("remove", help="remove keys and save")
    remove_cmd.add_argument("keys", nargs="+", metavar="KEY")

    commands.add_parser("list", help="print all key=value pairs")

    check_cmd = commands.add_parser("check", help="fail if any of the keys is missing")
    check_cmd.add_argument("keys", nargs="+", metavar="KEY")

    return parser


def _open_store(file: Path | None) -> ConfigStore:
    """Load the target file; a missing file is an empty store."""
    store = ConfigStore(default_path=file)
    if store.default_path.exists():
        store.load_default()
    return store


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command.

    Returns:
        Process exit status.

    Raises:
        ConfigError: Loading or saving the property file failed.
    """
    store = _open_store(args.file)

    if args.command == "get":
        value, found = store.get(args.key)
        if not found and args.default is None:
            print(f"{args.key}: not set", file=sys.stderr)
            return EXIT_MISSING
        print(value if found else args.default)
        return EXIT_OK

    if args.command == "list":
        for key, value in sorted(store.snapshot().items()):
            print(f"{key}={value}")
        return EXIT_OK

    if args.command == "check":
        for key in args.keys:
            try:
                store.check_mandatory(key)
            except ConfigError as e:
                print(e.message, file=sys.stderr)
                return EXIT_MISSING
        return EXIT_OK

    if args.command == "set":
        for expression in args.expressions:
            store.set_from_expression(expression)
    elif args.command == "remove":
        for key in args.keys:
            store.remove(key)
    store.save_default()
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except ConfigError as e:
        logger.error("command_failed", command=args.command, error=e.message)
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
