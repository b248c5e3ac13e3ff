#!/usr/bin/env python3
"""
Command-line interface for the link registry.

Usage:
    link-registry start [--host HOST] [--port PORT] [--expiration DAYS] [--log-level LEVEL]

Options left out fall back to the environment (see link_registry.app).
"""

import argparse
import sys

from pydantic import ValidationError

from .config import load_config
from .app import run_server


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="link-registry",
        description="Short link registry with expiring entries",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    start_parser = subparsers.add_parser(
        "start",
        help="Start server on predefined host and port",
    )
    start_parser.add_argument("--host", help="Binding host of the server")
    start_parser.add_argument("-p", "--port", type=int, help="Listening port of the server")
    start_parser.add_argument(
        "-e", "--expiration",
        type=int,
        help="Lifetime of registered links in days",
    )
    start_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(
            host=args.host,
            port=args.port,
            expiration_days=args.expiration,
            log_level=args.log_level,
        )
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    return run_server(config)


if __name__ == "__main__":
    sys.exit(main())
