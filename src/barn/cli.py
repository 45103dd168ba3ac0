"""Command-line interface for barn.

Provides the main entry point for serving the executables' root, or for
checking a configuration and printing the access report without serving.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="barn",
        description="Run the executables in a directory as authenticated HTTP endpoints",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: ./barn.yaml, then ~/.config/barn/barn.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("serve", help="Start the HTTP server")
    subparsers.add_parser("check", help="Validate the configuration and print the access report")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the barn CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return 0

    from barn.config.diagnostics import check_executables_root, report
    from barn.config.settings import ConfigError, load_settings
    from barn.utils.logging import setup_logging

    try:
        settings, location = load_settings(args.config)
    except ConfigError as e:
        setup_logging(verbose=args.verbose)
        logger.error("%s (%s)", e, e.location or "no config file")
        return 1

    setup_logging(settings.logging, verbose=args.verbose)
    try:
        check_executables_root(settings.options.root)
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    report(settings, location)

    if args.command == "serve":
        logger.info("Starting server on %s:%d", settings.options.host, settings.options.port)
        from barn.endpoint.server import run

        run(settings)
        print("Exiting...")

    return 0


if __name__ == "__main__":
    sys.exit(main())
