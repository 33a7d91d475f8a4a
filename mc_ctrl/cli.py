"""
Command Line Interface for MC Control.

Provides CLI commands for server status, RCON and player administration.
"""

import argparse
import sys
from typing import List, Optional

from .cli_commands import COMMANDS
from .common.constants import ExitCodes
from .common.logging_config import configure_logging, get_logger


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog='mc-ctrl',
        description='Minecraft Server Control Tool'
    )

    subparsers = parser.add_subparsers(dest='command_name', help='Available commands')

    for command in COMMANDS:
        command.add_parser(subparsers)

    return parser


def main(args: Optional[List[str]] = None) -> None:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)
    """
    configure_logging()
    logger = get_logger(__name__)
    parser = create_parser()

    if args is None:
        args = sys.argv[1:]

    if not args:
        parser.print_help()
        sys.exit(ExitCodes.OK)

    parsed_args = parser.parse_args(args)

    if hasattr(parsed_args, 'func'):
        logger.debug("Running command %s", parsed_args.command_name)
        parsed_args.func(parsed_args)
    else:
        parser.print_help()
        sys.exit(ExitCodes.OK)


if __name__ == '__main__':
    main()
