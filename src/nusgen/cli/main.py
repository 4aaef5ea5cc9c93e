"""
nusgen CLI - Main entry point.

Routes commands to modular command implementations in nusgen.cli package.
This module is a thin router; all logic lives in command classes.
"""

import argparse
import sys
from typing import List, Optional

from .. import __version__
from .generate import GenerateCommand
from .presets import PresetsCommand
from .validate import ValidateCommand


def create_parser() -> argparse.ArgumentParser:
    """
    Create the main argument parser with subcommands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="nusgen",
        description="nusgen - Non-uniform sampling schedule generator",
        epilog="""
Examples:
  # Generate a schedule
  nusgen generate --config configs/gap_2d.yaml

  # Validate a schedule
  nusgen validate --schedule schedule.txt --sizes 64 64 --density 0.25

  # List preset gap laws
  nusgen presets

For more help on a specific command:
  nusgen <command> --help
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"nusgen v{__version__}")

    subparsers = parser.add_subparsers(
        title="commands", description="Available commands", dest="command", required=True
    )

    commands = [
        GenerateCommand(),
        ValidateCommand(),
        PresetsCommand(),
    ]

    for command in commands:
        cmd_parser = subparsers.add_parser(
            command.name,
            help=command.help,
            description=command.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        command.add_arguments(cmd_parser)
        cmd_parser.set_defaults(command_handler=command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Arguments to parse; sys.argv[1:] when None

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        return args.command_handler.execute(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
