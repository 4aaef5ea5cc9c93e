"""
Presets command for nusgen CLI.

Lists the preset gap laws available inside equations.
"""

from argparse import ArgumentParser, Namespace

from .base import CLICommand


class PresetsCommand(CLICommand):
    """Command to list registered preset gap laws."""

    @property
    def name(self) -> str:
        return "presets"

    @property
    def help(self) -> str:
        return "List preset gap laws"

    @property
    def description(self) -> str:
        return """
List the preset gap laws that can be called by name inside a gap equation.

Every preset takes the gap law arguments (x, d, O, N, L), except poisrnd,
which turns a rate into a request for a quasirandom Poisson gap.

Examples:
  nusgen presets
  nusgen generate --method gap --sizes 64 64 --density 0.25 \\
      --equation "poissongap(x, d, O, N, L)"
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add presets command arguments."""
        parser.add_argument(
            "--verbose", action="store_true", help="Also print the defining expressions"
        )

    def execute(self, args: Namespace) -> int:
        """List presets."""
        from nusgen.equations import list_presets

        print("=" * 60)
        print("PRESET GAP LAWS")
        print("=" * 60)

        for preset in list_presets():
            print(f"{preset.name:<12} {preset.description}")
            if args.verbose:
                print(f"{'':<12} = {preset.expression}")

        print("=" * 60)
        return 0
