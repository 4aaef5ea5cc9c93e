"""
Validate command for nusgen CLI.

Checks a schedule file against its grid and reports quality metrics.
"""

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import List, Optional

from .base import CLICommand


class ValidateCommand(CLICommand):
    """
    Command to validate a schedule file.

    Performs structural checks (range, order, uniqueness), an optional
    count check against a target density and an optional density
    conformance test.
    """

    @property
    def name(self) -> str:
        return "validate"

    @property
    def help(self) -> str:
        return "Validate a schedule file"

    @property
    def description(self) -> str:
        return """
Validate a schedule file written by 'nusgen generate'.

Performs various checks including:
- Every point lies on the grid
- Points are in ascending order without duplicates
- Point count matches a target density (optional)
- Point distribution follows a density (optional)

Examples:
  # Structural checks only
  nusgen validate --schedule schedule.txt --sizes 64 64

  # Count check for a rejection or jitter schedule
  nusgen validate --schedule schedule.txt --sizes 64 64 --density 0.25

  # Count check with calibration tolerance, plus density conformance
  nusgen validate --schedule schedule.txt --sizes 128 --density 0.2 \\
      --tolerance 1 --equation "exp(-2 * x[0] / N[0])"
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add validate command arguments."""
        parser.add_argument(
            "--schedule", type=Path, required=True, metavar="PATH", help="Path to schedule file"
        )

        parser.add_argument(
            "--sizes", type=int, nargs="+", required=True, metavar="N", help="Grid sizes"
        )

        parser.add_argument(
            "--format",
            choices=["coordinates", "indices"],
            default="coordinates",
            help="Schedule format (default: coordinates)",
        )

        parser.add_argument(
            "--density", type=float, metavar="D", help="Target density for the count check"
        )

        parser.add_argument(
            "--tolerance",
            type=int,
            default=0,
            metavar="N",
            help="Allowed deviation from the target count (default: 0)",
        )

        parser.add_argument(
            "--equation",
            type=str,
            metavar="EXPR",
            help="Density f(x, N) for the conformance test",
        )

    def execute(self, args: Namespace) -> int:
        """Execute schedule validation."""
        if not self.validate_file_exists(args.schedule, "Schedule"):
            return 1

        try:
            return self._validate_schedule(
                args.schedule, args.sizes, args.format, args.density, args.tolerance, args.equation
            )
        except Exception as e:
            return self.error(f"Validation failed: {e}")

    def _validate_schedule(
        self,
        schedule_path: Path,
        sizes: List[int],
        fmt: str,
        density: Optional[float],
        tolerance: int,
        equation: Optional[str],
    ) -> int:
        """
        Validate schedule.

        Returns:
            Exit code (0 for success, 1 for validation failure)
        """
        from nusgen.equations import DensityEquation
        from nusgen.sampling.metrics import print_schedule_report, validate_schedule
        from nusgen.schedule import read_schedule

        print("=" * 60)
        print(f"VALIDATING SCHEDULE: {schedule_path.name}")
        print("=" * 60)

        schedule = read_schedule(schedule_path, sizes, fmt)

        field = None
        if equation is not None:
            field = DensityEquation(equation).evaluate_field(sizes)

        metrics = validate_schedule(
            schedule, sizes, density=density, field=field, count_tolerance=tolerance
        )
        print_schedule_report(metrics)

        return 0 if metrics.valid else 1
