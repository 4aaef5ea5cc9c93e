"""
Generate command for nusgen CLI.

Handles schedule generation from a configuration file or inline options.
"""

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Dict, Any, List, Optional
import sys

from .base import ConfigurableCommand


def parse_params(items: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options into a dict."""
    params: Dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got '{item}'")
        params[key] = value
    return params


class GenerateCommand(ConfigurableCommand):
    """
    Command to generate sampling schedules.

    Loads or builds a configuration, applies overrides, and executes the
    generation pipeline.
    """

    @property
    def name(self) -> str:
        return "generate"

    @property
    def help(self) -> str:
        return "Generate a sampling schedule"

    @property
    def description(self) -> str:
        return """
Generate a non-uniform sampling schedule.

The schedule is printed to stdout (one D-dimensional coordinate per line)
unless an output path is configured or given with --output.

Examples:
  # From a configuration file
  nusgen generate --config configs/gap_2d.yaml

  # Inline, gap sequencing with a preset law
  nusgen generate --method gap --sizes 64 64 --density 0.25 \\
      --equation "sinegap(x, d, O, N, L)"

  # Inline, rejection sampling against an exponential density
  nusgen generate --method rejection --sizes 128 --density 0.2 \\
      --equation "exp(-2 * x[0] / N[0])" --output schedule.txt

  # Fill ${density} in a config and validate only
  nusgen generate --config configs/rejection_1d.yaml --param density=0.1 --dry-run
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add generate command arguments."""
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to YAML configuration file",
        )

        parser.add_argument(
            "--param",
            action="append",
            metavar="KEY=VALUE",
            help="Runtime parameter for ${KEY} placeholders in the config (repeatable)",
        )

        # Inline definition, or overrides when --config is given
        schedule_group = parser.add_argument_group("schedule definition")

        schedule_group.add_argument(
            "--method",
            choices=["gap", "rejection", "jitter"],
            help="Generation method",
        )

        schedule_group.add_argument(
            "--sizes",
            type=int,
            nargs="+",
            metavar="N",
            help="Grid sizes, 1 to 3 values",
        )

        schedule_group.add_argument(
            "--density",
            type=float,
            metavar="D",
            help="Target global density in (0, 1)",
        )

        schedule_group.add_argument(
            "--equation",
            type=str,
            metavar="EXPR",
            help="Gap law g(x, d, O, N, L) or density f(x, N)",
        )

        output_group = parser.add_argument_group("output options")

        output_group.add_argument(
            "--output", type=Path, metavar="PATH", help="Write the schedule to PATH"
        )

        output_group.add_argument(
            "--format",
            choices=["coordinates", "indices"],
            help="Schedule format (default: coordinates)",
        )

        exec_group = parser.add_argument_group("execution options")

        exec_group.add_argument(
            "--dry-run",
            action="store_true",
            help="Validate configuration without generating a schedule",
        )

        exec_group.add_argument(
            "--verbose", action="store_true", help="Log progress and print a summary"
        )

    def execute(self, args: Namespace) -> int:
        """Execute schedule generation."""
        try:
            runtime_params = parse_params(args.param)
        except ValueError as e:
            return self.error(str(e))
        if runtime_params and args.config is None:
            return self.error("--param fills ${...} placeholders and needs --config")

        overrides: Dict[str, Any] = {
            "method": args.method,
            "equation": args.equation,
            "grid.sizes": args.sizes,
            "grid.density": args.density,
            "output.path": args.output,
            "output.format": args.format,
        }

        if args.config is not None:
            config = self.load_config(args.config, runtime_params, verbose=args.verbose)
            if config is None:
                return 1
            try:
                config = self.apply_overrides(config, overrides, verbose=args.verbose)
            except ValueError as e:
                return self.error(str(e))
        else:
            config = self._build_inline_config(args)
            if config is None:
                return 1

        self.setup_logging(
            "DEBUG" if args.verbose else config.logging.level, config.logging.format
        )

        if args.verbose:
            self._print_config_summary(config)

        if args.dry_run:
            print("✓ Configuration valid (dry-run mode, no schedule generated)", file=sys.stderr)
            return 0

        try:
            return self._run_generation(config, args.verbose)
        except KeyboardInterrupt:
            print("\n\nGeneration interrupted by user", file=sys.stderr)
            return 130  # Standard SIGINT exit code
        except Exception as e:
            print(f"\nError during generation: {e}", file=sys.stderr)
            if args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _build_inline_config(self, args: Namespace) -> Optional[Any]:
        """Build a ScheduleConfig from inline options."""
        from nusgen.config import ScheduleConfig

        missing = [
            f"--{name}"
            for name in ("method", "sizes", "density", "equation")
            if getattr(args, name) is None
        ]
        if missing:
            self.error(f"Without --config, {', '.join(missing)} must be given")
            return None

        output: Dict[str, Any] = {"path": args.output}
        if args.format is not None:
            output["format"] = args.format

        try:
            return ScheduleConfig(
                method=args.method,
                equation=args.equation,
                grid={"sizes": args.sizes, "density": args.density},
                output=output,
            )
        except ValueError as e:
            self.error(f"Invalid schedule definition:\n{e}")
            return None

    def _print_config_summary(self, config: Any) -> None:
        """Print configuration summary."""
        print("\nConfiguration:", file=sys.stderr)
        print(f"  Method: {config.method}", file=sys.stderr)
        print(f"  Equation: {config.equation}", file=sys.stderr)
        print(f"  Grid: {config.grid.sizes}", file=sys.stderr)
        print(f"  Density: {config.grid.density}", file=sys.stderr)
        print(f"  Target points: {config.grid.target_count}", file=sys.stderr)
        print(f"  Output: {config.output.path or 'stdout'} ({config.output.format})", file=sys.stderr)

    def _run_generation(self, config: Any, verbose: bool) -> int:
        """
        Run the schedule generation pipeline.

        Returns:
            Exit code (0 for success)
        """
        from nusgen.pipeline import ScheduleGenerationPipeline

        pipeline = ScheduleGenerationPipeline(config, show_progress=verbose)
        schedule = pipeline.run()

        if verbose:
            pipeline.print_summary()

        if config.output.path is not None:
            print(f"✓ Wrote {len(schedule)} points to {config.output.path}")

        return 0
