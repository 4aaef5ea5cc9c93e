"""
Schedule generation pipeline orchestrator.

Coordinates all components:
- Equation compilation (gap law or density)
- Generator construction (by method name)
- Generation with timing
- Validation of the resulting schedule
- Output (file or stdout)

Design principles:
- Pipeline pattern: Composable stages
- Dependency injection: The config is the only input
- Fail loudly: An invalid schedule is never written
"""

import logging
import sys
import time
from typing import IO, Any, Dict, Optional, Union

import numpy as np
from numpy.typing import NDArray

from .config import ScheduleConfig
from .equations import DensityEquation, GapEquation
from .errors import ScheduleError
from .sampling import ScheduleGenerator, ScheduleMetrics, get_generator, validate_schedule
from .schedule import write_schedule

logger = logging.getLogger(__name__)


class ScheduleGenerationPipeline:
    """
    End-to-end schedule generation from a validated configuration.

    Orchestrates complete workflow:
    1. Build the equation for the configured method
    2. Build the generator
    3. Generate the schedule
    4. Validate it (range, order, uniqueness, count)
    5. Write it

    Example:
        ```python
        from nusgen.config import load_config

        config = load_config(Path("configs/gap_2d.yaml"))
        pipeline = ScheduleGenerationPipeline(config)
        schedule = pipeline.run()
        ```
    """

    def __init__(self, config: ScheduleConfig, show_progress: bool = False):
        """
        Initialize schedule generation pipeline.

        Args:
            config: Complete nusgen configuration
            show_progress: Show progress bars (stderr) while generating
        """
        self.config = config
        self.show_progress = show_progress

        self.equation = self._create_equation()
        self.generator = self._create_generator()

        self.metrics: Optional[ScheduleMetrics] = None
        self.stats: Dict[str, Any] = {
            "total_time": 0.0,
            "generation_time": 0.0,
            "validation_time": 0.0,
            "output_time": 0.0,
            "points_generated": 0,
        }

    def _create_equation(self) -> Union[GapEquation, DensityEquation]:
        """Compile the configured equation for the configured method."""
        if self.config.method == "gap":
            return GapEquation(self.config.equation, capacity=self.config.sequence.capacity)
        return DensityEquation(self.config.equation)

    def _create_generator(self) -> ScheduleGenerator:
        """Create the schedule generator from config."""
        cls = get_generator(self.config.method)
        grid = self.config.grid
        method = self.config.method

        if method == "gap":
            gap = self.config.gap
            return cls(
                grid.sizes, grid.density, self.equation,
                max_iterations=gap.max_iterations, epsilon=gap.epsilon, gain=gap.gain,
                show_progress=self.show_progress,
            )
        elif method == "rejection":
            return cls(
                grid.sizes, grid.density, self.equation,
                max_draws=self.config.rejection.max_draws,
                capacity=self.config.sequence.capacity,
            )
        else:
            return cls(
                grid.sizes, grid.density, self.equation,
                burn_in=self.config.jitter.burn_in,
                capacity=self.config.sequence.capacity,
                show_progress=self.show_progress,
            )

    @property
    def count_tolerance(self) -> int:
        """Allowed deviation from the target count for the configured method."""
        if self.config.method == "gap":
            return self.generator.tolerance
        return 0

    def generate(self) -> NDArray[np.int64]:
        """Generate and validate a schedule without writing it."""
        gen_start = time.time()
        schedule = self.generator.generate()
        self.stats["generation_time"] = time.time() - gen_start
        self.stats["points_generated"] = len(schedule)

        val_start = time.time()
        self.metrics = validate_schedule(
            schedule,
            self.config.grid.sizes,
            density=self.config.grid.density,
            field=getattr(self.generator, "field", None),
            count_tolerance=self.count_tolerance,
            compute_spacing=False,
        )
        self.stats["validation_time"] = time.time() - val_start

        if not (self.metrics.in_range and self.metrics.ascending and self.metrics.unique):
            raise ScheduleError(f"{type(self.generator).__name__} produced an invalid schedule")
        if not self.metrics.count_pass:
            # gap calibration may stop at its iteration cap
            logger.warning(
                "Schedule has %d points, expected %d (tolerance %d)",
                self.metrics.num_points, self.metrics.expected_points, self.count_tolerance,
            )

        return schedule

    def run(self, destination: Optional[IO[str]] = None) -> NDArray[np.int64]:
        """
        Execute complete pipeline.

        Args:
            destination: Stream to write to when the config has no output
                path; stdout when None

        Returns:
            The generated schedule
        """
        start_time = time.time()

        schedule = self.generate()

        out_start = time.time()
        output = self.config.output
        write_schedule(
            schedule,
            self.config.grid.sizes,
            output.path if output.path is not None else destination,
            fmt=output.format,
        )
        self.stats["output_time"] = time.time() - out_start

        self.stats["total_time"] = time.time() - start_time
        logger.info(
            "Pipeline finished in %.3fs (%d points)",
            self.stats["total_time"], self.stats["points_generated"],
        )
        return schedule

    def print_summary(self, file: Optional[IO[str]] = None) -> None:
        """Print generation statistics (to stderr so stdout stays a schedule)."""
        file = file if file is not None else sys.stderr
        grid = self.config.grid
        print("=" * 60, file=file)
        print("SCHEDULE GENERATION COMPLETE", file=file)
        print("=" * 60, file=file)
        print(f"Method: {self.config.method}", file=file)
        print(f"Equation: {self.config.equation}", file=file)
        print(f"Grid: {' x '.join(str(n) for n in grid.sizes)}", file=file)
        print(
            f"Points: {self.stats['points_generated']} "
            f"(target {grid.target_count}, density {grid.density})",
            file=file,
        )
        if self.config.method == "gap":
            print(f"Calibration attempts: {len(self.generator.history)}", file=file)
        if self.metrics is not None and self.metrics.discrepancy is not None:
            print(f"Discrepancy: {self.metrics.discrepancy:.6f}", file=file)
        if self.metrics is not None and self.metrics.p_value is not None:
            print(f"Density conformance p-value: {self.metrics.p_value:.4f}", file=file)
        print(f"\nTotal time: {self.stats['total_time']:.3f}s", file=file)
        print(f"  Generation: {self.stats['generation_time']:.3f}s", file=file)
        print(f"  Validation: {self.stats['validation_time']:.3f}s", file=file)
        print("=" * 60, file=file)
