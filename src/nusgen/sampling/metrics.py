"""
Quality metrics for generated schedules.

Pure functions for computing:
- Structural validity (in range, strictly ascending, duplicate free)
- Discrepancy of the sampled coordinates
- Minimum spacing between sampled points
- Conformance of the sampled counts to a density field

Design principles:
- Pure functions (no side effects)
- Work on any schedule, whichever generator produced it
- Density conformance is a statistical check, not an exact one
"""

from dataclasses import dataclass
import math
from typing import Literal, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.distance import pdist
from scipy.stats import chisquare
from scipy.stats.qmc import discrepancy

from ..grid.index import pack_many, round_half_away, unpack_many


@dataclass
class ScheduleMetrics:
    """Schedule validation results."""

    num_points: int
    grid_points: int
    in_range: bool
    ascending: bool
    unique: bool
    expected_points: Optional[int] = None
    count_pass: Optional[bool] = None
    discrepancy: Optional[float] = None
    min_spacing: Optional[float] = None
    chi_square: Optional[float] = None
    p_value: Optional[float] = None
    conformance_pass: Optional[bool] = None

    @property
    def sampled_fraction(self) -> float:
        return self.num_points / self.grid_points if self.grid_points else 0.0

    @property
    def valid(self) -> bool:
        """Structural checks plus every optional check that was run."""
        checks = [self.in_range, self.ascending, self.unique]
        checks += [c for c in (self.count_pass, self.conformance_pass) if c is not None]
        return all(checks)


def scaled_coordinates(schedule: NDArray[np.integer], sizes: Sequence[int]) -> NDArray[np.float64]:
    """
    Map linear indices onto cell centers in [0,1]^D.

    Example:
        ```python
        scaled_coordinates(np.array([0, 3]), (4,))   # [[0.125], [0.875]]
        ```
    """
    coords = unpack_many(schedule, sizes).astype(np.float64)
    return (coords + 0.5) / np.asarray(sizes, dtype=np.float64)


def compute_discrepancy(
    schedule: NDArray[np.integer],
    sizes: Sequence[int],
    method: Literal["CD", "WD", "MD", "L2-star"] = "CD",
) -> float:
    """
    Compute discrepancy of the sampled coordinates.

    Lower discrepancy indicates a more uniform spread over the grid. A
    non-uniform schedule is expected to score worse than a uniform one of
    the same size; the value is most useful for comparing schedules.

    Args:
        schedule: Linear indices
        sizes: Grid sizes
        method: Discrepancy measure passed to scipy.stats.qmc.discrepancy

    Returns:
        Discrepancy value (lower is more uniform)
    """
    return float(discrepancy(scaled_coordinates(schedule, sizes), method=method))


def compute_min_spacing(schedule: NDArray[np.integer], sizes: Sequence[int]) -> float:
    """
    Minimum Euclidean distance, in grid units, between two sampled points.

    Note:
        O(n^2) complexity - use only for small to medium schedules.
    """
    if len(schedule) < 2:
        return np.inf
    coords = unpack_many(schedule, sizes).astype(np.float64)
    return float(np.min(pdist(coords)))


def _block_ids(coords: NDArray[np.int64], sizes: Sequence[int], blocks: Sequence[int]) -> NDArray[np.int64]:
    block_coords = coords * np.asarray(blocks) // np.asarray(sizes)
    return pack_many(block_coords, blocks)


def compute_density_conformance(
    schedule: NDArray[np.integer],
    sizes: Sequence[int],
    field: NDArray[np.float64],
    blocks_per_axis: int = 4,
) -> Tuple[float, float]:
    """
    Chi-square test of sampled counts against a density field.

    The grid is split into up to ``blocks_per_axis`` blocks per axis. The
    expected count of a block is proportional to its share of the total
    density; blocks with no density mass are left out of the test, and
    any point landing in one fails it outright.

    Args:
        schedule: Linear indices
        sizes: Grid sizes
        field: Unnormalized density per linear index
        blocks_per_axis: Block count per axis

    Returns:
        (chi-square statistic, p-value)
    """
    field = np.asarray(field, dtype=np.float64)
    total = math.prod(sizes)
    if field.shape != (total,):
        raise ValueError(f"Density field must have shape ({total},), got {field.shape}")
    if len(schedule) == 0:
        return 0.0, 1.0

    blocks = [min(blocks_per_axis, size) for size in sizes]
    num_blocks = math.prod(blocks)

    cell_blocks = _block_ids(unpack_many(np.arange(total), sizes), sizes, blocks)
    mass = np.bincount(cell_blocks, weights=field, minlength=num_blocks)

    observed = np.bincount(
        _block_ids(unpack_many(schedule, sizes), sizes, blocks), minlength=num_blocks
    ).astype(np.float64)

    support = mass > 0
    if np.any(observed[~support] > 0):
        return np.inf, 0.0
    if np.count_nonzero(support) < 2:
        return 0.0, 1.0

    expected = mass[support] / mass[support].sum() * observed.sum()
    result = chisquare(observed[support], expected)
    return float(result.statistic), float(result.pvalue)


def validate_schedule(
    schedule: NDArray[np.integer],
    sizes: Sequence[int],
    density: Optional[float] = None,
    field: Optional[NDArray[np.float64]] = None,
    count_tolerance: int = 0,
    alpha: float = 0.001,
    compute_spacing: bool = True,
) -> ScheduleMetrics:
    """
    Comprehensive schedule validation.

    DRY: Compose individual metrics into a validation pipeline.

    Args:
        schedule: Linear indices to validate
        sizes: Grid sizes
        density: Target density; enables the count check
        field: Density field; enables the conformance check
        count_tolerance: Allowed deviation from ``round(density * prod(N))``
        alpha: Significance level of the conformance test
        compute_spacing: Whether to compute the O(n^2) minimum spacing

    Returns:
        ScheduleMetrics dataclass with computed metrics and pass/fail status

    Example:
        ```python
        metrics = validate_schedule(schedule, (64, 64), density=0.25)
        if metrics.valid:
            print("✓ Schedule is valid")
        ```
    """
    schedule = np.asarray(schedule, dtype=np.int64).reshape(-1)
    grid_points = math.prod(sizes)

    in_range = bool(schedule.size == 0 or (schedule.min() >= 0 and schedule.max() < grid_points))
    diffs = np.diff(schedule)
    ascending = bool(np.all(diffs >= 0))
    unique = len(np.unique(schedule)) == len(schedule)

    metrics = ScheduleMetrics(
        num_points=len(schedule),
        grid_points=grid_points,
        in_range=in_range,
        ascending=ascending,
        unique=unique,
    )

    if density is not None:
        metrics.expected_points = round_half_away(density * grid_points)
        metrics.count_pass = abs(len(schedule) - metrics.expected_points) <= count_tolerance

    # geometry metrics need valid indices
    if not in_range or len(schedule) == 0:
        return metrics

    metrics.discrepancy = compute_discrepancy(schedule, sizes)
    if compute_spacing:
        metrics.min_spacing = compute_min_spacing(schedule, sizes)

    if field is not None:
        chi_sq, p_value = compute_density_conformance(schedule, sizes, field)
        metrics.chi_square = chi_sq
        metrics.p_value = p_value
        metrics.conformance_pass = p_value >= alpha

    return metrics


def print_schedule_report(metrics: ScheduleMetrics) -> None:
    """
    Pretty-print schedule metrics.

    Args:
        metrics: ScheduleMetrics dataclass from validate_schedule()
    """
    print("=" * 60)
    print("SCHEDULE QUALITY REPORT")
    print("=" * 60)

    print(
        f"  Points: {metrics.num_points} of {metrics.grid_points} "
        f"({metrics.sampled_fraction:.2%})"
    )

    for label, ok in (
        ("Indices in range", metrics.in_range),
        ("Ascending order", metrics.ascending),
        ("No duplicates", metrics.unique),
    ):
        print(f"{'✓' if ok else '✗'} {label}")

    if metrics.count_pass is not None:
        status = "✓" if metrics.count_pass else "✗"
        print(f"{status} Count: {metrics.num_points} (expected {metrics.expected_points})")

    if metrics.discrepancy is not None:
        print(f"  Discrepancy: {metrics.discrepancy:.6f}")

    if metrics.min_spacing is not None:
        print(f"  Min spacing: {metrics.min_spacing:.3f}")

    if metrics.conformance_pass is not None:
        status = "✓" if metrics.conformance_pass else "✗"
        print(
            f"{status} Density conformance: chi2={metrics.chi_square:.2f}, "
            f"p={metrics.p_value:.4f}"
        )

    print("=" * 60)
    if metrics.valid:
        print("✓ SCHEDULE VALID")
    else:
        print("✗ SCHEDULE INVALID")
    print("=" * 60)
