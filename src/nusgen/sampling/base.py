"""
Abstract base class for schedule generators.

Provides the interface that enables:
- Swappable schedule constructions (gap sequencing, rejection, jitter)
- Consistent grid/density validation across generators
- Lookup by name for configuration-driven construction

Design principles:
- Abstract base class defines the contract
- Equations are injected, never global
- Every generator returns an ascending, duplicate-free int64 array
"""

from abc import ABC, abstractmethod
import logging
import time
from typing import Any, Callable, Dict, Sequence, Type, Union

import numpy as np
from numpy.typing import NDArray

from ..errors import GeometryError
from ..grid.index import GridIndex, round_half_away, unpack_many

logger = logging.getLogger(__name__)

MIN_DIMS = 1
MAX_DIMS = 3


# =============================================================================
# Registry
# =============================================================================

_GENERATOR_REGISTRY: Dict[str, Type["ScheduleGenerator"]] = {}


def register(*aliases: str) -> Callable[[Type["ScheduleGenerator"]], Type["ScheduleGenerator"]]:
    """
    Class decorator registering a generator under one or more names.

    Example:
        >>> @register("gap", "seq")
        ... class GapSequenceGenerator(ScheduleGenerator): ...
    """

    def _wrap(cls: Type["ScheduleGenerator"]) -> Type["ScheduleGenerator"]:
        for name in aliases:
            if name in _GENERATOR_REGISTRY:
                raise KeyError(f"Generator alias '{name}' already exists")
            _GENERATOR_REGISTRY[name] = cls
        cls.aliases = aliases
        return cls

    return _wrap


def get_generator(name: str) -> Type["ScheduleGenerator"]:
    """Generator class registered under ``name``."""
    if name not in _GENERATOR_REGISTRY:
        raise KeyError(
            f"Generator '{name}' not found. Available: {list(_GENERATOR_REGISTRY)}"
        )
    return _GENERATOR_REGISTRY[name]


def available_generators() -> Dict[str, Type["ScheduleGenerator"]]:
    return dict(_GENERATOR_REGISTRY)


# =============================================================================
# Base class
# =============================================================================


class ScheduleGenerator(ABC):
    """
    Abstract base class for schedule generators.

    All generators must implement ``_generate() -> ascending int64 array``.
    The public ``generate()`` wraps it with timing statistics and output
    validation.

    Example:
        ```python
        class AllCells(ScheduleGenerator):
            def _generate(self) -> NDArray[np.int64]:
                return np.arange(self.total, dtype=np.int64)
        ```
    """

    aliases: Sequence[str] = ()

    def __init__(self, sizes: Union[GridIndex, Sequence[int]], density: float):
        """
        Initialize base generator.

        Args:
            sizes: Grid sizes, 1 to 3 positive integers
            density: Target global sampling density in (0, 1)

        Raises:
            GeometryError: If the grid has an unsupported shape
            ValueError: If the density is outside (0, 1) or the target
                count rounds to zero
        """
        sizes = GridIndex(sizes)
        if not MIN_DIMS <= len(sizes) <= MAX_DIMS:
            raise GeometryError(
                f"Grid must have {MIN_DIMS} to {MAX_DIMS} axes, got {len(sizes)}"
            )
        for axis, size in enumerate(sizes):
            if size < 1:
                raise GeometryError(f"Invalid N{axis + 1} grid size: {size}")

        if not 0.0 < density < 1.0:
            raise ValueError(f"Sampling density must lie in (0,1), got {density}")

        self.sizes = sizes
        self.density = float(density)
        self.total = sizes.prod()
        self.target_count = round_half_away(self.density * self.total)
        if self.target_count < 1:
            raise ValueError(
                f"Density {density} on a {self.total}-cell grid targets zero samples"
            )

        self.stats: Dict[str, Any] = {
            "generations": 0,
            "total_time_seconds": 0.0,
            "last_generation_time": 0.0,
        }

    @property
    def ndim(self) -> int:
        return len(self.sizes)

    @abstractmethod
    def _generate(self) -> NDArray[np.int64]:
        """Build the schedule. Must return ascending unique linear indices."""
        pass

    def generate(self) -> NDArray[np.int64]:
        """
        Generate a schedule.

        Returns:
            Ascending, duplicate-free array of linear indices
        """
        start_time = time.perf_counter()
        schedule = self._generate()
        elapsed = time.perf_counter() - start_time

        self._validate_schedule(schedule)

        self.stats["generations"] += 1
        self.stats["total_time_seconds"] += elapsed
        self.stats["last_generation_time"] = elapsed

        logger.info(
            "%s produced %d of %d targeted points on grid %s in %.3fs",
            type(self).__name__, len(schedule), self.target_count,
            self.sizes.tolist(), elapsed,
        )
        return schedule

    def coordinates(self, schedule: NDArray[np.int64]) -> NDArray[np.int64]:
        """Unpack linear indices into an (n, D) coordinate array."""
        return unpack_many(schedule, self.sizes.tolist())

    def _validate_schedule(self, schedule: NDArray[np.int64]) -> None:
        """
        Shared validation for generated schedules (DRY).

        Raises:
            ValueError: If the schedule is not a 1-D ascending array of
                in-range indices
        """
        if schedule.ndim != 1:
            raise ValueError(f"Schedule must be a 1-D array, got shape {schedule.shape}")
        if schedule.size == 0:
            return
        if schedule[0] < 0 or schedule[-1] >= self.total:
            raise ValueError(
                f"Schedule indices must lie in [0, {self.total}), "
                f"got range [{schedule[0]}, {schedule[-1]}]"
            )
        if np.any(np.diff(schedule) <= 0):
            raise ValueError("Schedule indices must be strictly ascending")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(sizes={self.sizes.tolist()}, "
            f"density={self.density}, target_count={self.target_count})"
        )
