"""
Quasirandom rejection sampling against a density field.

The density is evaluated once over the whole grid and normalized by its
maximum. A (D+1)-stream low-discrepancy sequence then proposes points:
the first D streams give the candidate coordinate, the last one the
acceptance draw. Candidates are accepted while their normalized density is
at least the acceptance draw, until ``n`` distinct cells have been taken.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from ..equations.evaluator import DensityEquation, DensityFunction
from ..errors import SamplerExhaustedError
from ..grid.collection import UniqueIndexCollection
from ..grid.index import GridIndex, pack, round_half_away
from ..qrng import DEFAULT_CAPACITY, LowDiscrepancySequence
from .base import ScheduleGenerator, register

logger = logging.getLogger(__name__)

# draws allowed per grid cell when no explicit budget is given
DEFAULT_DRAWS_PER_CELL = 1000


@register("rejection", "rej")
class RejectionSampler(ScheduleGenerator):
    """
    Rejection sampler driven by a low-discrepancy sequence.

    Attributes:
        draws: Proposals made by the last call to ``generate()``
        field: Density field evaluated by the last call to ``generate()``

    Example:
        ```python
        sampler = RejectionSampler((64, 64), 0.2, "exp(-(x[0] + x[1]) / 32)")
        schedule = sampler.generate()
        ```
    """

    def __init__(
        self,
        sizes: Union[GridIndex, Sequence[int]],
        density: float,
        equation: Union[DensityEquation, str, DensityFunction],
        max_draws: Optional[int] = None,
        capacity: int = DEFAULT_CAPACITY,
    ):
        """
        Args:
            sizes: Grid sizes
            density: Target global density in (0, 1)
            equation: Density law (DensityEquation, expression or callable)
            max_draws: Proposal budget; defaults to 1000 per grid cell
            capacity: Digit capacity of the low-discrepancy sequence
        """
        super().__init__(sizes, density)

        if max_draws is not None and max_draws < 1:
            raise ValueError(f"max_draws must be >= 1, got {max_draws}")

        self.equation = (
            equation if isinstance(equation, DensityEquation) else DensityEquation(equation)
        )
        self.max_draws = max_draws if max_draws is not None else DEFAULT_DRAWS_PER_CELL * self.total
        self.capacity = capacity
        self.draws = 0
        self.field: Optional[NDArray[np.float64]] = None

    def _normalized_field(self) -> NDArray[np.float64]:
        field = self.equation.evaluate_field(self.sizes.tolist())
        self.field = field

        peak = field.max()
        if peak <= 0.0:
            raise SamplerExhaustedError(
                f"Density {self.equation.source!r} is zero everywhere on grid {self.sizes.tolist()}"
            )

        positive = int(np.count_nonzero(field > 0.0))
        if positive < self.target_count:
            raise SamplerExhaustedError(
                f"Only {positive} cells have positive density; {self.target_count} requested"
            )

        return field / peak

    def _generate(self) -> NDArray[np.int64]:
        field = self._normalized_field()
        sizes = self.sizes.tolist()
        span = np.array([size - 1 for size in sizes], dtype=np.float64)

        rng = LowDiscrepancySequence(self.ndim + 1, capacity=self.capacity)
        accepted = UniqueIndexCollection()
        self.draws = 0

        while len(accepted) < self.target_count:
            if self.draws >= self.max_draws:
                raise SamplerExhaustedError(
                    f"Accepted {len(accepted)} of {self.target_count} points "
                    f"after {self.draws} draws"
                )

            v = rng.advance()
            self.draws += 1

            coord = [round_half_away(c) for c in v[:-1] * span]
            index = pack(coord, sizes)
            if v[-1] <= field[index]:
                accepted.insert(index)

        logger.debug(
            "Rejection sampling accepted %d points in %d draws", len(accepted), self.draws
        )
        return accepted.flatten()
