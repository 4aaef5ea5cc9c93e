"""
Quasirandom jittered-region sampling.

The grid is partitioned greedily into ``n`` regions of roughly equal
probability mass ``1/n`` under the normalized density, and one
representative is drawn from each region:

1. Seed a region at the highest-density cell still available.
2. Grow it by stepping from the most recently added cell to its densest
   available axis-neighbor, for as long as that brings the region mass
   strictly closer to ``1/n``. Growth also stops at a dead end, where the
   last cell has no available neighbor left.
3. Pick a representative by local rejection sampling inside the region,
   using a two-stream low-discrepancy sequence.
4. Mark every cell of the region unavailable.

Because regions never overlap, the ``n`` representatives are distinct and
the schedule always holds exactly ``n`` points.
"""

import logging
from typing import List, Optional, Sequence, Set, Union

import numpy as np
from numpy.typing import NDArray
from tqdm import tqdm

from ..equations.evaluator import DensityEquation, DensityFunction
from ..errors import SamplerExhaustedError
from ..grid.collection import UniqueIndexCollection
from ..grid.index import GridIndex, round_half_away, stride, unpack_many
from ..qrng import DEFAULT_CAPACITY, LowDiscrepancySequence
from .base import ScheduleGenerator, register

logger = logging.getLogger(__name__)


@register("jitter", "jit")
class JitteredSampler(ScheduleGenerator):
    """
    Jittered sampler over greedily grown equal-mass regions.

    Attributes:
        regions: Cell indices of every region grown by the last call to
            ``generate()``, in growth order
        field: Density field evaluated by the last call to ``generate()``

    Example:
        ```python
        sampler = JitteredSampler((32, 32), 0.25, "1 + x[0] / N[0]")
        schedule = sampler.generate()
        assert len(sampler.regions) == len(schedule)
        ```
    """

    def __init__(
        self,
        sizes: Union[GridIndex, Sequence[int]],
        density: float,
        equation: Union[DensityEquation, str, DensityFunction],
        burn_in: int = 100,
        capacity: int = DEFAULT_CAPACITY,
        show_progress: bool = False,
    ):
        """
        Args:
            sizes: Grid sizes
            density: Target global density in (0, 1)
            equation: Density law (DensityEquation, expression or callable)
            burn_in: Values of the low-discrepancy sequence skipped up front
            capacity: Digit capacity of the low-discrepancy sequence
            show_progress: Show a progress bar over grown regions
        """
        super().__init__(sizes, density)

        if burn_in < 0:
            raise ValueError(f"burn_in must be >= 0, got {burn_in}")

        self.equation = (
            equation if isinstance(equation, DensityEquation) else DensityEquation(equation)
        )
        self.burn_in = burn_in
        self.capacity = capacity
        self.show_progress = show_progress
        self.regions: List[NDArray[np.int64]] = []
        self.field: Optional[NDArray[np.float64]] = None

        self._coords: Optional[NDArray[np.int64]] = None

    def _neighbors(self, index: int) -> List[int]:
        """Axis-neighbors of a cell, lower then upper, axis by axis."""
        sizes = self.sizes.tolist()
        coord = self._coords[index]
        out = []
        for axis, size in enumerate(sizes):
            step = stride(sizes, axis)
            if coord[axis] > 0:
                out.append(index - step)
            if coord[axis] < size - 1:
                out.append(index + step)
        return out

    def _grow_region(
        self,
        seed: int,
        pdf: NDArray[np.float64],
        available: NDArray[np.bool_],
        target: float,
    ) -> List[int]:
        region = [seed]
        members: Set[int] = {seed}
        mass = float(pdf[seed])
        coord_sum = self._coords[seed].astype(np.float64)

        while True:
            # only the most recently added cell is searched
            candidates = [
                nb for nb in self._neighbors(region[-1])
                if available[nb] and nb not in members
            ]
            if not candidates:
                break

            centroid = coord_sum / len(region)
            best = None
            best_key = None
            for cell in candidates:
                dist = float(np.sum((self._coords[cell] - centroid) ** 2))
                # densest first, then closest to the centroid, then first found
                key = (-pdf[cell], dist)
                if best_key is None or key < best_key:
                    best, best_key = cell, key

            p = float(pdf[best])
            if not abs(mass + p - target) < abs(mass - target):
                break

            region.append(best)
            members.add(best)
            mass += p
            coord_sum += self._coords[best]

        return region

    def _pick(
        self,
        region: List[int],
        pdf: NDArray[np.float64],
        rng: LowDiscrepancySequence,
    ) -> int:
        """Local rejection sampling of one representative cell."""
        peak = max(pdf[cell] for cell in region)
        while True:
            v = rng.advance()
            k = round_half_away(v[0] * (len(region) - 1))
            if v[1] * peak <= pdf[region[k]]:
                return region[k]

    def _generate(self) -> NDArray[np.int64]:
        sizes = self.sizes.tolist()
        field = self.equation.evaluate_field(sizes)
        self.field = field

        mass = field.sum()
        if mass <= 0.0:
            raise SamplerExhaustedError(
                f"Density {self.equation.source!r} is zero everywhere on grid {sizes}"
            )
        pdf = field / mass

        self._coords = unpack_many(np.arange(self.total, dtype=np.int64), sizes)
        available = np.ones(self.total, dtype=bool)
        target = 1.0 / self.target_count

        rng = LowDiscrepancySequence(2, capacity=self.capacity)
        rng.discard(self.burn_in)

        self.regions = []
        picked = UniqueIndexCollection()

        iterator = range(self.target_count)
        if self.show_progress:
            iterator = tqdm(iterator, desc="Growing regions", leave=False)

        for i in iterator:
            if not available.any():
                raise SamplerExhaustedError(
                    f"No available cells left for region {i + 1} of {self.target_count}"
                )

            seed = int(np.argmax(np.where(available, pdf, -np.inf)))
            region = self._grow_region(seed, pdf, available, target)
            picked.insert(self._pick(region, pdf, rng))

            available[region] = False
            self.regions.append(np.asarray(region, dtype=np.int64))

            logger.debug(
                "Region %d: seed=%d cells=%d mass=%.4g",
                i, seed, len(region), float(pdf[region].sum()),
            )

        return picked.flatten()
