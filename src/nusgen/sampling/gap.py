"""
Deterministic gap sequencing with density calibration.

The grid is decomposed into 1-D lines. Along every line a recursive gap law
(GapEquation) walks from the line origin outwards, and every term that
lands on the grid is recorded. The law is parameterized by a scale ``L``;
an outer proportional-feedback loop rescales ``L`` until the number of
recorded points matches the target density within tolerance.

Calibration:

    L = L0 * w,  L0 = 1/d - 1,  w starts at 1
    error = count - n
    w <- w * (1 + gain * error / n)

stopping once ``|error| <= max(1, round(epsilon * n))`` or after
``max_iterations`` attempts. Hitting the cap is not a failure: the
well-behaved attempt closest to the target is returned.

An attempt whose law leaves its valid domain is "ill-behaved". It counts as
if every grid cell had been sampled, which pushes the scale down hard.
"""

from dataclasses import dataclass
import logging
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from tqdm import tqdm

from ..equations.evaluator import GapEquation, GapFunction
from ..errors import CalibrationError, EquationDomainError
from ..grid.collection import UniqueIndexCollection
from ..grid.index import GridIndex, pack, round_half_away, stride
from .base import ScheduleGenerator, register

logger = logging.getLogger(__name__)


class GridLine(NamedTuple):
    """A 1-D line through the grid: free ``axis`` starting at ``origin``."""

    axis: int
    origin: Tuple[int, ...]


@dataclass
class CalibrationStep:
    """One attempt of the calibration loop."""

    iteration: int
    scale: float
    count: int
    error: int
    ill_behaved: bool


def iter_lines(sizes: Sequence[int]) -> Iterator[GridLine]:
    """
    Enumerate every 1-D line of the grid exactly once.

    Starting from the all-free origin, each level fixes one more axis at
    every offset (offset-major, then axis order) until a single free axis
    remains. An explicit stack replaces recursion, and lines reached
    through different fixing orders are only yielded the first time.

    Example:
        >>> list(iter_lines((2, 2)))
        [GridLine(axis=1, origin=(0, 0)), GridLine(axis=0, origin=(0, 0)),
         GridLine(axis=1, origin=(1, 0)), GridLine(axis=0, origin=(0, 1))]
    """
    ndim = len(sizes)
    seen = set()
    stack: List[Tuple[Tuple[int, ...], Tuple[int, ...]]] = [
        (tuple([0] * ndim), tuple(range(ndim)))
    ]

    while stack:
        origin, free = stack.pop()

        if len(free) == 1:
            line = GridLine(free[0], origin)
            if line not in seen:
                seen.add(line)
                yield line
            continue

        children = []
        for pos in range(max(sizes[a] for a in free)):
            for axis in free:
                if pos >= sizes[axis]:
                    continue
                child = list(origin)
                child[axis] = pos
                children.append((tuple(child), tuple(a for a in free if a != axis)))

        # reversed so the first child is popped first
        stack.extend(reversed(children))


@register("gap", "seq")
class GapSequenceGenerator(ScheduleGenerator):
    """
    Gap-law schedule generator with scale calibration.

    Example:
        ```python
        gen = GapSequenceGenerator((64, 64), 0.25, GapEquation("sinegap(x, d, O, N, L)"))
        schedule = gen.generate()
        ```
    """

    def __init__(
        self,
        sizes: Union[GridIndex, Sequence[int]],
        density: float,
        equation: Union[GapEquation, str, GapFunction],
        max_iterations: int = 100,
        epsilon: float = 0.005,
        gain: float = 0.5,
        show_progress: bool = False,
    ):
        """
        Args:
            sizes: Grid sizes
            density: Target global density in (0, 1)
            equation: Gap law (GapEquation, expression or callable)
            max_iterations: Calibration iteration cap
            epsilon: Relative count tolerance
            gain: Proportional feedback gain
            show_progress: Show a progress bar over calibration attempts
        """
        super().__init__(sizes, density)

        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

        self.equation = equation if isinstance(equation, GapEquation) else GapEquation(equation)
        self.max_iterations = max_iterations
        self.epsilon = epsilon
        self.gain = gain
        self.show_progress = show_progress
        self.tolerance = max(1, round_half_away(epsilon * self.target_count))
        self.initial_scale = 1.0 / self.density - 1.0
        self.history: List[CalibrationStep] = []

    # ------------------------------------------------------------------
    # single attempt
    # ------------------------------------------------------------------

    def _walk_line(self, line: GridLine, scale: float, collection: UniqueIndexCollection) -> None:
        """
        Record every term of the gap sequence along one line.

        Raises:
            EquationDomainError: If the law leaves its valid domain or stops
                advancing
        """
        sizes = self.sizes.tolist()
        base = pack(line.origin, sizes)
        step = stride(sizes, line.axis)
        end = sizes[line.axis] - line.origin[line.axis]

        x = 0.0
        while True:
            term = self.equation.next_term(x, line.axis, line.origin, sizes, scale)
            if term <= x:
                raise EquationDomainError(
                    f"Gap sequence stalled at x={x:.3f} on axis {line.axis}", term=term
                )
            x = term

            if round_half_away(x) > end:
                return

            pos = round_half_away(x - 1.0)
            if pos >= 0:
                collection.insert(base + step * pos)

    def attempt(self, scale: float) -> Tuple[Optional[UniqueIndexCollection], int]:
        """
        Run one full pass over every grid line at a fixed scale.

        Returns:
            (collection, count): the collection is None and the count is the
            grid size when the attempt was ill-behaved
        """
        collection = UniqueIndexCollection()
        try:
            for line in iter_lines(self.sizes.tolist()):
                self._walk_line(line, scale, collection)
        except EquationDomainError as e:
            logger.debug("Ill-behaved attempt at L=%.6g: %s", scale, e)
            return None, self.total
        return collection, len(collection)

    # ------------------------------------------------------------------
    # calibration
    # ------------------------------------------------------------------

    def _generate(self) -> NDArray[np.int64]:
        self.equation.reset()
        self.history = []

        n = self.target_count
        w = 1.0
        best: Optional[UniqueIndexCollection] = None
        best_error: Optional[int] = None

        iterator = range(self.max_iterations)
        if self.show_progress:
            iterator = tqdm(iterator, desc="Calibrating", leave=False)

        for iteration in iterator:
            scale = self.initial_scale * w
            collection, count = self.attempt(scale)
            error = count - n

            self.history.append(
                CalibrationStep(iteration, scale, count, error, collection is None)
            )
            logger.debug(
                "Calibration %d: L=%.6g count=%d error=%+d%s",
                iteration, scale, count, error, " (ill-behaved)" if collection is None else "",
            )

            if collection is not None and (best_error is None or abs(error) < abs(best_error)):
                best, best_error = collection, error

            if collection is not None and abs(error) <= self.tolerance:
                break

            w *= 1.0 + self.gain * error / n
        else:
            logger.warning(
                "Gap calibration hit %d iterations; closest count error is %s (tolerance %d)",
                self.max_iterations, best_error, self.tolerance,
            )

        if best is None:
            raise CalibrationError(
                f"No well-behaved gap sequence found in {len(self.history)} attempts "
                f"for equation {self.equation.source!r}"
            )

        return best.flatten()
