"""
Equation evaluators consumed by the schedule generators.

Two narrow contracts:

- GapEquation.next_term(x, axis, origin, sizes, scale) -> next term
- DensityEquation(coord, sizes) -> non-negative density

Each wraps either an expression string (compiled by the sandboxed
interpreter) or a plain Python callable with the same signature. The
generators receive an equation object explicitly, so several equations can
be active at once and tests can pass stubs.

Arguments reach the user function as floats (tuples of floats for O, N and
density coordinates); the axis ``d`` stays an integer so it can index ``N``.
"""

import logging
import math
from typing import Callable, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from ..errors import EquationDomainError, EquationEvaluationError
from ..grid.index import unpack
from ..qrng import DEFAULT_CAPACITY, LowDiscrepancySequence
from .expression import Expression

logger = logging.getLogger(__name__)

GapFunction = Callable[[float, int, Tuple[float, ...], Tuple[float, ...], float], float]
DensityFunction = Callable[[Tuple[float, ...], Tuple[float, ...]], float]

GAP_NAMES = ("x", "d", "O", "N", "L")
DENSITY_NAMES = ("x", "N")

MAX_POISSON_RATE = 700.0


def _as_floats(values: Sequence[int]) -> Tuple[float, ...]:
    return tuple(float(v) for v in values)


def _describe(func: Callable) -> str:
    return getattr(func, "__name__", repr(func))


class GapEquation:
    """
    Recursive gap law ``x_next = x + g(x, d, O, N, L) + 1``.

    The ``+ 1`` keeps consecutive terms at least one grid point apart for any
    non-negative law. When the shifted value ``r = g + 1`` is negative the
    increment is instead a quasirandom Poisson variate with rate ``-(r + 1)``,
    drawn from the equation's own one-stream low-discrepancy sequence.

    Example:
        ```python
        eq = GapEquation("sinegap(x, d, O, N, L)")
        x = eq.next_term(0.0, 0, (0,), (64,), 1.0)
        ```
    """

    def __init__(
        self,
        equation: Union[str, GapFunction],
        capacity: int = DEFAULT_CAPACITY,
    ):
        """
        Args:
            equation: Expression over ``x, d, O, N, L`` or a callable
                ``g(x, d, O, N, L) -> float``
            capacity: Digit capacity of the Poisson sequence
        """
        if isinstance(equation, str):
            expr = Expression(equation, GAP_NAMES)
            self.source = equation
            self._func: GapFunction = lambda x, d, O, N, L: expr.evaluate(
                {"x": x, "d": d, "O": O, "N": N, "L": L}
            )
        elif callable(equation):
            self.source = _describe(equation)
            self._func = equation
        else:
            raise TypeError(
                f"Gap equation must be a string or callable, got {type(equation).__name__}"
            )

        self.capacity = capacity
        self.reset()

    def __repr__(self) -> str:
        return f"GapEquation({self.source!r})"

    def reset(self) -> None:
        """Restart the Poisson sequence so generation is reproducible."""
        self._rng = LowDiscrepancySequence(1, capacity=self.capacity)
        self._rng.advance()

    def poisson(self, rate: float) -> float:
        """
        Quasirandom Poisson-distributed gap (Knuth's product method).

        Returns:
            1 + a Poisson variate with the given rate, so always >= 1

        Raises:
            EquationDomainError: If the rate is too large for the product
                method (exp(-rate) would underflow)
        """
        if rate > MAX_POISSON_RATE:
            raise EquationDomainError(
                f"Poisson rate {rate:.6g} exceeds {MAX_POISSON_RATE}"
            )
        limit = math.exp(-rate)
        k = 0.0
        p = 1.0
        while True:
            p *= self._rng.advance()[0]
            k += 1.0
            if p < limit:
                return k

    def next_term(
        self,
        x: float,
        axis: int,
        origin: Sequence[int],
        sizes: Sequence[int],
        scale: float,
    ) -> float:
        """
        Compute the term following ``x`` on the line through ``origin``.

        Args:
            x: Current term (0.0 at the start of a line)
            axis: Zero-based axis the line runs along
            origin: Coordinate of the start of the line
            sizes: Grid sizes
            scale: Scale factor L

        Returns:
            The next term

        Raises:
            EquationEvaluationError: If the law raises or returns a
                non-numeric value
            EquationDomainError: If the angular argument ``(x + sum(O)) /
                sum(N)`` exceeds 1 or the law returns a non-finite value.
                For the angular check the next term is still computed and
                stored on the exception.
        """
        O = _as_floats(origin)
        N = _as_floats(sizes)
        theta = (x + sum(O)) / sum(N)

        try:
            raw = float(self._func(float(x), int(axis), O, N, float(scale)))
        except Exception as e:
            raise EquationEvaluationError(
                "g", {"x": x, "d": axis, "O": list(O), "N": list(N), "L": scale}, e
            ) from e

        if not math.isfinite(raw):
            raise EquationDomainError(
                f"Gap equation returned {raw} at x={x:.3f}, d={axis}, L={scale:.3f}"
            )

        value = raw + 1.0
        if value >= 0.0:
            term = x + value
        else:
            term = x + self.poisson(-(value + 1.0))

        if theta > 1.0:
            raise EquationDomainError(
                f"Angular argument {theta:.3f} > 1 at x={x:.3f}, d={axis}, L={scale:.3f}",
                term=term,
            )

        return term


class DensityEquation:
    """
    Sampling density ``f(x, N)`` over grid coordinates.

    Example:
        ```python
        eq = DensityEquation("exp(-x[0] / N[0])")
        field = eq.evaluate_field((64,))
        ```
    """

    def __init__(self, equation: Union[str, DensityFunction]):
        """
        Args:
            equation: Expression over ``x, N`` (both tuples of floats) or a
                callable ``f(x, N) -> float``
        """
        if isinstance(equation, str):
            expr = Expression(equation, DENSITY_NAMES)
            self.source = equation
            self._func: DensityFunction = lambda x, N: expr.evaluate({"x": x, "N": N})
        elif callable(equation):
            self.source = _describe(equation)
            self._func = equation
        else:
            raise TypeError(
                f"Density equation must be a string or callable, got {type(equation).__name__}"
            )

    def __repr__(self) -> str:
        return f"DensityEquation({self.source!r})"

    def __call__(self, coord: Sequence[int], sizes: Sequence[int]) -> float:
        """
        Evaluate the density at one coordinate.

        Raises:
            EquationEvaluationError: If the expression raises
            EquationDomainError: If the value is negative or not finite
        """
        x = _as_floats(coord)
        N = _as_floats(sizes)
        try:
            value = float(self._func(x, N))
        except Exception as e:
            raise EquationEvaluationError("f", {"x": list(x), "N": list(N)}, e) from e

        if not math.isfinite(value) or value < 0.0:
            raise EquationDomainError(
                f"Density must be finite and non-negative, got f({list(x)}, {list(N)}) = {value}"
            )
        return value

    def evaluate_field(self, sizes: Sequence[int]) -> NDArray[np.float64]:
        """
        Evaluate the density at every cell of the grid.

        Returns:
            Array of length prod(sizes), indexed by linear index
        """
        total = math.prod(sizes)
        field = np.empty(total, dtype=np.float64)
        for i in range(total):
            field[i] = self(unpack(i, sizes), sizes)
        logger.debug(
            "Evaluated density %s over %d cells (sum=%.6g, max=%.6g)",
            self.source, total, field.sum(), field.max(),
        )
        return field
