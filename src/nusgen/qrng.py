"""
Multi-stream low-discrepancy (Halton-style) number generator.

Each stream is a Van der Corput sequence in its own base. Stream 0 uses
base 2 and every further stream uses the next integer that is coprime with
all earlier bases, so the bases are the consecutive primes 2, 3, 5, 7, ...

The state of a stream is a fixed-capacity array of base-b digits holding
the current term. ``advance()`` first reads the value

    v = sum(digit[k] * base ** -(k + 1))

and then increments the digit array with carry. Digit 0 of every stream is
seeded to 1 at construction, so the very first value is already nonzero in
every stream (1/2, 1/3, 1/5, ...).

The sequence is fully deterministic: two generators with the same number of
streams produce identical values forever. That makes it the sole source of
"randomness" in nusgen, and schedules are exactly reproducible.

Unlike scipy.stats.qmc.Halton this generator is never scrambled and never
skips the first point, which keeps schedules bit-compatible across runs and
platforms.
"""

import math
from typing import Iterator, List

import numpy as np
from numpy.typing import NDArray


DEFAULT_CAPACITY = 1000


def coprime_bases(n: int) -> List[int]:
    """
    First ``n`` pairwise coprime bases, starting at 2.

    Example:
        >>> coprime_bases(5)
        [2, 3, 5, 7, 11]
    """
    if n < 1:
        raise ValueError(f"Number of bases must be >= 1, got {n}")
    bases = [2]
    candidate = 2
    while len(bases) < n:
        candidate += 1
        if all(math.gcd(candidate, b) == 1 for b in bases):
            bases.append(candidate)
    return bases


class LowDiscrepancySequence:
    """
    Deterministic n-stream generator of points in [0, 1)^n.

    Example:
        ```python
        seq = LowDiscrepancySequence(2)
        seq.advance()   # array([0.5       , 0.33333333])
        seq.advance()   # array([0.25      , 0.66666667])
        ```
    """

    def __init__(self, n_streams: int, capacity: int = DEFAULT_CAPACITY):
        """
        Args:
            n_streams: Number of independent streams (>= 1)
            capacity: Digits kept per stream; bounds the representable
                precision and the period of the sequence
        """
        if n_streams < 1:
            raise ValueError(f"n_streams must be >= 1, got {n_streams}")
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.n_streams = n_streams
        self.capacity = capacity
        self.bases = coprime_bases(n_streams)
        self.values: NDArray[np.float64] = np.zeros(n_streams)
        self.count = 0
        self._reset_digits()

    def _reset_digits(self) -> None:
        self._digits = [[0] * self.capacity for _ in range(self.n_streams)]
        for digits in self._digits:
            digits[0] = 1
        # number of leading digit positions that may be nonzero
        self._used = [1] * self.n_streams

    def reset(self) -> None:
        """Return to the freshly constructed state."""
        self.values = np.zeros(self.n_streams)
        self.count = 0
        self._reset_digits()

    def advance(self) -> NDArray[np.float64]:
        """
        Produce the next point of the sequence.

        Returns:
            Array of ``n_streams`` values in [0, 1); also stored in ``values``
        """
        values = np.zeros(self.n_streams)
        for i, (base, digits) in enumerate(zip(self.bases, self._digits)):
            x = 0.0
            kpow = 1.0 / base
            for k in range(self._used[i]):
                x += digits[k] * kpow
                kpow /= base
            values[i] = x

        for i, (base, digits) in enumerate(zip(self.bases, self._digits)):
            for k in range(self.capacity):
                digits[k] += 1
                if digits[k] < base:
                    if k + 1 > self._used[i]:
                        self._used[i] = k + 1
                    break
                digits[k] = 0
            else:
                # carried past the last digit: the state wrapped to all zeros
                self._used[i] = 1

        self.values = values
        self.count += 1
        return values

    def discard(self, count: int) -> None:
        """Advance ``count`` times, throwing the values away (burn-in)."""
        for _ in range(count):
            self.advance()

    def draw(self, count: int) -> NDArray[np.float64]:
        """
        Advance ``count`` times.

        Returns:
            Array of shape (count, n_streams)
        """
        out = np.empty((count, self.n_streams))
        for row in range(count):
            out[row] = self.advance()
        return out

    def __iter__(self) -> Iterator[NDArray[np.float64]]:
        while True:
            yield self.advance()

    def __repr__(self) -> str:
        return f"LowDiscrepancySequence(n_streams={self.n_streams}, bases={self.bases})"
