"""
Fixed-length tuples of unsigned integers and mixed-radix grid arithmetic.

A GridIndex represents one of three things:
- the grid sizes N of a 1-, 2- or 3-dimensional grid
- a coordinate x on that grid (0 <= x[k] < N[k])
- a growing list of linear indices

Coordinates and linear indices are related by mixed-radix packing with the
first axis varying fastest:

    i = sum(x[k] * stride(k)),   stride(k) = prod(N[j] for j < k)

which is exactly numpy's Fortran-order raveling, so the vectorized helpers
below defer to np.ravel_multi_index / np.unravel_index.

Example:
    ```python
    sizes = GridIndex([4, 3])
    idx = GridIndex([2, 1]).pack(sizes)      # 2 + 1*4 = 6
    GridIndex.unpack(idx, sizes)             # GridIndex([2, 1])
    ```
"""

import math
from typing import IO, Iterable, Iterator, List, Optional, Sequence, Union
import sys

import numpy as np
from numpy.typing import NDArray

from ..errors import GeometryError


def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's round() rounds halves to even, which would shift grid
    positions for terms such as 2.5.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _check_unsigned(value: int) -> int:
    value = int(value)
    if value < 0:
        raise ValueError(f"GridIndex elements must be non-negative, got {value}")
    return value


class GridIndex:
    """
    Fixed-length tuple of unsigned integers.

    All operations are pure except ``append``, ``fill``, ``sort``, ``unique``
    and item assignment, which mutate the receiver. Instances are not safe
    for concurrent mutation.
    """

    __slots__ = ("_elem",)

    def __init__(self, values: Iterable[int] = ()):
        self._elem: List[int] = [_check_unsigned(v) for v in values]

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    @classmethod
    def zeros(cls, n: int) -> "GridIndex":
        """Allocate a tuple of ``n`` zero elements."""
        if n < 0:
            raise ValueError(f"GridIndex size must be >= 0, got {n}")
        return cls([0] * n)

    def copy(self) -> "GridIndex":
        return GridIndex(self._elem)

    # ------------------------------------------------------------------
    # element access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._elem)

    def __getitem__(self, i: int) -> int:
        return self._elem[i]

    def __setitem__(self, i: int, value: int) -> None:
        self._elem[i] = _check_unsigned(value)

    def __iter__(self) -> Iterator[int]:
        return iter(self._elem)

    def __contains__(self, value: object) -> bool:
        # linear scan: index lists searched this way stay small
        return value in self._elem

    def __eq__(self, other: object) -> bool:
        if isinstance(other, GridIndex):
            return self._elem == other._elem
        if isinstance(other, (list, tuple)):
            return self._elem == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._elem))

    def __repr__(self) -> str:
        return f"GridIndex({self._elem})"

    def __str__(self) -> str:
        return self.format()

    def fill(self, value: int) -> None:
        """Set every element to ``value``."""
        value = _check_unsigned(value)
        for i in range(len(self._elem)):
            self._elem[i] = value

    def append(self, value: int) -> None:
        """Grow the tuple by one element."""
        self._elem.append(_check_unsigned(value))

    def tolist(self) -> List[int]:
        return list(self._elem)

    def astuple(self) -> tuple:
        return tuple(self._elem)

    # ------------------------------------------------------------------
    # aggregates
    # ------------------------------------------------------------------

    def sum(self) -> int:
        return sum(self._elem)

    def prod(self) -> int:
        return math.prod(self._elem)

    def stride(self, axis: int) -> int:
        """
        Linear index stride along ``axis`` when this tuple holds grid sizes.

        Args:
            axis: Zero-based axis, 0 <= axis <= len(self)

        Returns:
            Product of all sizes before ``axis`` (1 for axis 0)
        """
        if not 0 <= axis <= len(self._elem):
            raise GeometryError(f"Axis {axis} out of range for {len(self._elem)}-tuple")
        return math.prod(self._elem[:axis])

    def find_first_nonzero(self) -> int:
        """
        One-based position of the first nonzero element, or 0 if none.

        Applied to an axis mask this tells whether exactly one free axis
        remains and which one it is.
        """
        for i, value in enumerate(self._elem):
            if value:
                return i + 1
        return 0

    def sort(self) -> None:
        """Sort the elements in place, ascending."""
        self._elem.sort()

    def unique(self) -> None:
        """Sort the elements in place and drop duplicates."""
        self._elem = sorted(set(self._elem))

    # ------------------------------------------------------------------
    # packing
    # ------------------------------------------------------------------

    def pack(self, sizes: "GridIndex") -> int:
        """Pack this coordinate into a linear index on a grid of ``sizes``."""
        return pack(self._elem, sizes)

    @classmethod
    def unpack(cls, index: int, sizes: Union["GridIndex", Sequence[int]]) -> "GridIndex":
        """Unpack a linear index into a coordinate on a grid of ``sizes``."""
        return cls(unpack(index, sizes))

    # ------------------------------------------------------------------
    # output
    # ------------------------------------------------------------------

    def format(self) -> str:
        """Space separated elements, no trailing newline."""
        return " ".join(str(v) for v in self._elem)

    def print_to(self, stream: Optional[IO[str]] = None) -> None:
        """Write the tuple as one newline-terminated line (stdout by default)."""
        stream = stream if stream is not None else sys.stdout
        stream.write(self.format() + "\n")


# =============================================================================
# Sequence helpers (shared by GridIndex and the samplers)
# =============================================================================


def stride(sizes: Sequence[int], axis: int) -> int:
    """Linear stride along ``axis`` for a grid of ``sizes``."""
    return math.prod(sizes[:axis])


def pack(coord: Sequence[int], sizes: Sequence[int]) -> int:
    """
    Pack a coordinate into a linear index.

    Raises:
        GeometryError: If the coordinate and sizes have different lengths
    """
    if len(coord) != len(sizes):
        raise GeometryError(
            f"Coordinate has {len(coord)} elements but grid has {len(sizes)} axes"
        )
    idx = 0
    step = 1
    for value, size in zip(coord, sizes):
        idx += value * step
        step *= size
    return idx


def unpack(index: int, sizes: Sequence[int]) -> List[int]:
    """
    Unpack a linear index into a coordinate by successive modulo/divide.

    Raises:
        GeometryError: If ``sizes`` is empty or contains a zero
    """
    if len(sizes) == 0:
        raise GeometryError("Cannot unpack onto a zero-dimensional grid")
    coord = []
    rem = int(index)
    for size in sizes:
        if size <= 0:
            raise GeometryError(f"Grid sizes must be positive, got {list(sizes)}")
        coord.append(rem % size)
        rem //= size
    return coord


def pack_many(coords: NDArray[np.integer], sizes: Sequence[int]) -> NDArray[np.int64]:
    """Vectorized pack of an (n, D) coordinate array."""
    coords = np.asarray(coords, dtype=np.int64)
    if coords.ndim != 2 or coords.shape[1] != len(sizes):
        raise GeometryError(
            f"Coordinates must have shape (n, {len(sizes)}), got {coords.shape}"
        )
    if coords.shape[0] == 0:
        return np.zeros(0, dtype=np.int64)
    return np.ravel_multi_index(tuple(coords.T), tuple(sizes), order="F").astype(np.int64)


def unpack_many(indices: NDArray[np.integer], sizes: Sequence[int]) -> NDArray[np.int64]:
    """Vectorized unpack of linear indices into an (n, D) coordinate array."""
    indices = np.asarray(indices, dtype=np.int64).reshape(-1)
    if indices.size == 0:
        return np.zeros((0, len(sizes)), dtype=np.int64)
    coords = np.unravel_index(indices, tuple(sizes), order="F")
    return np.stack(coords, axis=1).astype(np.int64)
