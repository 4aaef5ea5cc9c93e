"""
Schedule text I/O.

Two line-oriented formats are supported:

- ``coordinates``: one sample per line, D space-separated non-negative
  integers (the grid coordinate), ascending by linear index
- ``indices``: one linear index per line

Example:
    ```python
    write_schedule(schedule, (64, 64), Path("schedule.txt"))
    schedule = read_schedule(Path("schedule.txt"), (64, 64))
    ```
"""

import logging
from pathlib import Path
import sys
from typing import IO, Literal, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from .errors import GeometryError
from .grid.index import pack_many, unpack_many

logger = logging.getLogger(__name__)

ScheduleFormat = Literal["coordinates", "indices"]
FORMATS = ("coordinates", "indices")


def _check_format(fmt: str) -> None:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown schedule format '{fmt}'. Available: {list(FORMATS)}")


def format_schedule(
    schedule: NDArray[np.integer],
    sizes: Sequence[int],
    fmt: ScheduleFormat = "coordinates",
) -> str:
    """Render a schedule as newline-terminated text."""
    _check_format(fmt)
    schedule = np.asarray(schedule, dtype=np.int64).reshape(-1)

    if fmt == "indices":
        rows = [str(int(i)) for i in schedule]
    else:
        rows = [" ".join(str(int(c)) for c in coord) for coord in unpack_many(schedule, sizes)]

    return "".join(row + "\n" for row in rows)


def write_schedule(
    schedule: NDArray[np.integer],
    sizes: Sequence[int],
    destination: Optional[Union[Path, IO[str]]] = None,
    fmt: ScheduleFormat = "coordinates",
) -> None:
    """
    Write a schedule to a file path or an open stream.

    Args:
        schedule: Ascending linear indices
        sizes: Grid sizes
        destination: Output path or text stream; stdout when None
        fmt: ``coordinates`` or ``indices``
    """
    text = format_schedule(schedule, sizes, fmt)

    if destination is None:
        sys.stdout.write(text)
    elif isinstance(destination, Path):
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, "w") as f:
            f.write(text)
        logger.info("Wrote %d points to %s", len(schedule), destination)
    else:
        destination.write(text)


def parse_schedule(
    text: str,
    sizes: Sequence[int],
    fmt: ScheduleFormat = "coordinates",
) -> NDArray[np.int64]:
    """
    Parse schedule text into linear indices, keeping file order.

    Blank lines and lines starting with ``#`` are ignored.

    Raises:
        GeometryError: If a coordinate line has the wrong number of values
            or lies outside the grid
        ValueError: If a line does not hold integers
    """
    _check_format(fmt)
    width = 1 if fmt == "indices" else len(sizes)

    rows = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        if len(fields) != width:
            raise GeometryError(
                f"Line {lineno}: expected {width} values, got {len(fields)}"
            )
        try:
            rows.append([int(v) for v in fields])
        except ValueError:
            raise ValueError(f"Line {lineno}: not an integer sample: {line!r}")

    if fmt == "indices":
        return np.asarray([r[0] for r in rows], dtype=np.int64)

    coords = np.asarray(rows, dtype=np.int64).reshape(-1, len(sizes))
    if coords.size and (np.any(coords < 0) or np.any(coords >= np.asarray(sizes))):
        raise GeometryError(f"Schedule coordinates lie outside grid {list(sizes)}")
    return pack_many(coords, sizes)


def read_schedule(
    path: Path,
    sizes: Sequence[int],
    fmt: ScheduleFormat = "coordinates",
) -> NDArray[np.int64]:
    """Read a schedule file written by ``write_schedule``."""
    if not path.exists():
        raise FileNotFoundError(f"Schedule file not found: {path}")
    with open(path, "r") as f:
        return parse_schedule(f.read(), sizes, fmt)
