"""Grid arithmetic and index storage for nusgen."""

from .index import (
    GridIndex,
    pack,
    unpack,
    pack_many,
    unpack_many,
    stride,
    round_half_away,
)
from .collection import UniqueIndexCollection

__all__ = [
    "GridIndex",
    "UniqueIndexCollection",
    "pack",
    "unpack",
    "pack_many",
    "unpack_many",
    "stride",
    "round_half_away",
]
