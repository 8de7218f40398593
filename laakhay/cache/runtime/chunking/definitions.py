"""Chunk layout definitions.

A packed string longer than the chunk bound is cut into consecutive slices.
Slice ``i`` is stored under ``<hashed_key>-<i>`` and the master record under
``<hashed_key>`` lists the leaf keys in slice order. That order is the only
thing reassembly trusts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

LEAF_SEPARATOR = "-"


@dataclass(frozen=True)
class LeafChunk:
    """One slice of a split payload.

    Attributes:
        key: Store key of the leaf
        value: Slice of the packed string
        chunk_index: Zero-based position of the slice
    """

    key: str
    value: str
    chunk_index: int


@dataclass(frozen=True)
class ChunkPlan:
    """Layout of a split payload.

    Attributes:
        hashed_key: Store key of the master record
        leaves: Leaf slices in payload order
        packed_length: Length of the packed string that was split
    """

    hashed_key: str
    leaves: list[LeafChunk]
    packed_length: int

    @property
    def keys(self) -> list[str]:
        return [leaf.key for leaf in self.leaves]


def leaf_key(hashed_key: str, index: int) -> str:
    return f"{hashed_key}{LEAF_SEPARATOR}{index}"


def leaf_keys(hashed_key: str, count: int) -> list[str]:
    """Leaf keys for a payload split into ``count`` slices."""
    return [leaf_key(hashed_key, i) for i in range(count)]


def split_payload(packed: str, size: float) -> list[str]:
    """Cut a packed string into consecutive slices of at most ``size`` characters.

    Args:
        packed: Packed string (ASCII, so characters are bytes)
        size: Maximum slice length; ``math.inf`` keeps the string whole

    Returns:
        Slices in order; ``"".join`` of the result is ``packed``

    Raises:
        ValueError: If size is below 1
    """
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    if math.isinf(size) or len(packed) <= size:
        return [packed]
    step = int(size)
    return [packed[start : start + step] for start in range(0, len(packed), step)]


def plan_chunks(hashed_key: str, packed: str, max_chunk_bytes: float) -> ChunkPlan:
    """Split a packed string and assign leaf keys."""
    slices = split_payload(packed, max_chunk_bytes)
    keys = leaf_keys(hashed_key, len(slices))
    return ChunkPlan(
        hashed_key=hashed_key,
        leaves=[
            LeafChunk(key=key, value=value, chunk_index=i)
            for i, (key, value) in enumerate(zip(keys, slices))
        ],
        packed_length=len(packed),
    )
