"""Chunking layer for values larger than one store record.

Architecture:
    - definitions.py: Leaf layout (LeafChunk, ChunkPlan, split_payload, leaf_keys)
    - executors.py: Chunker (write with split, read with reassembly, cascading delete)
    - telemetry.py: Structured logging of chunk events
"""

from __future__ import annotations

from .definitions import (
    LEAF_SEPARATOR,
    ChunkPlan,
    LeafChunk,
    leaf_key,
    leaf_keys,
    plan_chunks,
    split_payload,
)
from .executors import WRITE_OK, Chunker, Deleter, Getter, Setter, is_write_ok

__all__ = [
    "LEAF_SEPARATOR",
    "ChunkPlan",
    "LeafChunk",
    "leaf_key",
    "leaf_keys",
    "plan_chunks",
    "split_payload",
    "WRITE_OK",
    "Chunker",
    "Deleter",
    "Getter",
    "Setter",
    "is_write_ok",
]
