"""Key hashing and payload packing."""

from .keys import KeyHasher, make_key
from .payload import PayloadCodec
from .records import (
    CompressedEnvelope,
    MasterRecord,
    UnpackedResult,
    ValueRecord,
    WireRecord,
    record_from_wire,
)

__all__ = [
    "KeyHasher",
    "make_key",
    "PayloadCodec",
    "CompressedEnvelope",
    "MasterRecord",
    "UnpackedResult",
    "ValueRecord",
    "WireRecord",
    "record_from_wire",
]
