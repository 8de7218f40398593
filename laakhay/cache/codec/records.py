"""Wire record variants.

A packed record is a JSON object in one of three shapes:

    {"t": 1700000000000, "p": <value>}        ValueRecord
    {"t": 1700000000000, "k": ["<key>-0", ...]} MasterRecord
    {"z": "<base64 gzip of one of the above>"}  CompressedEnvelope

``t`` is the write time in epoch milliseconds. ``z`` never appears next to
``p`` or ``k`` at the outer layer.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class ValueRecord:
    """A complete value stored in a single record."""

    timestamp: int | None
    value: Any

    def to_wire(self) -> dict[str, Any]:
        return {"t": self.timestamp, "p": self.value}


@dataclass(frozen=True)
class MasterRecord:
    """Index of the ordered leaves holding a split payload."""

    timestamp: int | None
    keys: list[str]

    def to_wire(self) -> dict[str, Any]:
        return {"t": self.timestamp, "k": list(self.keys)}


@dataclass(frozen=True)
class CompressedEnvelope:
    """Base64 gzip of a serialized ValueRecord or MasterRecord."""

    payload: str

    def to_wire(self) -> dict[str, Any]:
        return {"z": self.payload}


WireRecord = ValueRecord | MasterRecord | CompressedEnvelope


def record_from_wire(obj: Any) -> WireRecord | None:
    """Classify a parsed JSON object, or None if it is not an envelope."""
    if not isinstance(obj, dict):
        return None
    if "k" in obj:
        keys = obj["k"]
        if isinstance(keys, list):
            return MasterRecord(timestamp=obj.get("t"), keys=keys)
        return None
    if "p" in obj:
        return ValueRecord(timestamp=obj.get("t"), value=obj["p"])
    if isinstance(obj.get("z"), str):
        return CompressedEnvelope(payload=obj["z"])
    return None


@dataclass(frozen=True)
class UnpackedResult:
    """A record read back from the store.

    Attributes:
        value: The value originally packed (None for master records)
        timestamp: Write time in epoch milliseconds
        keys: Leaf keys when this is a master record
        hashed_key: Store key the record was read from, once known
    """

    value: Any
    timestamp: int | None = None
    keys: list[str] | None = None
    hashed_key: str | None = None

    @property
    def is_master(self) -> bool:
        return self.keys is not None

    def with_key(self, hashed_key: str) -> UnpackedResult:
        return replace(self, hashed_key=hashed_key)

    @classmethod
    def from_record(cls, record: ValueRecord | MasterRecord) -> UnpackedResult:
        if isinstance(record, MasterRecord):
            return cls(value=None, timestamp=record.timestamp, keys=list(record.keys))
        return cls(value=record.value, timestamp=record.timestamp)
