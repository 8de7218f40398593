"""Deterministic store keys.

A logical key can be any JSON-like structure. It is canonicalized together
with the namespace prefix (RFC 8785 / JCS via the ``rfc8785`` package), so
equal logical keys hash identically in every process, then digested with
SHA-1 and base64 encoded.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Any

import rfc8785

from ..core.exceptions import KeyHashError

# Integers JCS can serialize exactly (IEEE 754 doubles)
MAX_SAFE_INTEGER = 2**53 - 1
BIG_INT_TAG = "$bigint"


def _normalize_key(obj: Any) -> Any:
    """Convert a logical key into JCS-serializable primitives.

    Integers beyond the safe JSON range are written as ``{"$bigint": "<decimal>"}``.

    Raises:
        KeyHashError: If the key contains values with no canonical form
    """
    if obj is None or isinstance(obj, (str, bool, float)):
        return obj
    if isinstance(obj, int):
        if abs(obj) > MAX_SAFE_INTEGER:
            return {BIG_INT_TAG: str(obj)}
        return obj
    if isinstance(obj, dict):
        normalized = {}
        for k, v in obj.items():
            if not isinstance(k, str):
                raise KeyHashError(f"Key mappings need string keys, got {type(k).__name__}", obj)
            normalized[k] = _normalize_key(v)
        return normalized
    if isinstance(obj, (list, tuple)):
        return [_normalize_key(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        # Order members by their canonical bytes, mixed types cannot be compared directly
        members = [_normalize_key(v) for v in obj]
        return sorted(members, key=_canonical)
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    raise KeyHashError(f"Cannot hash key of type {type(obj).__name__}", obj)


def _canonical(obj: Any) -> bytes:
    try:
        return rfc8785.dumps(obj)
    except rfc8785.CanonicalizationError as e:
        raise KeyHashError(f"Cannot canonicalize key: {e}", obj) from e


def make_key(prefix: str, key: Any) -> str:
    """Hash (prefix, logical key) into a store key.

    Args:
        prefix: Namespace prefix
        key: Logical key (string, number or nested JSON-like structure)

    Returns:
        Base64 SHA-1 digest of the canonical ``{"prefix": ..., "key": ...}``

    Raises:
        KeyHashError: If the key cannot be canonicalized
    """
    canonical = _canonical({"prefix": prefix or "", "key": _normalize_key(key)})
    return base64.b64encode(hashlib.sha1(canonical).digest()).decode("ascii")


class KeyHasher:
    """Key hasher bound to one namespace prefix."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def __call__(self, key: Any) -> str:
        return make_key(self.prefix, key)
