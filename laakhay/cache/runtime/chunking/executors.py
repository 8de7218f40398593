"""Chunked write, read and delete.

The Chunker stores a packed value under one key when it fits the chunk
bound, otherwise as a master record plus ordered leaves. Store access is
injected as plain async callables so the same logic serves the dispatcher,
the bulk reader and tests.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ...codec.payload import PayloadCodec
from ...codec.records import UnpackedResult
from ...core.events import EventHook
from .definitions import plan_chunks
from .telemetry import (
    log_cascade_delete_warning,
    log_chunk_plan,
    log_chunk_reassembly_failed,
    log_chunk_write_failed,
    log_partial_chunk,
)

Getter = Callable[[str], Awaitable[Any]]
Setter = Callable[[str, str], Awaitable[Any]]
Deleter = Callable[[str], Awaitable[Any]]

WRITE_OK = "OK"


def is_write_ok(reply: Any) -> bool:
    """True for a store acknowledgement of SET.

    redis-py turns ``OK`` into ``True``; raw clients return the status string.
    """
    return reply is True or reply == "OK" or reply == b"OK"


def _as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value


class Chunker:
    """Splits, reassembles and cascades deletes of packed records."""

    def __init__(
        self,
        codec: PayloadCodec,
        max_chunk_bytes: float | None = None,
        on_event: EventHook | None = None,
    ) -> None:
        """Initialize chunker.

        Args:
            codec: Codec used to pack values and master records
            max_chunk_bytes: Chunk bound (defaults to the codec settings)
            on_event: Optional observer
        """
        self._codec = codec
        self._max_chunk_bytes = (
            codec.settings.max_chunk_bytes if max_chunk_bytes is None else max_chunk_bytes
        )
        if self._max_chunk_bytes < 1:
            raise ValueError(f"max_chunk_bytes must be at least 1, got {self._max_chunk_bytes}")
        self._on_event = on_event

    @property
    def max_chunk_bytes(self) -> float:
        return self._max_chunk_bytes

    @property
    def chunking_enabled(self) -> bool:
        return not math.isinf(self._max_chunk_bytes)

    async def write(
        self,
        hashed_key: str,
        value: Any,
        setter: Setter,
        *,
        getter: Getter | None = None,
        deleter: Deleter | None = None,
    ) -> str | None:
        """Pack and store a value, splitting it when it exceeds the chunk bound.

        Only leaves are bounded by ``max_chunk_bytes``. The master record lists
        every leaf key and may itself be longer than the bound.

        When both ``getter`` and ``deleter`` are given, leaves of the record
        previously stored under ``hashed_key`` that the new write does not
        overwrite are deleted once the new write has succeeded.

        Args:
            hashed_key: Store key
            value: Value to pack
            setter: Writes one packed string under a key
            getter: Reads one key (enables stale leaf cleanup)
            deleter: Deletes one key (enables stale leaf cleanup)

        Returns:
            "OK" if every record was acknowledged, None otherwise
        """
        previous = None
        if getter is not None and deleter is not None:
            previous = await self._fetch(hashed_key, getter)

        packed = self._codec.pack(value)
        if packed is None:
            return None

        # The uncompressed fallback from pack() is size-checked like any other
        if len(packed) <= self._max_chunk_bytes:
            written: list[str] = []
            if not is_write_ok(await setter(hashed_key, packed)):
                log_chunk_write_failed(
                    hashed_key=hashed_key, failed_keys=[hashed_key], on_event=self._on_event
                )
                return None
        else:
            plan = plan_chunks(hashed_key, packed, self._max_chunk_bytes)
            log_chunk_plan(plan=plan, max_chunk_bytes=self._max_chunk_bytes, on_event=self._on_event)
            written = plan.keys
            master = self._codec.pack(written, master=True)
            load = [(hashed_key, master)] + [(leaf.key, leaf.value) for leaf in plan.leaves]
            replies = await asyncio.gather(*(setter(key, packed_value) for key, packed_value in load))
            failed = [key for (key, _), reply in zip(load, replies) if not is_write_ok(reply)]
            if failed:
                log_chunk_write_failed(
                    hashed_key=hashed_key, failed_keys=failed, on_event=self._on_event
                )
                return None

        if previous is not None and previous.keys:
            await self._remove_stale(hashed_key, previous.keys, written, deleter)
        return WRITE_OK

    async def read(self, hashed_key: str, getter: Getter) -> UnpackedResult | str | None:
        """Read and unpack a record, reassembling it from leaves if needed.

        Returns:
            The unpacked record, the raw string for values not written by the
            codec, or None when absent, unparseable or missing any leaf
        """
        raw = await getter(hashed_key)
        if raw is None:
            return None
        pack = self._codec.unpack(raw)
        if pack is None or isinstance(pack, str):
            return pack
        if not pack.is_master:
            return pack.with_key(hashed_key)

        leaves = await asyncio.gather(*(getter(key) for key in pack.keys))
        return self.assemble(hashed_key, pack, leaves)

    def assemble(
        self,
        hashed_key: str,
        master: UnpackedResult,
        leaves: Sequence[Any],
    ) -> UnpackedResult | None:
        """Rebuild a value from a master record and its leaves.

        Args:
            hashed_key: Master record key
            master: Unpacked master record
            leaves: Raw leaf values in the master's key order (None if missing)

        Returns:
            The rebuilt record stamped with the master's timestamp, or None if
            any leaf is missing or the joined leaves do not unpack
        """
        keys = master.keys or []
        missing = [key for key, leaf in zip(keys, leaves) if leaf is None]
        if missing or len(leaves) != len(keys):
            log_partial_chunk(hashed_key=hashed_key, missing_keys=missing, on_event=self._on_event)
            return None

        rebuilt = self._codec.unpack("".join(_as_text(leaf) for leaf in leaves))
        if not isinstance(rebuilt, UnpackedResult) or rebuilt.is_master:
            log_chunk_reassembly_failed(
                hashed_key=hashed_key, total_chunks=len(keys), on_event=self._on_event
            )
            return None
        return UnpackedResult(value=rebuilt.value, timestamp=master.timestamp, hashed_key=hashed_key)

    async def delete(self, hashed_key: str, getter: Getter, deleter: Deleter) -> Any:
        """Delete a record and, if it is a master, all of its leaves.

        The reply for the master key is authoritative. Leaf failures are
        reported but do not change it.

        Returns:
            The store's reply for the master delete, or 0 if the record could
            not be read
        """
        raw = await getter(hashed_key)
        pack = None if raw is None else self._codec.unpack(raw)
        if pack is None:
            return 0

        result = await deleter(hashed_key)

        if isinstance(pack, UnpackedResult) and pack.is_master:
            replies = await asyncio.gather(*(deleter(key) for key in pack.keys))
            failed = [key for key, reply in zip(pack.keys, replies) if reply != 1]
            if failed:
                log_cascade_delete_warning(
                    hashed_key=hashed_key, failed_keys=failed, on_event=self._on_event
                )
        return result

    async def _fetch(self, hashed_key: str, getter: Getter) -> UnpackedResult | None:
        raw = await getter(hashed_key)
        if raw is None:
            return None
        pack = self._codec.unpack(raw)
        return pack if isinstance(pack, UnpackedResult) else None

    async def _remove_stale(
        self,
        hashed_key: str,
        previous_keys: list[str],
        written: list[str],
        deleter: Deleter,
    ) -> None:
        current = set(written)
        stale = [key for key in previous_keys if key not in current]
        if not stale:
            return
        replies = await asyncio.gather(*(deleter(key) for key in stale))
        failed = [key for key, reply in zip(stale, replies) if reply != 1]
        if failed:
            log_cascade_delete_warning(
                hashed_key=hashed_key, failed_keys=failed, stale=True, on_event=self._on_event
            )
