"""Pipelined multi-get.

All keys are read in one pipelined round trip. Results are matched back to
the requested logical keys by position, and a failure of one item only
leaves that key empty. Chunked values found in the batch are reassembled
from leaves fetched in one further pipelined round trip.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any

from ..codec.payload import PayloadCodec
from ..codec.records import UnpackedResult
from ..core.events import EventHook, emit
from ..core.protocols import StoreClient
from .chunking import Chunker

logger = logging.getLogger(__name__)


class MultiGetResult(Mapping[Any, Any]):
    """Ordered mapping of logical keys to results.

    Logical keys are often dicts or lists, which cannot be dict keys, so
    unhashable keys are matched by equality. Iteration follows request order;
    a key requested twice appears once.
    """

    def __init__(self, keys: Iterable[Any] = ()) -> None:
        self._keys: list[Any] = []
        self._values: list[Any] = []
        self._positions: dict[Any, int] = {}
        for key in keys:
            if self._index(key) is None:
                self._append(key, None)

    def _index(self, key: Any) -> int | None:
        try:
            return self._positions.get(key)
        except TypeError:
            for i, existing in enumerate(self._keys):
                if existing is key or existing == key:
                    return i
            return None

    def _append(self, key: Any, value: Any) -> None:
        try:
            self._positions[key] = len(self._keys)
        except TypeError:
            pass  # unhashable, found by _index's equality scan
        self._keys.append(key)
        self._values.append(value)

    def __getitem__(self, key: Any) -> Any:
        i = self._index(key)
        if i is None:
            raise KeyError(key)
        return self._values[i]

    def __setitem__(self, key: Any, value: Any) -> None:
        i = self._index(key)
        if i is None:
            self._append(key, value)
        else:
            self._values[i] = value

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in zip(self._keys, self._values))
        return f"MultiGetResult({{{items}}})"


class BulkReader:
    """Reads many logical keys in one pipelined batch."""

    def __init__(
        self,
        client: StoreClient,
        hasher: Callable[[Any], str],
        codec: PayloadCodec,
        chunker: Chunker,
        on_event: EventHook | None = None,
        read_command: str = "GET",
    ) -> None:
        """Initialize bulk reader.

        Args:
            client: Store client with pipeline support
            hasher: Maps a logical key to its store key
            codec: Codec for unpacking replies
            chunker: Reassembles chunked values
            on_event: Optional observer
            read_command: Store command used for each read
        """
        self._client = client
        self._hasher = hasher
        self._codec = codec
        self._chunker = chunker
        self._on_event = on_event
        self._read_command = read_command.upper()

    async def multi_get(self, keys: Sequence[Any]) -> MultiGetResult:
        """Get many logical keys.

        Args:
            keys: Logical keys in request order

        Returns:
            Mapping holding exactly the requested keys, each with its unpacked
            result or None on a miss or per-item error
        """
        keys = list(keys)
        result = MultiGetResult(keys)
        if not keys:
            return result

        hashed_keys = [self._hasher(key) for key in keys]
        replies = await self._pipelined_get(hashed_keys)

        masters: list[tuple[Any, str, UnpackedResult]] = []
        for key, hashed_key, reply in zip(keys, hashed_keys, replies):
            if isinstance(reply, Exception):
                self._report_item_error(hashed_key, reply)
                continue
            if reply is None:
                continue
            pack = self._codec.unpack(reply)
            if isinstance(pack, UnpackedResult):
                if pack.is_master:
                    masters.append((key, hashed_key, pack))
                    continue
                pack = pack.with_key(hashed_key)
            result[key] = pack

        if masters:
            await self._resolve_masters(result, masters)
        return result

    async def _pipelined_get(self, hashed_keys: list[str]) -> list[Any]:
        async with self._client.pipeline(transaction=True) as pipe:
            for hashed_key in hashed_keys:
                pipe.execute_command(self._read_command, hashed_key)
            return await pipe.execute(raise_on_error=False)

    async def _resolve_masters(
        self,
        result: MultiGetResult,
        masters: list[tuple[Any, str, UnpackedResult]],
    ) -> None:
        leaf_keys = [leaf for _, _, master in masters for leaf in master.keys or []]
        replies = await self._pipelined_get(leaf_keys) if leaf_keys else []

        leaves: list[Any] = []
        for leaf_key, reply in zip(leaf_keys, replies):
            if isinstance(reply, Exception):
                self._report_item_error(leaf_key, reply)
                reply = None
            leaves.append(reply)

        offset = 0
        for key, hashed_key, master in masters:
            count = len(master.keys or [])
            result[key] = self._chunker.assemble(hashed_key, master, leaves[offset : offset + count])
            offset += count

    def _report_item_error(self, hashed_key: str, error: Exception) -> None:
        emit(
            "pipeline_item_failed",
            level=logging.WARNING,
            on_event=self._on_event,
            error=error,
            log=logger,
            hashed_key=hashed_key,
        )
