"""Unit tests for chunked write, read and delete."""

from __future__ import annotations

import json
import math

import pytest

from laakhay.cache import (
    CacheSettings,
    CascadeDeleteWarning,
    Chunker,
    PartialChunkFailure,
    PayloadCodec,
    UnpackedResult,
)

FIXED_MS = 1_700_000_000_000


class DictStore:
    """Async getter/setter/deleter over a dict."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.set_calls: list[str] = []
        self.failing_sets: set[str] = set()
        self.failing_deletes: set[str] = set()

    async def setter(self, key: str, value: str):
        self.set_calls.append(key)
        if key in self.failing_sets:
            return None
        self.data[key] = value
        return "OK"

    async def getter(self, key: str):
        return self.data.get(key)

    async def deleter(self, key: str):
        if key in self.failing_deletes:
            return 0
        return 1 if self.data.pop(key, None) is not None else 0


def make_chunker(events=None, max_chunk_bytes=50, **overrides) -> Chunker:
    settings = CacheSettings(
        max_chunk_bytes=max_chunk_bytes, compression_enabled=False, **overrides
    )
    on_event = events.append if events is not None else None
    codec = PayloadCodec(settings, on_event=on_event, clock=lambda: FIXED_MS)
    return Chunker(codec, on_event=on_event)


class TestChunkerWrite:
    """Test single-record and split writes."""

    @pytest.mark.asyncio
    async def test_small_value_single_record(self):
        chunker = make_chunker()
        db = DictStore()
        assert await chunker.write("h", {"a": 1}, db.setter) == "OK"
        assert list(db.data) == ["h"]
        assert json.loads(db.data["h"])["p"] == {"a": 1}

    @pytest.mark.asyncio
    async def test_large_value_splits_into_leaves(self):
        """A packed payload of length L > M gives ceil(L/M) leaves plus a master."""
        chunker = make_chunker()
        db = DictStore()
        value = ["item"] * 40
        packed = chunker._codec.pack(value)

        assert await chunker.write("h", value, db.setter) == "OK"

        expected = math.ceil(len(packed) / 50)
        master = json.loads(db.data["h"])
        assert master["k"] == [f"h-{i}" for i in range(expected)]
        assert "".join(db.data[k] for k in master["k"]) == packed
        assert all(len(db.data[k]) <= 50 for k in master["k"])

    @pytest.mark.asyncio
    async def test_master_record_is_not_bounded(self):
        """Leaves respect the bound, the master holding their keys may not."""
        chunker = make_chunker(max_chunk_bytes=20)
        db = DictStore()
        value = "x" * 2000
        assert await chunker.write("h", value, db.setter) == "OK"

        keys = json.loads(db.data["h"])["k"]
        assert all(len(db.data[k]) <= 20 for k in keys)
        assert len(db.data["h"]) > 20
        assert (await chunker.read("h", db.getter)).value == value

    @pytest.mark.asyncio
    async def test_failed_leaf_write_fails_whole_write(self):
        events = []
        chunker = make_chunker(events)
        db = DictStore()
        db.failing_sets.add("h-1")
        assert await chunker.write("h", ["item"] * 40, db.setter) is None
        failure = [e for e in events if e.name == "chunk_write_failed"][0]
        assert failure.fields["failed_keys"] == ["h-1"]

    @pytest.mark.asyncio
    async def test_failed_single_write(self):
        chunker = make_chunker()
        db = DictStore()
        db.failing_sets.add("h")
        assert await chunker.write("h", "v", db.setter) is None

    @pytest.mark.asyncio
    async def test_redis_py_true_reply_counts_as_ok(self):
        chunker = make_chunker()

        async def setter(key, value):
            return True

        assert await chunker.write("h", ["item"] * 40, setter) == "OK"

    @pytest.mark.asyncio
    async def test_unpackable_value_writes_nothing(self):
        chunker = make_chunker()
        db = DictStore()
        assert await chunker.write("h", {object()}, db.setter) is None
        assert db.set_calls == []

    @pytest.mark.asyncio
    async def test_rewrite_removes_stale_leaves(self):
        """Leaves of a larger previous write do not outlive a smaller rewrite."""
        chunker = make_chunker()
        db = DictStore()
        await chunker.write("h", ["item"] * 40, db.setter, getter=db.getter, deleter=db.deleter)
        old_keys = json.loads(db.data["h"])["k"]

        await chunker.write("h", ["item"] * 12, db.setter, getter=db.getter, deleter=db.deleter)
        new_keys = json.loads(db.data["h"])["k"]

        assert len(new_keys) < len(old_keys)
        assert sorted(db.data) == sorted(["h", *new_keys])

    @pytest.mark.asyncio
    async def test_rewrite_to_single_record_removes_all_leaves(self):
        chunker = make_chunker()
        db = DictStore()
        await chunker.write("h", ["item"] * 40, db.setter, getter=db.getter, deleter=db.deleter)
        await chunker.write("h", "small", db.setter, getter=db.getter, deleter=db.deleter)
        assert list(db.data) == ["h"]
        assert (await chunker.read("h", db.getter)).value == "small"

    @pytest.mark.asyncio
    async def test_uncompressed_fallback_is_still_chunked(self):
        """The plain envelope kept after ineffective compression is size-checked too."""
        settings = CacheSettings(max_chunk_bytes=10, compression_threshold_bytes=0)
        codec = PayloadCodec(settings, clock=lambda: FIXED_MS)
        chunker = Chunker(codec)
        db = DictStore()

        assert await chunker.write("h", "abc", db.setter) == "OK"
        assert "k" in json.loads(db.data["h"])
        assert (await chunker.read("h", db.getter)).value == "abc"


class TestChunkerRead:
    """Test reads and reassembly."""

    @pytest.mark.asyncio
    async def test_read_single_record(self):
        chunker = make_chunker()
        db = DictStore()
        await chunker.write("h", {"a": 1}, db.setter)
        result = await chunker.read("h", db.getter)
        assert result == UnpackedResult(value={"a": 1}, timestamp=FIXED_MS, hashed_key="h")

    @pytest.mark.asyncio
    async def test_read_reassembles_leaves(self):
        chunker = make_chunker()
        db = DictStore()
        value = [{"row": i} for i in range(30)]
        await chunker.write("h", value, db.setter)

        result = await chunker.read("h", db.getter)
        assert result.value == value
        assert result.timestamp == FIXED_MS
        assert result.hashed_key == "h"
        assert result.keys is None

    @pytest.mark.asyncio
    async def test_read_missing_key(self):
        assert await make_chunker().read("absent", DictStore().getter) is None

    @pytest.mark.asyncio
    async def test_missing_leaf_is_a_full_miss(self):
        """A master whose leaves are not all present never yields a partial value."""
        events = []
        chunker = make_chunker(events)
        db = DictStore()
        await chunker.write("h", ["item"] * 40, db.setter)
        del db.data["h-1"]

        assert await chunker.read("h", db.getter) is None
        event = [e for e in events if e.name == "chunk_leaves_missing"][0]
        assert isinstance(event.error, PartialChunkFailure)
        assert event.error.missing_keys == ["h-1"]

    @pytest.mark.asyncio
    async def test_corrupt_leaves_are_a_miss(self):
        events = []
        chunker = make_chunker(events)
        db = DictStore()
        await chunker.write("h", ["item"] * 40, db.setter)
        db.data["h-0"] = "garbage"

        assert await chunker.read("h", db.getter) is None
        assert "chunk_reassembly_failed" in [e.name for e in events]

    @pytest.mark.asyncio
    async def test_raw_value_passes_through(self):
        chunker = make_chunker()
        db = DictStore()
        db.data["h"] = '"legacy"'
        assert await chunker.read("h", db.getter) == '"legacy"'

    @pytest.mark.asyncio
    async def test_bytes_leaves(self):
        chunker = make_chunker()
        db = DictStore()
        await chunker.write("h", ["item"] * 40, db.setter)

        async def bytes_getter(key):
            value = db.data.get(key)
            return value.encode() if value is not None else None

        assert (await chunker.read("h", bytes_getter)).value == ["item"] * 40


class TestChunkerDelete:
    """Test cascading delete."""

    @pytest.mark.asyncio
    async def test_delete_chunked_record(self):
        """Master and every leaf are removed; a later read misses."""
        chunker = make_chunker()
        db = DictStore()
        await chunker.write("h", ["item"] * 40, db.setter)
        assert len(db.data) > 2

        assert await chunker.delete("h", db.getter, db.deleter) == 1
        assert db.data == {}
        assert await chunker.read("h", db.getter) is None

    @pytest.mark.asyncio
    async def test_delete_single_record(self):
        chunker = make_chunker()
        db = DictStore()
        await chunker.write("h", "v", db.setter)
        assert await chunker.delete("h", db.getter, db.deleter) == 1
        assert db.data == {}

    @pytest.mark.asyncio
    async def test_delete_absent_returns_zero(self):
        db = DictStore()
        assert await make_chunker().delete("h", db.getter, db.deleter) == 0

    @pytest.mark.asyncio
    async def test_leaf_delete_failure_is_a_warning(self):
        """The master's delete result stands when a leaf cannot be deleted."""
        events = []
        chunker = make_chunker(events)
        db = DictStore()
        await chunker.write("h", ["item"] * 40, db.setter)
        db.failing_deletes.add("h-0")

        assert await chunker.delete("h", db.getter, db.deleter) == 1
        event = [e for e in events if e.name == "cascade_delete_incomplete"][0]
        assert isinstance(event.error, CascadeDeleteWarning)
        assert event.error.failed_keys == ["h-0"]
