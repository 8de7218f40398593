"""Shared fixtures for unit tests: an in-memory store speaking Redis commands."""

from __future__ import annotations

import math
import time
from typing import Any

import pytest

from laakhay.cache import CacheEvent, CacheSettings

FIXED_MS = 1_700_000_000_000


class FakeStoreError(Exception):
    """Per-command failure raised by FakeRedis."""


class FakePipeline:
    """Queues commands and replays them against the owning FakeRedis."""

    def __init__(self, store: FakeRedis, transaction: bool) -> None:
        self._store = store
        self.transaction = transaction
        self._queue: list[tuple[Any, ...]] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._queue = []

    def execute_command(self, *args: Any, **options: Any) -> FakePipeline:
        self._queue.append(args)
        return self

    async def execute(self, raise_on_error: bool = True) -> list[Any]:
        self._store.pipelines.append(list(self._queue))
        results: list[Any] = []
        for args in self._queue:
            try:
                results.append(self._store.run(args))
            except FakeStoreError as e:
                if raise_on_error:
                    raise
                results.append(e)
        self._queue = []
        return results


class FakeRedis:
    """Minimal Redis: SET/GET/DEL/EXISTS/EXPIRE/TTL/PERSIST/EXPIRETIME/DBSIZE."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.expires_at: dict[str, float] = {}
        self.commands: list[tuple[Any, ...]] = []
        self.pipelines: list[list[tuple[Any, ...]]] = []
        self.broken_keys: set[str] = set()
        self.rejected_keys: set[str] = set()
        self.undeletable_keys: set[str] = set()
        self.offline = False
        self.now = time.time()

    async def execute_command(self, *args: Any, **options: Any) -> Any:
        self.commands.append(args)
        if self.offline:
            raise ConnectionError("store offline")
        return self.run(args)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    def commands_named(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.commands if c[0] == name]

    def _alive(self, key: str) -> bool:
        if key in self.expires_at and self.expires_at[key] <= self.now:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)
        return key in self.data

    def run(self, args: tuple[Any, ...]) -> Any:
        name, *rest = args
        handler = getattr(self, f"_cmd_{name.lower()}")
        if rest and rest[0] in self.broken_keys:
            raise FakeStoreError(f"WRONGTYPE {rest[0]}")
        return handler(*rest)

    def _cmd_set(self, key: str, value: Any = None, *options: Any) -> Any:
        if value is None:
            raise FakeStoreError("ERR wrong number of arguments for 'set' command")
        if key in self.rejected_keys:
            return None
        opts = [str(o).upper() for o in options]
        if "NX" in opts and self._alive(key):
            return None
        self.data[key] = value
        self.expires_at.pop(key, None)
        for i, opt in enumerate(opts):
            if opt == "EX":
                self.expires_at[key] = self.now + float(options[i + 1])
            elif opt == "PX":
                self.expires_at[key] = self.now + float(options[i + 1]) / 1000
            elif opt == "EXAT":
                self.expires_at[key] = float(options[i + 1])
            elif opt == "PXAT":
                self.expires_at[key] = float(options[i + 1]) / 1000
        return "OK"

    def _cmd_get(self, key: str) -> Any:
        return self.data[key] if self._alive(key) else None

    def _cmd_del(self, *keys: str) -> int:
        count = 0
        for key in keys:
            if key in self.undeletable_keys:
                continue
            if self._alive(key):
                del self.data[key]
                self.expires_at.pop(key, None)
                count += 1
        return count

    def _cmd_exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._alive(key))

    def _cmd_expire(self, key: str, seconds: Any) -> int:
        if not self._alive(key):
            return 0
        self.expires_at[key] = self.now + float(seconds)
        return 1

    def _cmd_ttl(self, key: str) -> int:
        if not self._alive(key):
            return -2
        if key not in self.expires_at:
            return -1
        return math.ceil(self.expires_at[key] - self.now)

    def _cmd_persist(self, key: str) -> int:
        if not self._alive(key) or key not in self.expires_at:
            return 0
        del self.expires_at[key]
        return 1

    def _cmd_expiretime(self, key: str) -> int:
        if not self._alive(key):
            return -2
        if key not in self.expires_at:
            return -1
        return int(self.expires_at[key])

    def _cmd_dbsize(self) -> int:
        return sum(1 for key in list(self.data) if self._alive(key))


@pytest.fixture
def store() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def events() -> list[CacheEvent]:
    return []


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_MS


@pytest.fixture
def plain_settings() -> CacheSettings:
    """No compression, no chunking, no default expiration."""
    return CacheSettings(prefix="unit", compression_enabled=False)


@pytest.fixture
def chunk_settings() -> CacheSettings:
    """Small chunks and no compression so chunking is easy to trigger."""
    return CacheSettings(
        prefix="unit",
        expiration_seconds=3600,
        max_chunk_bytes=50,
        compression_enabled=False,
    )
