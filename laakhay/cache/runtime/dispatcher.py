"""Command dispatcher placed in front of the store client.

The CommandDispatcher is the component applications talk to. It:
1. Classifies each command through an explicit role table
2. Hashes the logical key into a store key
3. Routes writes, reads and deletes through the Chunker and PayloadCodec
4. Forwards everything else with only the key substituted

Architecture:
    The dispatcher is an adapter exposing the same command surface as the
    store client (``set``, ``get``, ``delete``, ``exists``, ...). Every named
    method funnels into ``execute(command, *args)``, which looks the command
    up in the role table. Commands missing from the table, and calls without
    arguments, go to the client verbatim. Attributes the dispatcher does not
    define are delegated to the client unchanged.

Argument Rewriting:
    - write: ``[key, value, *trailing]`` becomes
      ``[hashed_key, packed, *expiration, *trailing]`` for the master and
      every leaf, where ``expiration`` is ``EX <seconds>`` unless the caller
      already passed EX/EXAT/PX/PXAT or no finite default is configured
    - read: ``[key, *trailing]`` becomes ``[hashed_key, *trailing]`` for the
      record and each of its leaves
    - delete: the record is read with the role table's read command first so
      its leaves can be deleted after it
    - passthrough: ``[key, *rest]`` becomes ``[hashed_key, *rest]``

See Also:
    - Chunker: Split, reassembly and cascading delete
    - PayloadCodec: Envelope and compression
    - BulkReader: Pipelined multi-get
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..codec.keys import KeyHasher
from ..codec.payload import PayloadCodec
from ..codec.records import UnpackedResult
from ..core.config import CacheSettings
from ..core.enums import EXPIRATION_FLAGS, CommandRole
from ..core.events import EventHook, emit
from ..core.exceptions import CommandRoleError, ConnectivityTestFailure
from ..core.protocols import StoreClient
from ..utils.clock import now_ms
from .bulk import BulkReader, MultiGetResult
from .chunking import Chunker, Deleter, Getter, Setter, is_write_ok

logger = logging.getLogger(__name__)

CANARY_KEY = {"key": "bar"}
CANARY_VALUE = {"data": "foo is bar"}


def _is_expiration_flag(arg: Any) -> bool:
    if isinstance(arg, (bytes, bytearray)):
        arg = bytes(arg).decode("utf-8", errors="replace")
    return isinstance(arg, str) and arg.lower() in EXPIRATION_FLAGS


class CommandDispatcher:
    """Hashing, packing and chunking adapter over a store client."""

    def __init__(
        self,
        client: StoreClient,
        settings: CacheSettings,
        *,
        on_event: EventHook | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            client: Connected store client
            settings: Namespace prefix, expiration, chunking and compression
            on_event: Optional observer for recovered errors and diagnostics
            clock: Source of record timestamps (epoch ms)
        """
        self._client = client
        self._settings = settings
        self._on_event = on_event
        self._roles: dict[str, CommandRole] = dict(settings.command_roles)
        self._hasher = KeyHasher(settings.prefix)
        self._codec = PayloadCodec(settings, on_event=on_event, clock=clock)
        self._chunker = Chunker(self._codec, settings.max_chunk_bytes, on_event=on_event)
        self._bulk = BulkReader(
            client,
            self._hasher,
            self._codec,
            self._chunker,
            on_event=on_event,
            read_command=self.command_for(CommandRole.READ) or "get",
        )

    @property
    def client(self) -> StoreClient:
        """The wrapped store client."""
        return self._client

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def codec(self) -> PayloadCodec:
        return self._codec

    @property
    def chunker(self) -> Chunker:
        return self._chunker

    def role_of(self, command: str) -> CommandRole | None:
        """Role of a command, or None if it is not intercepted."""
        return self._roles.get(command.lower())

    def command_for(self, role: CommandRole) -> str | None:
        """First command in the role table with the given role."""
        return next((name for name, r in self._roles.items() if r == role), None)

    def make_key(self, key: Any) -> str:
        """Hash a logical key the way every intercepted command does."""
        return self._hasher(key)

    def pack(self, value: Any) -> str | None:
        return self._codec.pack(value)

    def unpack(self, record: str | bytes) -> UnpackedResult | str | None:
        return self._codec.unpack(record)

    async def set_pack(self, hashed_key: str, value: Any, setter: Setter) -> str | None:
        """Pack and chunk a value through a caller-supplied setter."""
        return await self._chunker.write(hashed_key, value, setter)

    async def get_pack(self, hashed_key: str, getter: Getter) -> UnpackedResult | str | None:
        """Read and reassemble a value through a caller-supplied getter."""
        return await self._chunker.read(hashed_key, getter)

    def expiration_args(self, command: str, trailing: tuple[Any, ...]) -> list[Any]:
        """Default expiration tokens to inject for a command.

        Only write commands get them, and only when the caller passed no
        EX/EXAT/PX/PXAT flag and the settings carry a finite expiration.
        """
        if self.role_of(command) != CommandRole.WRITE:
            return []
        if any(_is_expiration_flag(arg) for arg in trailing):
            return []
        return self._settings.expiration_args()

    async def execute(self, command: str, *args: Any) -> Any:
        """Run a store command with key hashing and value packing applied.

        Args:
            command: Store command name (case-insensitive)
            *args: Command arguments, the logical key first

        Returns:
            For write commands "OK" or None; for reads an UnpackedResult, a raw
            string or None; for deletes the master record's delete count;
            otherwise the store's reply

        Raises:
            CommandRoleError: Delete requested but no read command is configured
        """
        role = self.role_of(command)
        if not args or role is None:
            return await self._send(command, *args)

        key, rest = args[0], args[1:]
        hashed_key = self.make_key(key)

        if role == CommandRole.WRITE:
            if not rest:
                # No value to pack, the store reports the arity error
                return await self._send(command, hashed_key)
            value, trailing = rest[0], rest[1:]
            expiration = self.expiration_args(command, trailing)

            async def setter(target: str, packed: str) -> Any:
                return await self._send(command, target, packed, *expiration, *trailing)

            stale_getter, stale_deleter = self._stale_leaf_access()
            return await self._chunker.write(
                hashed_key, value, setter, getter=stale_getter, deleter=stale_deleter
            )

        if role == CommandRole.READ:

            async def getter(target: str) -> Any:
                return await self._send(command, target, *rest)

            return await self._chunker.read(hashed_key, getter)

        if role == CommandRole.DELETE:
            read_command = self.command_for(CommandRole.READ)
            if read_command is None:
                raise CommandRoleError(f"No read command in the role table to resolve '{command}'")

            async def getter(target: str) -> Any:
                return await self._send(read_command, target, *rest)

            async def deleter(target: str) -> Any:
                return await self._send(command, target, *rest)

            return await self._chunker.delete(hashed_key, getter, deleter)

        return await self._send(command, hashed_key, *rest)

    def _stale_leaf_access(self) -> tuple[Getter | None, Deleter | None]:
        # Only a chunking namespace can hold leaves to clean up
        read_command = self.command_for(CommandRole.READ)
        delete_command = self.command_for(CommandRole.DELETE)
        if not self._chunker.chunking_enabled or read_command is None or delete_command is None:
            return None, None

        async def getter(target: str) -> Any:
            return await self._send(read_command, target)

        async def deleter(target: str) -> Any:
            return await self._send(delete_command, target)

        return getter, deleter

    async def _send(self, command: str, *args: Any) -> Any:
        return await self._client.execute_command(command.upper(), *args)

    async def set(self, key: Any, value: Any, *args: Any) -> str | None:
        """Pack, chunk and store a value; trailing args are SET options (EX, NX, ...)."""
        return await self.execute("set", key, value, *args)

    async def get(self, key: Any, *args: Any) -> UnpackedResult | str | None:
        return await self.execute("get", key, *args)

    async def delete(self, key: Any, *args: Any) -> Any:
        """Delete a value and all of its chunk leaves."""
        return await self.execute("del", key, *args)

    async def exists(self, key: Any, *args: Any) -> Any:
        return await self.execute("exists", key, *args)

    async def expire(self, key: Any, seconds: int, *args: Any) -> Any:
        return await self.execute("expire", key, seconds, *args)

    async def ttl(self, key: Any) -> Any:
        return await self.execute("ttl", key)

    async def persist(self, key: Any) -> Any:
        return await self.execute("persist", key)

    async def expiretime(self, key: Any) -> Any:
        return await self.execute("expiretime", key)

    async def multi_get(self, keys: list[Any]) -> MultiGetResult:
        """Get many logical keys in one pipelined round trip."""
        return await self._bulk.multi_get(keys)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined above
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._client, name)

    async def self_test(self) -> bool:
        """Write, read and delete a canary value.

        Failures, including store errors, are reported as
        ConnectivityTestFailure events and never raised.

        Returns:
            True if all three steps behaved as expected
        """
        try:
            added = await self.set(CANARY_KEY, CANARY_VALUE)
            fetched = await self.get(CANARY_KEY)
            deleted = await self.delete(CANARY_KEY)
        except Exception as e:
            # Reported rather than raised: the dispatcher is usable once the store recovers
            emit(
                "connectivity_test_failed",
                level=logging.ERROR,
                on_event=self._on_event,
                error=ConnectivityTestFailure(f"Connectivity test raised {type(e).__name__}: {e}"),
                log=logger,
                prefix=self._settings.prefix,
            )
            return False

        passed = (
            is_write_ok(added)
            and isinstance(fetched, UnpackedResult)
            and fetched.value == CANARY_VALUE
            and deleted == 1
        )
        if passed:
            emit(
                "connectivity_test_passed",
                on_event=self._on_event,
                log=logger,
                prefix=self._settings.prefix,
            )
        else:
            emit(
                "connectivity_test_failed",
                level=logging.ERROR,
                on_event=self._on_event,
                error=ConnectivityTestFailure("Connectivity canary did not round-trip"),
                log=logger,
                prefix=self._settings.prefix,
                added=repr(added),
                fetched=repr(fetched),
                deleted=repr(deleted),
            )
        return passed


async def create_dispatcher(
    client: StoreClient,
    settings: CacheSettings,
    *,
    test_connectivity: bool = True,
    on_event: EventHook | None = None,
) -> CommandDispatcher:
    """Build a dispatcher and optionally run the connectivity self-test.

    The dispatcher is returned whether or not the self-test passes.
    """
    dispatcher = CommandDispatcher(client, settings, on_event=on_event)
    if test_connectivity:
        await dispatcher.self_test()
    return dispatcher
