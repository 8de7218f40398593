"""Store client interface consumed by the cache.

``redis.asyncio.Redis`` satisfies these protocols. Commands are always sent
through ``execute_command`` with positional Redis tokens, so trailing flags
such as ``EX 60`` or ``NX`` reach the store exactly as the caller wrote them.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StorePipeline(Protocol):
    """Queued batch of commands executed in one round trip.

    Used as an async context manager so the connection is released after
    ``execute``.
    """

    async def __aenter__(self) -> StorePipeline: ...

    async def __aexit__(self, *exc_info: Any) -> Any: ...

    def execute_command(self, *args: Any, **options: Any) -> Any:
        """Queue a command."""
        ...

    async def execute(self, raise_on_error: bool = True) -> list[Any]:
        """Run queued commands; with ``raise_on_error=False`` errors come back in place."""
        ...


@runtime_checkable
class StoreClient(Protocol):
    """Connected key-value store client."""

    async def execute_command(self, *args: Any, **options: Any) -> Any:
        """Execute a single command and return its reply."""
        ...

    def pipeline(self, transaction: bool = True) -> StorePipeline:
        """Start a pipelined batch."""
        ...
