"""Redis-backed cache client.

Builds a ``redis.asyncio.Redis`` connection from store credentials and wraps
it in a CommandDispatcher configured with one CacheSettings preset. Settings
may be given as a CacheSettings value or as the name of a preset in
CACHE_SETTINGS ("redis", "test").

Example:
    configs = load_store_configs()
    cache = await get_cache_client(configs.get("local"), "test")
    await cache.set({"user": 42}, profile)
    result = await cache.get({"user": 42})
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from redis.asyncio import Redis

from ..core.config import (
    DEFAULT_SECRETS_ENV,
    CacheSettings,
    StoreCredentials,
    get_settings,
    load_store_configs,
)
from ..core.events import EventHook, emit
from ..core.exceptions import ConnectivityTestFailure
from ..runtime.chunking import is_write_ok
from ..runtime.dispatcher import CommandDispatcher, create_dispatcher

logger = logging.getLogger(__name__)

ClientFactory = Callable[[StoreCredentials], Any]


def connect(credentials: StoreCredentials) -> Redis:
    """Create a Redis client that returns ``str`` replies."""
    return Redis(
        host=credentials.host,
        port=credentials.port,
        password=credentials.password,
        db=credentials.db,
        decode_responses=True,
    )


async def check_raw_client(client: Any, on_event: EventHook | None = None) -> bool:
    """Connectivity canary for a client used without the dispatcher."""
    key = f"s{int(time.time() * 1000)}"
    data = "foo is bar"
    try:
        added = await client.execute_command("SET", key, data)
        fetched = await client.execute_command("GET", key)
        deleted = await client.execute_command("DEL", key)
    except Exception as e:
        # Reported rather than raised, like the dispatcher's self-test
        emit(
            "connectivity_test_failed",
            level=logging.ERROR,
            on_event=on_event,
            error=ConnectivityTestFailure(f"Connectivity test raised {type(e).__name__}: {e}"),
            log=logger,
            use_proxy=False,
        )
        return False

    if is_write_ok(added) and fetched == data and deleted == 1:
        emit("connectivity_test_passed", on_event=on_event, log=logger, use_proxy=False)
        return True
    emit(
        "connectivity_test_failed",
        level=logging.ERROR,
        on_event=on_event,
        error=ConnectivityTestFailure("Connectivity canary did not round-trip"),
        log=logger,
        use_proxy=False,
    )
    return False


async def get_cache_client(
    credentials: StoreCredentials,
    settings: CacheSettings | str = "redis",
    *,
    use_proxy: bool = True,
    test_connectivity: bool = True,
    on_event: EventHook | None = None,
    client_factory: ClientFactory = connect,
) -> CommandDispatcher | Any:
    """Connect to the store and wrap the client in a dispatcher.

    Args:
        credentials: Store host, port, password and database
        settings: Settings value or preset name
        use_proxy: Return the plain client instead of a dispatcher when False
        test_connectivity: Run the write/read/delete canary (failures are logged only)
        on_event: Optional observer
        client_factory: Builds the client from credentials

    Returns:
        CommandDispatcher, or the plain client when ``use_proxy`` is False
    """
    if isinstance(settings, str):
        settings = get_settings(settings)
    client = client_factory(credentials)

    if not use_proxy:
        if test_connectivity:
            await check_raw_client(client, on_event=on_event)
        return client

    return await create_dispatcher(
        client, settings, test_connectivity=test_connectivity, on_event=on_event
    )


async def get_cache_client_from_env(
    database: str,
    settings: CacheSettings | str = "redis",
    *,
    env_var: str = DEFAULT_SECRETS_ENV,
    **kwargs: Any,
) -> CommandDispatcher | Any:
    """Like get_cache_client, with credentials read from the secrets variable."""
    credentials = load_store_configs(env_var).get(database)
    return await get_cache_client(credentials, settings, **kwargs)
