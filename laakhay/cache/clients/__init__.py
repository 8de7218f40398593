"""Store client construction."""

from .redis_proxy import (
    check_raw_client,
    connect,
    get_cache_client,
    get_cache_client_from_env,
)

__all__ = [
    "check_raw_client",
    "connect",
    "get_cache_client",
    "get_cache_client_from_env",
]
