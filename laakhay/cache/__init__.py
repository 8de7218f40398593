"""Laakhay Cache - hashed, compressed and chunked records over a key-value store."""

from .clients import connect, get_cache_client, get_cache_client_from_env
from .codec import (
    CompressedEnvelope,
    KeyHasher,
    MasterRecord,
    PayloadCodec,
    UnpackedResult,
    ValueRecord,
    make_key,
)
from .core import (
    CACHE_SETTINGS,
    CacheError,
    CacheEvent,
    CacheSettings,
    CascadeDeleteWarning,
    CommandRole,
    CommandRoleError,
    ConfigurationError,
    ConnectivityTestFailure,
    EventHook,
    KeyHashError,
    PackError,
    PartialChunkFailure,
    StoreConfigs,
    StoreCredentials,
    UnpackError,
    get_settings,
    load_store_configs,
)
from .runtime import (
    BulkReader,
    Chunker,
    CommandDispatcher,
    MultiGetResult,
    create_dispatcher,
)
from .utils import cache_age, now_ms

__version__ = "0.1.0"

__all__ = [
    # Clients
    "connect",
    "get_cache_client",
    "get_cache_client_from_env",
    # Codec
    "CompressedEnvelope",
    "KeyHasher",
    "MasterRecord",
    "PayloadCodec",
    "UnpackedResult",
    "ValueRecord",
    "make_key",
    # Core
    "CACHE_SETTINGS",
    "CacheSettings",
    "CommandRole",
    "StoreConfigs",
    "StoreCredentials",
    "get_settings",
    "load_store_configs",
    "CacheEvent",
    "EventHook",
    # Exceptions
    "CacheError",
    "CascadeDeleteWarning",
    "CommandRoleError",
    "ConfigurationError",
    "ConnectivityTestFailure",
    "KeyHashError",
    "PackError",
    "PartialChunkFailure",
    "UnpackError",
    # Runtime
    "BulkReader",
    "Chunker",
    "CommandDispatcher",
    "MultiGetResult",
    "create_dispatcher",
    # Utils
    "cache_age",
    "now_ms",
]
