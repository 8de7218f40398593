"""Core components."""

from .config import (
    CACHE_SETTINGS,
    DEFAULT_COMMAND_ROLES,
    CacheSettings,
    StoreConfigs,
    StoreCredentials,
    get_settings,
    load_store_configs,
)
from .enums import EXPIRATION_FLAGS, CommandRole
from .events import CacheEvent, EventHook, emit
from .exceptions import (
    CacheError,
    CascadeDeleteWarning,
    CommandRoleError,
    ConfigurationError,
    ConnectivityTestFailure,
    KeyHashError,
    PackError,
    PartialChunkFailure,
    UnpackError,
)
from .protocols import StoreClient, StorePipeline

__all__ = [
    "CACHE_SETTINGS",
    "DEFAULT_COMMAND_ROLES",
    "EXPIRATION_FLAGS",
    "CacheSettings",
    "StoreConfigs",
    "StoreCredentials",
    "get_settings",
    "load_store_configs",
    "CommandRole",
    "CacheEvent",
    "EventHook",
    "emit",
    "CacheError",
    "CascadeDeleteWarning",
    "CommandRoleError",
    "ConfigurationError",
    "ConnectivityTestFailure",
    "KeyHashError",
    "PackError",
    "PartialChunkFailure",
    "UnpackError",
    "StoreClient",
    "StorePipeline",
]
