"""Cache settings and store credentials.

Architecture:
    Settings are an explicit, immutable value built once and handed to the
    dispatcher, codec and chunker. There is no module-level "current config";
    callers that want a preset look it up in CACHE_SETTINGS and pass it on.

    Store credentials come from an external secrets provider. The only
    hand-off implemented here is a JSON document held in an environment
    variable, read once at construction time.

Presets:
    - "redis": production namespace, 28 day expiration, chunking disabled
    - "test": test namespace, 2 hour expiration, 999 byte chunks
"""

from __future__ import annotations

import math
import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .enums import CommandRole
from .exceptions import ConfigurationError

DEFAULT_COMMAND_ROLES: dict[str, CommandRole] = {
    "set": CommandRole.WRITE,
    "get": CommandRole.READ,
    "del": CommandRole.DELETE,
    "exists": CommandRole.PASSTHROUGH,
    "expire": CommandRole.PASSTHROUGH,
    "ttl": CommandRole.PASSTHROUGH,
    "persist": CommandRole.PASSTHROUGH,
    "expiretime": CommandRole.PASSTHROUGH,
}

DEFAULT_SECRETS_ENV = "LAAKHAY_CACHE_SECRETS"


class CacheSettings(BaseModel):
    """Per-namespace cache behaviour.

    ``expiration_seconds`` and ``max_chunk_bytes`` accept ``math.inf`` to
    disable default expiration and chunking respectively.
    """

    prefix: str = ""
    expiration_seconds: float = Field(default=math.inf, ge=0)
    max_chunk_bytes: float = Field(default=math.inf, ge=1)
    compression_enabled: bool = True
    compression_threshold_bytes: int = Field(default=800, ge=0)
    command_roles: dict[str, CommandRole] = Field(
        default_factory=lambda: dict(DEFAULT_COMMAND_ROLES)
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("command_roles")
    @classmethod
    def validate_command_roles(cls, v: dict[str, CommandRole]) -> dict[str, CommandRole]:
        """Normalize command names to lowercase and allow a single read command."""
        roles = {name.lower(): role for name, role in v.items()}
        readers = [name for name, role in roles.items() if role == CommandRole.READ]
        if len(readers) > 1:
            raise ValueError(f"only one read command allowed, got {sorted(readers)}")
        return roles

    @property
    def has_default_expiration(self) -> bool:
        """True when writes without an explicit expiration get one injected."""
        return bool(self.expiration_seconds) and not math.isinf(self.expiration_seconds)

    @property
    def chunking_enabled(self) -> bool:
        return not math.isinf(self.max_chunk_bytes)

    def expiration_args(self) -> list[str | int]:
        """Store arguments applying the default expiration, if any."""
        if not self.has_default_expiration:
            return []
        return ["EX", math.ceil(self.expiration_seconds)]


class StoreCredentials(BaseModel):
    """Connection parameters for one store database."""

    host: str = Field(..., min_length=1)
    port: int = Field(default=6379, gt=0, lt=65536)
    password: str | None = None
    db: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class StoreConfigs(BaseModel):
    """Named databases (or partitions of one database) available to the cache."""

    databases: dict[str, StoreCredentials]

    model_config = ConfigDict(frozen=True)

    def get(self, database: str) -> StoreCredentials:
        try:
            return self.databases[database]
        except KeyError:
            raise ConfigurationError(
                f"Unknown database '{database}', available: {sorted(self.databases)}"
            ) from None


CACHE_SETTINGS: dict[str, CacheSettings] = {
    "redis": CacheSettings(
        prefix="prod",
        expiration_seconds=28 * 24 * 60 * 60,
        max_chunk_bytes=math.inf,
        compression_threshold_bytes=800,
    ),
    "test": CacheSettings(
        prefix="test",
        expiration_seconds=2 * 60 * 60,
        max_chunk_bytes=999,
        compression_threshold_bytes=800,
    ),
}


def get_settings(name: str) -> CacheSettings:
    """Look up a settings preset by name.

    Raises:
        ConfigurationError: If no preset has that name
    """
    try:
        return CACHE_SETTINGS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown cache settings '{name}', available: {sorted(CACHE_SETTINGS)}"
        ) from None


def load_store_configs(env_var: str = DEFAULT_SECRETS_ENV) -> StoreConfigs:
    """Read store credentials from a JSON document held in an environment variable.

    The document has the shape ``{"databases": {"local": {"host": ..., ...}}}``.

    Raises:
        ConfigurationError: If the variable is unset or the document is invalid
    """
    raw = os.environ.get(env_var)
    if not raw:
        raise ConfigurationError(f"{env_var} not set")
    try:
        return StoreConfigs.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid store configs in {env_var}: {e}") from e
