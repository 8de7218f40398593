"""Custom exception hierarchy.

Most of these errors are never raised across the public API. Packing,
unpacking and reconstruction failures are recovered locally: the error is
instantiated, attached to a telemetry event and the caller sees a miss or a
no-op. Only programming errors (unhashable keys, a role table without a read
command, bad settings) and store transport errors propagate.
"""

from __future__ import annotations


class CacheError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigurationError(CacheError):
    """Invalid cache settings or store credentials."""

    pass


class KeyHashError(CacheError):
    """Logical key cannot be canonicalized for hashing."""

    def __init__(self, message: str, key: object = None) -> None:
        super().__init__(message)
        self.key = key


class PackError(CacheError):
    """Value cannot be serialized into a wire record."""

    pass


class UnpackError(CacheError):
    """Wire record is malformed or cannot be decompressed."""

    pass


class PartialChunkFailure(CacheError):
    """One or more leaves of a chunked record are missing."""

    def __init__(
        self,
        message: str,
        hashed_key: str | None = None,
        missing_keys: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.hashed_key = hashed_key
        self.missing_keys = missing_keys or []


class CascadeDeleteWarning(CacheError):
    """A leaf survived the deletion of its master record."""

    def __init__(
        self,
        message: str,
        hashed_key: str | None = None,
        failed_keys: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.hashed_key = hashed_key
        self.failed_keys = failed_keys or []


class ConnectivityTestFailure(CacheError):
    """The write/read/delete canary against the store did not pass."""

    pass


class CommandRoleError(CacheError):
    """Command role table cannot serve the requested operation."""

    pass
