"""Unit tests for the exception hierarchy."""

from laakhay.cache import (
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


def test_all_errors_share_base():
    for error_type in (
        CascadeDeleteWarning,
        CommandRoleError,
        ConfigurationError,
        ConnectivityTestFailure,
        KeyHashError,
        PackError,
        PartialChunkFailure,
        UnpackError,
    ):
        assert issubclass(error_type, CacheError)


def test_partial_chunk_failure_context():
    """PartialChunkFailure carries the master key and missing leaves."""
    error = PartialChunkFailure("missing", hashed_key="h", missing_keys=["h-2"])
    assert str(error) == "missing"
    assert error.hashed_key == "h"
    assert error.missing_keys == ["h-2"]


def test_cascade_delete_warning_defaults():
    error = CascadeDeleteWarning("leaf survived")
    assert error.failed_keys == []
    assert error.hashed_key is None


def test_key_hash_error_keeps_key():
    key = {"bad": object()}
    assert KeyHashError("nope", key).key is key
