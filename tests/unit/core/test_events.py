"""Unit tests for event emission."""

from __future__ import annotations

import logging

from laakhay.cache import CacheEvent, UnpackError
from laakhay.cache.core import emit


def test_emit_logs_with_structured_fields(caplog):
    with caplog.at_level(logging.WARNING, logger="laakhay.cache"):
        emit("chunk_leaves_missing", level=logging.WARNING, hashed_key="h")

    record = caplog.records[0]
    assert record.getMessage() == "chunk_leaves_missing"
    assert record.hashed_key == "h"


def test_emit_forwards_to_observer():
    seen: list[CacheEvent] = []
    error = UnpackError("bad record")
    event = emit("unpack_failed", on_event=seen.append, error=error, length=3)

    assert seen == [event]
    assert event.error is error
    assert event.fields == {"length": 3}
    assert event.level == logging.INFO


def test_error_details_logged(caplog):
    with caplog.at_level(logging.ERROR, logger="laakhay.cache"):
        emit("pack_failed", level=logging.ERROR, error=ValueError("boom"))

    assert caplog.records[0].error_type == "ValueError"
    assert caplog.records[0].error_message == "boom"
