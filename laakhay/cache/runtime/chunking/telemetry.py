"""Structured logging for chunking operations.

Each helper logs a snake_case event with structured ``extra`` fields and
forwards it to the optional observer.
"""

from __future__ import annotations

import logging

from ...core.events import EventHook, emit
from ...core.exceptions import CascadeDeleteWarning, PartialChunkFailure
from .definitions import ChunkPlan

logger = logging.getLogger(__name__)


def log_chunk_plan(
    *,
    plan: ChunkPlan,
    max_chunk_bytes: float,
    on_event: EventHook | None = None,
) -> None:
    """Log that a payload is being split.

    Args:
        plan: The split layout
        max_chunk_bytes: Configured chunk bound
        on_event: Optional observer
    """
    emit(
        "chunk_plan_created",
        level=logging.DEBUG,
        on_event=on_event,
        log=logger,
        hashed_key=plan.hashed_key,
        total_chunks=len(plan.leaves),
        packed_length=plan.packed_length,
        max_chunk_bytes=max_chunk_bytes,
    )


def log_chunk_write_failed(
    *,
    hashed_key: str,
    failed_keys: list[str],
    on_event: EventHook | None = None,
) -> None:
    """Log a write where the master or some leaves were not acknowledged."""
    emit(
        "chunk_write_failed",
        level=logging.ERROR,
        on_event=on_event,
        log=logger,
        hashed_key=hashed_key,
        failed_keys=failed_keys,
    )


def log_partial_chunk(
    *,
    hashed_key: str,
    missing_keys: list[str],
    on_event: EventHook | None = None,
) -> None:
    """Log a read that found the master but not every leaf."""
    error = PartialChunkFailure(
        f"Failed to find every leaf record for {hashed_key}",
        hashed_key=hashed_key,
        missing_keys=missing_keys,
    )
    emit(
        "chunk_leaves_missing",
        level=logging.WARNING,
        on_event=on_event,
        error=error,
        log=logger,
        hashed_key=hashed_key,
        missing_keys=missing_keys,
    )


def log_chunk_reassembly_failed(
    *,
    hashed_key: str,
    total_chunks: int,
    on_event: EventHook | None = None,
) -> None:
    """Log leaves that were all present but did not join into a value record."""
    emit(
        "chunk_reassembly_failed",
        level=logging.WARNING,
        on_event=on_event,
        log=logger,
        hashed_key=hashed_key,
        total_chunks=total_chunks,
    )


def log_cascade_delete_warning(
    *,
    hashed_key: str,
    failed_keys: list[str],
    stale: bool = False,
    on_event: EventHook | None = None,
) -> None:
    """Log leaves that were not deleted.

    Args:
        hashed_key: Master record key
        failed_keys: Leaf keys whose delete did not report 1
        stale: True when cleaning up leaves of an overwritten record
        on_event: Optional observer
    """
    error = CascadeDeleteWarning(
        f"Failed to delete every known leaf item for {hashed_key}",
        hashed_key=hashed_key,
        failed_keys=failed_keys,
    )
    emit(
        "stale_leaf_delete_failed" if stale else "cascade_delete_incomplete",
        level=logging.WARNING,
        on_event=on_event,
        error=error,
        log=logger,
        hashed_key=hashed_key,
        failed_keys=failed_keys,
    )
