"""Structured events for recoverable cache conditions.

Every condition the cache recovers from locally (a value that will not
serialize, a corrupt record, a missing chunk leaf, a leaf that survived a
cascading delete) is logged with structured ``extra`` fields and, when an
observer is injected, forwarded to it as a CacheEvent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("laakhay.cache")


@dataclass(frozen=True)
class CacheEvent:
    """A reported cache condition.

    Attributes:
        name: snake_case event name (also the log message)
        level: logging level the event was logged at
        fields: structured context (hashed keys, sizes, counts)
        error: the recovered error, if the event reports one
    """

    name: str
    level: int = logging.INFO
    fields: dict[str, Any] = field(default_factory=dict)
    error: Exception | None = None


EventHook = Callable[[CacheEvent], None]


def emit(
    name: str,
    *,
    level: int = logging.INFO,
    on_event: EventHook | None = None,
    error: Exception | None = None,
    log: logging.Logger | None = None,
    **fields: Any,
) -> CacheEvent:
    """Log an event and hand it to the observer.

    Args:
        name: Event name
        level: Logging level
        on_event: Optional observer callback
        error: Recovered error to attach
        log: Logger to use (defaults to the package logger)
        **fields: Structured context

    Returns:
        The emitted event
    """
    event = CacheEvent(name=name, level=level, fields=fields, error=error)
    extra = dict(fields)
    if error is not None:
        extra["error_type"] = type(error).__name__
        extra["error_message"] = str(error)
    (log or logger).log(level, name, extra=extra)
    if on_event is not None:
        on_event(event)
    return event
