"""Record timestamps."""

import time
from typing import Optional


def now_ms() -> int:
    """Current time as epoch milliseconds, the unit of the ``t`` wire field."""
    return int(time.time() * 1000)


def cache_age(timestamp: Optional[int], now: Optional[int] = None) -> Optional[int]:
    """Age in milliseconds of a record written at ``timestamp``.

    Returns None for records without a timestamp (raw passthrough values).
    """
    if not timestamp:
        return None
    return (now if now is not None else now_ms()) - timestamp
