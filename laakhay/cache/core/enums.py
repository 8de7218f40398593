"""Core enumerations.

Key Types:
    - CommandRole: Semantic role of a store command (write/read/delete/passthrough)
"""

from enum import Enum


class CommandRole(str, Enum):
    """Semantic role of a store command.

    The dispatcher rewrites arguments according to the role:
    - WRITE: hash key, pack/chunk value, inject default expiration
    - READ: hash key, reassemble chunks and unpack
    - DELETE: hash key, cascade to chunk leaves
    - PASSTHROUGH: hash key only
    """

    WRITE = "write"
    READ = "read"
    DELETE = "delete"
    PASSTHROUGH = "passthrough"


# Redis flags that already carry an expiration for SET
EXPIRATION_FLAGS = frozenset({"ex", "exat", "px", "pxat"})
