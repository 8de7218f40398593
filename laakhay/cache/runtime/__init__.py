"""Runtime components: dispatcher, chunking and bulk reads."""

from .bulk import BulkReader, MultiGetResult
from .chunking import Chunker
from .dispatcher import CommandDispatcher, create_dispatcher

__all__ = [
    "BulkReader",
    "MultiGetResult",
    "Chunker",
    "CommandDispatcher",
    "create_dispatcher",
]
