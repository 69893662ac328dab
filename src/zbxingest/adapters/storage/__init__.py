"""Storage adapters implementing core ports."""

from zbxingest.adapters.storage.in_memory import (
    InMemoryLogStorage,
    InMemoryPointStorage,
)
from zbxingest.adapters.storage.ring_buffer import (
    RingBufferLogStorage,
    RingBufferPointStorage,
)
from zbxingest.adapters.storage.sqlite_points import SQLitePointStorage

__all__ = [
    "InMemoryLogStorage",
    "InMemoryPointStorage",
    "RingBufferLogStorage",
    "RingBufferPointStorage",
    "SQLitePointStorage",
]
