"""Ring buffer storage adapters for points and logs.

Provides bounded in-memory storage that automatically evicts oldest
entries when the buffer is full. Useful for long-running consumers that
need predictable memory usage.
"""

from collections import deque
from collections.abc import AsyncIterable

from zbxingest.core.models import LogEntry, MetricPoint


class RingBufferPointStorage:
    """Ring buffer implementation of PointSinkPort.

    Stores points in a fixed-size circular buffer. When the buffer is
    full, the oldest point is evicted to make room for the new one.

    Args:
        max_size: Maximum number of points to store.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._buffer: deque[MetricPoint] = deque(maxlen=max_size)

    async def write(self, point: MetricPoint) -> None:
        """Write a point to storage."""
        self._buffer.append(point)

    async def read(self, since: float = 0) -> AsyncIterable[MetricPoint]:
        """Read points since the given timestamp.

        Returns points with timestamp > since, ordered by timestamp ascending.
        """
        filtered = [p for p in self._buffer if p.timestamp > since]
        for point in sorted(filtered, key=lambda p: p.timestamp):
            yield point


class RingBufferLogStorage:
    """Ring buffer implementation of LogStoragePort.

    Args:
        max_size: Maximum number of entries to store.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._buffer: deque[LogEntry] = deque(maxlen=max_size)

    async def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        self._buffer.append(entry)

    async def read(
        self, since: float = 0, level: str | None = None
    ) -> AsyncIterable[LogEntry]:
        """Read log entries since the given timestamp, optionally by level."""
        filtered = [
            e
            for e in self._buffer
            if e.timestamp > since and (level is None or e.level == level)
        ]
        for entry in sorted(filtered, key=lambda e: e.timestamp):
            yield entry
