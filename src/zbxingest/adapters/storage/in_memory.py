"""In-memory storage adapters for points and logs."""

from collections.abc import AsyncIterable

from zbxingest.core.models import LogEntry, MetricPoint


class InMemoryPointStorage:
    """In-memory implementation of PointSinkPort.

    Stores points in a list. Suitable for testing and
    low-volume deployments where persistence is not required.
    """

    def __init__(self) -> None:
        self._points: list[MetricPoint] = []

    async def write(self, point: MetricPoint) -> None:
        """Write a point to storage."""
        self._points.append(point)

    async def read(self, since: float = 0) -> AsyncIterable[MetricPoint]:
        """Read points since the given timestamp.

        Returns points with timestamp > since, ordered by timestamp ascending.
        """
        filtered = [p for p in self._points if p.timestamp > since]
        for point in sorted(filtered, key=lambda p: p.timestamp):
            yield point

    async def count(self) -> int:
        """Return total number of stored points."""
        return len(self._points)

    async def clear(self) -> None:
        """Remove all points."""
        self._points.clear()


class InMemoryLogStorage:
    """In-memory implementation of LogStoragePort.

    Stores log entries in a list. Suitable for testing and
    low-volume deployments where persistence is not required.
    """

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []

    async def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        self._entries.append(entry)

    async def read(
        self, since: float = 0, level: str | None = None
    ) -> AsyncIterable[LogEntry]:
        """Read log entries since the given timestamp.

        Returns entries with timestamp > since, ordered by timestamp ascending,
        restricted to *level* when given.
        """
        filtered = [
            e
            for e in self._entries
            if e.timestamp > since and (level is None or e.level == level)
        ]
        for entry in sorted(filtered, key=lambda e: e.timestamp):
            yield entry
