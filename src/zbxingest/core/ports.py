"""Port interfaces for sinks, log storage and message sources.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import AsyncIterable, AsyncIterator
from typing import Protocol, runtime_checkable

from zbxingest.core.models import LogEntry, MetricPoint


@runtime_checkable
class PointSinkPort(Protocol):
    """Port for the metrics sink receiving finished points.

    Examples: InMemoryPointStorage, RingBufferPointStorage, SQLitePointStorage.
    """

    async def write(self, point: MetricPoint) -> None:
        """Write a point to the sink."""
        ...

    def read(self, since: float = 0) -> AsyncIterable[MetricPoint]:
        """Read points with timestamp > since, ordered by timestamp ascending."""
        ...


@runtime_checkable
class LogStoragePort(Protocol):
    """Port for log storage operations.

    Examples: InMemoryLogStorage, RingBufferLogStorage.
    """

    async def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        ...

    def read(
        self, since: float = 0, level: str | None = None
    ) -> AsyncIterable[LogEntry]:
        """Read log entries since the given timestamp.

        Args:
            since: Unix timestamp. Returns entries with timestamp > since.
            level: Only return entries with this level, when given.

        Returns:
            Async iterable of LogEntry objects, ordered by timestamp ascending.
        """
        ...


@runtime_checkable
class Delivery(Protocol):
    """One message handed over by the broker.

    A delivery must be settled exactly once, by ``ack`` or ``nack``.
    """

    body: bytes

    async def ack(self) -> None:
        """Acknowledge the message."""
        ...

    async def nack(self, requeue: bool = False) -> None:
        """Reject the message, optionally asking the broker to requeue it."""
        ...


@runtime_checkable
class MessageSourcePort(Protocol):
    """Port for the broker feeding raw payloads.

    Examples: InMemoryMessageSource.
    """

    def deliveries(self) -> AsyncIterator[Delivery]:
        """Yield deliveries until the source is closed."""
        ...
