"""In-memory message source for tests and local replay.

Mimics a broker queue: payloads are published into an asyncio queue and
handed out as deliveries that must be settled exactly once.
"""

import asyncio
from collections.abc import AsyncIterator


class InMemoryDelivery:
    """A delivery whose settlement is recorded instead of sent to a broker."""

    def __init__(self, body: bytes, delivery_tag: int = 0) -> None:
        self.body = body
        self.delivery_tag = delivery_tag
        self.acked = False
        self.nacked = False
        self.requeued = False

    @property
    def settled(self) -> bool:
        return self.acked or self.nacked

    def _settle(self) -> None:
        if self.settled:
            raise RuntimeError(f"delivery {self.delivery_tag} already settled")

    async def ack(self) -> None:
        """Acknowledge the message."""
        self._settle()
        self.acked = True

    async def nack(self, requeue: bool = False) -> None:
        """Reject the message."""
        self._settle()
        self.nacked = True
        self.requeued = requeue

    def __repr__(self) -> str:
        return f"InMemoryDelivery(tag={self.delivery_tag}, {len(self.body)} bytes)"


class InMemoryMessageSource:
    """MessageSourcePort backed by an asyncio queue.

    ``close()`` enqueues a None marker; iteration ends once the payloads
    published before it are drained.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[InMemoryDelivery | None] = asyncio.Queue(
            maxsize=maxsize
        )
        self._next_tag = 0
        self._closed = False
        self.delivered: list[InMemoryDelivery] = []

    async def publish(self, body: bytes | str) -> InMemoryDelivery:
        """Enqueue one payload and return the delivery that will carry it."""
        if self._closed:
            raise RuntimeError("message source is closed")
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._next_tag += 1
        delivery = InMemoryDelivery(body, delivery_tag=self._next_tag)
        await self._queue.put(delivery)
        return delivery

    async def close(self) -> None:
        """Stop accepting payloads and end iteration after draining."""
        if not self._closed:
            self._closed = True
            await self._queue.put(None)

    async def deliveries(self) -> AsyncIterator[InMemoryDelivery]:
        """Yield deliveries in publish order until closed."""
        while True:
            item = await self._queue.get()
            if item is None:
                return
            self.delivered.append(item)
            yield item
