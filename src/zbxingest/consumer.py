"""Ingestion consumer: drives deliveries from a source through the pipeline.

Each delivery is handled by its own task. The number of tasks in flight is
bounded by ``IngestConfig.max_concurrency``. A failing message is logged
and settled; it never affects sibling tasks or the consumer loop.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field

from zbxingest.config import IngestConfig
from zbxingest.core.exceptions import IngestError
from zbxingest.core.extract import decode_payload
from zbxingest.core.models import MetricPoint
from zbxingest.core.pipeline import run_pipeline
from zbxingest.core.ports import Delivery, MessageSourcePort, PointSinkPort

logger = logging.getLogger(__name__)

PIPELINE_STAGE = "pipeline"
SINK_STAGE = "sink"


@dataclass
class ConsumerStats:
    """Counters maintained by the consumer.

    Attributes:
        received: Deliveries taken from the source.
        emitted: Points written to the sink.
        failed: Deliveries dropped (or requeued) after a failure.
        failures_by_stage: Failure count per pipeline stage.
    """

    received: int = 0
    emitted: int = 0
    failed: int = 0
    failures_by_stage: Counter[str] = field(default_factory=Counter)

    def record_failure(self, stage: str) -> None:
        self.failed += 1
        self.failures_by_stage[stage] += 1


class IngestConsumer:
    """Consumes raw payloads and writes the resulting points to a sink.

    Example:
        ```python
        source = InMemoryMessageSource()
        consumer = IngestConsumer(source, InMemoryPointStorage())
        await source.publish(payload)
        await source.close()
        stats = await consumer.run()
        ```
    """

    def __init__(
        self,
        source: MessageSourcePort,
        sink: PointSinkPort,
        config: IngestConfig | None = None,
    ) -> None:
        self._source = source
        self._sink = sink
        self.config = config or IngestConfig()
        self.stats = ConsumerStats()

    def _clip(self, payload: str) -> str:
        limit = self.config.payload_log_limit
        if len(payload) <= limit:
            return payload
        return payload[:limit] + "..."

    async def run(self) -> ConsumerStats:
        """Handle deliveries until the source is exhausted.

        Returns once every spawned task has finished, also when the loop
        itself is cancelled.
        """
        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        tasks: set[asyncio.Task[MetricPoint | None]] = set()

        async def bounded(delivery: Delivery) -> MetricPoint | None:
            try:
                return await self.handle(delivery)
            finally:
                semaphore.release()

        logger.info(
            "consuming from %s (max_concurrency=%d)",
            self.config.queue_name,
            self.config.max_concurrency,
        )
        try:
            async for delivery in self._source.deliveries():
                await semaphore.acquire()
                task = asyncio.create_task(bounded(delivery))
                tasks.add(task)
                task.add_done_callback(tasks.discard)
        finally:
            if tasks:
                await asyncio.gather(*tasks)
        logger.info(
            "consumer stopped: received=%d emitted=%d failed=%d",
            self.stats.received,
            self.stats.emitted,
            self.stats.failed,
        )
        return self.stats

    async def handle(self, delivery: Delivery) -> MetricPoint | None:
        """Parse one delivery, write its point and settle it.

        Returns:
            The point written to the sink, or None if the message failed.
        """
        self.stats.received += 1
        point = await self._process(delivery)
        await self._settle(delivery, failed=point is None)
        return point

    async def _process(self, delivery: Delivery) -> MetricPoint | None:
        try:
            result = run_pipeline(delivery.body)
        except IngestError as exc:
            self.stats.record_failure(exc.stage)
            logger.warning(
                "dropping message, %s stage failed: %s",
                exc.stage,
                exc,
                extra={
                    "stage": exc.stage,
                    "payload": self._clip(exc.payload or decode_payload(delivery.body)),
                },
            )
            return None
        except Exception:
            self.stats.record_failure(PIPELINE_STAGE)
            logger.exception(
                "parsing failed unexpectedly",
                extra={
                    "stage": PIPELINE_STAGE,
                    "payload": self._clip(decode_payload(delivery.body)),
                },
            )
            return None

        try:
            await self._sink.write(result.point)
        except Exception:
            self.stats.record_failure(SINK_STAGE)
            logger.exception(
                "sink write failed",
                extra={
                    "stage": SINK_STAGE,
                    "payload": self._clip(decode_payload(delivery.body)),
                },
            )
            return None
        self.stats.emitted += 1
        return result.point

    async def _settle(self, delivery: Delivery, failed: bool) -> None:
        try:
            if failed and self.config.requeue_on_failure:
                await delivery.nack(requeue=True)
            else:
                await delivery.ack()
        except Exception:
            logger.exception("failed to settle delivery")
