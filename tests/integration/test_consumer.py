"""Integration tests for the ingestion consumer."""

import asyncio
import logging

import pytest

from tests.payloads import json_payload, repr_payload
from zbxingest.adapters.broker.in_memory import InMemoryDelivery, InMemoryMessageSource
from zbxingest.adapters.logging import IngestLogHandler
from zbxingest.adapters.storage.in_memory import InMemoryLogStorage, InMemoryPointStorage
from zbxingest.config import IngestConfig
from zbxingest.consumer import PIPELINE_STAGE, SINK_STAGE, IngestConsumer
from zbxingest.core.models import MetricPoint

pytestmark = [pytest.mark.tier(2), pytest.mark.tra("Consumer")]


class FailingSink(InMemoryPointStorage):
    """Sink whose writes always fail."""

    async def write(self, point: MetricPoint) -> None:
        raise ConnectionError("sink unavailable")


class TrackingSink(InMemoryPointStorage):
    """Sink that records the peak number of concurrent writes."""

    def __init__(self) -> None:
        super().__init__()
        self.active = 0
        self.peak = 0

    async def write(self, point: MetricPoint) -> None:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        await super().write(point)


async def _run(
    payloads: list[str],
    sink: InMemoryPointStorage | None = None,
    config: IngestConfig | None = None,
) -> tuple[IngestConsumer, InMemoryMessageSource, InMemoryPointStorage]:
    source = InMemoryMessageSource()
    sink = sink if sink is not None else InMemoryPointStorage()
    for payload in payloads:
        await source.publish(payload)
    await source.close()
    consumer = IngestConsumer(source, sink, config)
    await consumer.run()
    return consumer, source, sink


class TestIngestConsumer:
    """Tests for IngestConsumer."""

    @pytest.mark.consumer
    async def test_writes_points_and_acks(self) -> None:
        """Every valid payload becomes a point; every delivery is acked."""
        consumer, source, sink = await _run(
            [repr_payload(clock=1600000000 + i) for i in range(5)]
        )

        assert await sink.count() == 5
        assert all(d.acked for d in source.delivered)
        assert consumer.stats.received == 5
        assert consumer.stats.emitted == 5
        assert consumer.stats.failed == 0

    @pytest.mark.consumer
    async def test_both_dialects_produce_equal_points(self) -> None:
        """A repr payload and its json twin store the same point."""
        _, _, sink = await _run([repr_payload(), json_payload()])

        points = [p async for p in sink.read()]

        assert len(points) == 2
        assert points[0] == points[1]

    @pytest.mark.consumer
    async def test_malformed_payload_is_acked_without_point(self) -> None:
        """A payload missing a marker is dropped and acknowledged."""
        bad = "{'host': 'web01', 'value': 1, 'key': 'a.b', 'server': 's'}"

        consumer, source, sink = await _run([bad])

        assert await sink.count() == 0
        assert source.delivered[0].acked
        assert consumer.stats.failures_by_stage == {"extract": 1}

    @pytest.mark.consumer
    async def test_failure_does_not_affect_siblings(self) -> None:
        """Valid messages around a bad one are still written."""
        consumer, _, sink = await _run(
            [repr_payload(), repr_payload(clock="never"), repr_payload(host="web02")]
        )

        hosts = sorted([p.tags["host"] async for p in sink.read()])

        assert hosts == ["web01", "web02"]
        assert consumer.stats.failures_by_stage == {"normalize": 1}

    @pytest.mark.consumer
    async def test_requeue_on_failure_nacks(self) -> None:
        """With requeue_on_failure, failed deliveries are nacked with requeue."""
        config = IngestConfig(requeue_on_failure=True)

        _, source, _ = await _run([repr_payload(clock="never"), repr_payload()], config=config)
        bad, good = source.delivered

        assert bad.nacked and bad.requeued
        assert good.acked

    @pytest.mark.consumer
    async def test_sink_failure_is_logged_and_acked(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An exception from the sink counts as a sink-stage failure."""
        with caplog.at_level(logging.ERROR, logger="zbxingest.consumer"):
            consumer, source, _ = await _run([repr_payload()], sink=FailingSink())

        assert consumer.stats.failures_by_stage == {SINK_STAGE: 1}
        assert source.delivered[0].acked
        assert "sink write failed" in caplog.text

    @pytest.mark.consumer
    async def test_concurrency_is_bounded(self) -> None:
        """No more than max_concurrency messages are in flight."""
        sink = TrackingSink()
        config = IngestConfig(max_concurrency=3)

        consumer, _, _ = await _run(
            [repr_payload(clock=1600000000 + i) for i in range(12)],
            sink=sink,
            config=config,
        )

        assert consumer.stats.emitted == 12
        assert 1 < sink.peak <= 3

    @pytest.mark.consumer
    async def test_handle_returns_point(self) -> None:
        """handle() returns the written point and settles the delivery."""
        consumer = IngestConsumer(InMemoryMessageSource(), InMemoryPointStorage())
        delivery = InMemoryDelivery(repr_payload().encode(), delivery_tag=1)

        point = await consumer.handle(delivery)

        assert point is not None
        assert point.measurement == "cpu"
        assert delivery.acked

    @pytest.mark.consumer
    async def test_failure_log_carries_stage_and_clipped_payload(self) -> None:
        """Failure logs record the stage and a truncated payload."""
        log_storage = InMemoryLogStorage()
        handler = IngestLogHandler(log_storage)
        logger = logging.getLogger("zbxingest.consumer")
        logger.addHandler(handler)
        try:
            bad = repr_payload(clock="never")
            await _run([bad], config=IngestConfig(payload_log_limit=10))
            await handler.flush_async()
        finally:
            logger.removeHandler(handler)

        warnings = [e async for e in log_storage.read(level="WARNING")]

        assert len(warnings) == 1
        assert warnings[0].attributes["stage"] == "normalize"
        assert warnings[0].attributes["payload"] == bad[:10] + "..."

    @pytest.mark.consumer
    async def test_double_settle_error_is_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A settle failure is logged instead of escaping handle()."""
        consumer = IngestConsumer(InMemoryMessageSource(), InMemoryPointStorage())
        delivery = InMemoryDelivery(repr_payload().encode())
        await delivery.ack()

        with caplog.at_level(logging.ERROR, logger="zbxingest.consumer"):
            await consumer.handle(delivery)

        assert "failed to settle delivery" in caplog.text

    @pytest.mark.consumer
    async def test_oversized_clock_is_a_normalize_failure(self) -> None:
        """A clock beyond the 64-bit range is dropped as a timestamp error."""
        consumer, source, sink = await _run([repr_payload(clock=10**400)])

        assert await sink.count() == 0
        assert source.delivered[0].acked
        assert consumer.stats.failures_by_stage == {"normalize": 1}

    @pytest.mark.consumer
    async def test_unexpected_parse_error_is_not_a_sink_failure(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Non-IngestError exceptions from parsing are counted as pipeline failures."""

        def explode(body: bytes) -> None:
            raise OverflowError("int too large to convert to float")

        monkeypatch.setattr("zbxingest.consumer.run_pipeline", explode)
        sink = InMemoryPointStorage()

        with caplog.at_level(logging.ERROR, logger="zbxingest.consumer"):
            consumer, source, _ = await _run([repr_payload()], sink=sink)

        assert consumer.stats.failures_by_stage == {PIPELINE_STAGE: 1}
        assert SINK_STAGE not in consumer.stats.failures_by_stage
        assert source.delivered[0].acked
        assert "parsing failed unexpectedly" in caplog.text
        assert "sink write failed" not in caplog.text
