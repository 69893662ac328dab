"""BDD step definitions for payload ingestion.

Steps are synchronous; consumer runs are driven with asyncio.run().
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from tests.payloads import json_payload, repr_payload
from zbxingest.adapters.broker.in_memory import InMemoryMessageSource
from zbxingest.adapters.storage.in_memory import InMemoryPointStorage
from zbxingest.consumer import ConsumerStats, IngestConsumer
from zbxingest.core.models import MetricPoint

MISSING_CLOCK = "{'host': 'web01', 'value': 1, 'key': 'cpu.idle', 'server': 'zbx01'}"


@dataclass
class IngestionContext:
    """State shared between the steps of one scenario."""

    sink: InMemoryPointStorage = field(default_factory=InMemoryPointStorage)
    payloads: list[str] = field(default_factory=list)
    source: InMemoryMessageSource | None = None
    stats: ConsumerStats | None = None
    points: list[MetricPoint] = field(default_factory=list)


def run_async(coro: Any) -> Any:
    """Run a coroutine synchronously."""
    return asyncio.run(coro)


@pytest.fixture
def ctx() -> IngestionContext:
    """Fresh scenario context for each test."""
    return IngestionContext()


@given("an in-memory point sink")
def step_sink(ctx: IngestionContext) -> None:
    ctx.sink = InMemoryPointStorage()


@given(parsers.parse('a single-quoted payload for key "{key}" with value {value:g}'))
def step_repr_payload(ctx: IngestionContext, key: str, value: float) -> None:
    ctx.payloads.append(repr_payload(key=key, value=value))


@given(parsers.parse('a double-quoted payload for key "{key}" with value {value:g}'))
def step_json_payload(ctx: IngestionContext, key: str, value: float) -> None:
    ctx.payloads.append(json_payload(key=key, value=value))


@given("a payload missing the clock marker")
def step_missing_clock(ctx: IngestionContext) -> None:
    ctx.payloads.append(MISSING_CLOCK)


@when("the consumer processes the published payloads")
def step_consume(ctx: IngestionContext) -> None:
    async def consume() -> None:
        ctx.source = InMemoryMessageSource()
        for payload in ctx.payloads:
            await ctx.source.publish(payload)
        await ctx.source.close()
        ctx.stats = await IngestConsumer(ctx.source, ctx.sink).run()
        ctx.points = [p async for p in ctx.sink.read()]

    run_async(consume())


@then(parsers.parse("{count:d} point is stored"))
@then(parsers.parse("{count:d} points are stored"))
def step_point_count(ctx: IngestionContext, count: int) -> None:
    assert len(ctx.points) == count


@then(parsers.parse('the stored point has measurement "{measurement}"'))
def step_measurement(ctx: IngestionContext, measurement: str) -> None:
    assert ctx.points[0].measurement == measurement


@then("all stored points are equal")
def step_points_equal(ctx: IngestionContext) -> None:
    assert all(point == ctx.points[0] for point in ctx.points)


@then("every delivery is acknowledged")
def step_all_acked(ctx: IngestionContext) -> None:
    assert ctx.source is not None
    assert all(delivery.acked for delivery in ctx.source.delivered)


@then(parsers.parse('the consumer reports {count:d} failure in stage "{stage}"'))
def step_failures(ctx: IngestionContext, count: int, stage: str) -> None:
    assert ctx.stats is not None
    assert ctx.stats.failures_by_stage[stage] == count
