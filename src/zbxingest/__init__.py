"""zbxingest - turns legacy monitoring event payloads into time-series points."""

from zbxingest.adapters.broker import InMemoryDelivery, InMemoryMessageSource
from zbxingest.adapters.logging import IngestLogHandler
from zbxingest.adapters.storage import (
    InMemoryLogStorage,
    InMemoryPointStorage,
    RingBufferLogStorage,
    RingBufferPointStorage,
    SQLitePointStorage,
)
from zbxingest.config import IngestConfig
from zbxingest.consumer import ConsumerStats, IngestConsumer
from zbxingest.core.classify import classify
from zbxingest.core.exceptions import (
    IngestError,
    MalformedPayloadError,
    PointConstructionError,
    TimestampParseError,
    ValueParseError,
)
from zbxingest.core.models import (
    FloatMetric,
    LogEntry,
    MetricPoint,
    StringMetric,
    StructuredKey,
)
from zbxingest.core.pipeline import parse_payload

__all__ = [
    "ConsumerStats",
    "FloatMetric",
    "InMemoryDelivery",
    "InMemoryLogStorage",
    "InMemoryMessageSource",
    "InMemoryPointStorage",
    "IngestConfig",
    "IngestConsumer",
    "IngestError",
    "IngestLogHandler",
    "LogEntry",
    "MalformedPayloadError",
    "MetricPoint",
    "PointConstructionError",
    "RingBufferLogStorage",
    "RingBufferPointStorage",
    "SQLitePointStorage",
    "StringMetric",
    "StructuredKey",
    "TimestampParseError",
    "ValueParseError",
    "classify",
    "parse_payload",
]
