"""Core domain models for the ingestion pipeline."""

from dataclasses import dataclass, field
from enum import Enum

FieldValue = float | int | bool | str


class QuoteStyle(Enum):
    """Quoting convention used consistently within one payload."""

    SINGLE = "'"
    DOUBLE = '"'

    @property
    def char(self) -> str:
        return self.value

    def marker(self, label: str) -> str:
        """Return *label* wrapped in this style's quote character."""
        return f"{self.value}{label}{self.value}"


class ValueKind(Enum):
    """Whether a normalized value is parsed as a number or kept as text."""

    NUMERIC = "numeric"
    TEXTUAL = "textual"


@dataclass(frozen=True)
class ExtractedFields:
    """The five raw substrings carved out of a payload.

    Each substring still carries the structural punctuation around it
    (separators, quotes, the closing brace on ``server``).

    Attributes:
        host: Raw text between the host and clock markers.
        clock: Raw text between the clock and value markers.
        value: Raw text between the value and key markers.
        key: Raw text between the key and server markers.
        server: Raw text after the server marker.
        quote_style: Quoting convention detected for the payload.
    """

    host: str
    clock: str
    value: str
    key: str
    server: str
    quote_style: QuoteStyle


@dataclass(frozen=True)
class NormalizedFields:
    """Fields after punctuation trimming and quote unification.

    Attributes:
        host: Host name.
        timestamp: Unix timestamp in seconds.
        value_text: Metric value text, not yet parsed.
        key: Item key, e.g. ``system.cpu.util[,idle]``.
        server: Name of the server that forwarded the event.
        kind: Whether ``value_text`` is numeric or textual.
    """

    host: str
    timestamp: float
    value_text: str
    key: str
    server: str
    kind: ValueKind


@dataclass(frozen=True)
class FloatMetric:
    """A metric message carrying a numeric value."""

    host: str
    timestamp: float
    value: float
    key: str
    server: str


@dataclass(frozen=True)
class StringMetric:
    """A metric message carrying a textual value, kept verbatim."""

    host: str
    timestamp: float
    value: str
    key: str
    server: str


TypedMetricMessage = FloatMetric | StringMetric


@dataclass(frozen=True)
class StructuredKey:
    """Decomposition of an item key into measurement, tags and fields.

    Attributes:
        measurement: Name of the time series (never empty).
        tags: String dimensions derived from the key.
        fields: Field name to value; holds at least one entry.
    """

    measurement: str
    tags: dict[str, str] = field(default_factory=dict)
    fields: dict[str, FieldValue] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricPoint:
    """A fully assembled time-series point ready for a sink.

    Attributes:
        measurement: Name of the time series.
        tags: String dimensions, always including ``host`` and ``server``.
        fields: Typed values.
        timestamp: Unix timestamp in seconds.
    """

    measurement: str
    tags: dict[str, str]
    fields: dict[str, FieldValue]
    timestamp: float


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Log level (e.g., INFO, WARNING, ERROR).
        message: The log message.
        attributes: Additional structured fields.
    """

    timestamp: float
    level: str
    message: str
    attributes: dict[str, str | int | float | bool] = field(default_factory=dict)
