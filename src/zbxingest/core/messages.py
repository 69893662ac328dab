"""Typed message builder."""

from zbxingest.core.exceptions import ValueParseError
from zbxingest.core.models import (
    FloatMetric,
    NormalizedFields,
    StringMetric,
    TypedMetricMessage,
    ValueKind,
)


def parse_float(text: str) -> float:
    """Parse *text* as a 64-bit float.

    Raises:
        ValueParseError: The text is not a float literal.
    """
    try:
        return float(text)
    except ValueError as exc:
        raise ValueParseError(f"value is not numeric: {text!r}") from exc


def build_message(normalized: NormalizedFields) -> TypedMetricMessage:
    """Build the message variant selected by ``normalized.kind``.

    Args:
        normalized: Output of the field normalizer.

    Returns:
        FloatMetric for numeric values, StringMetric for textual ones.

    Raises:
        ValueParseError: A numeric value could not be parsed.
    """
    if normalized.kind is ValueKind.TEXTUAL:
        return StringMetric(
            host=normalized.host,
            timestamp=normalized.timestamp,
            value=normalized.value_text,
            key=normalized.key,
            server=normalized.server,
        )
    return FloatMetric(
        host=normalized.host,
        timestamp=normalized.timestamp,
        value=parse_float(normalized.value_text),
        key=normalized.key,
        server=normalized.server,
    )
