"""Point assembler: combines a typed message with its classified key."""

import math

from zbxingest.core.classify import classify
from zbxingest.core.exceptions import PointConstructionError
from zbxingest.core.models import (
    FieldValue,
    MetricPoint,
    StructuredKey,
    TypedMetricMessage,
)

_FIELD_TYPES = (float, int, bool, str)


def _check_field(name: object, value: FieldValue) -> None:
    if not isinstance(name, str) or not name:
        raise PointConstructionError(f"invalid field key {name!r}")
    if not isinstance(value, _FIELD_TYPES):
        raise PointConstructionError(
            f"unsupported type {type(value).__name__} for field {name!r}"
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise PointConstructionError(f"{value} is an unsupported value for field {name!r}")


def _check_tag(name: object, value: object) -> None:
    if not isinstance(name, str) or not name:
        raise PointConstructionError(f"invalid tag key {name!r}")
    if not isinstance(value, str):
        raise PointConstructionError(f"tag {name!r} must be a string, got {value!r}")


def validate_point(point: MetricPoint) -> MetricPoint:
    """Check *point* against the sink's encoding rules.

    Raises:
        PointConstructionError: Empty measurement, no fields, or a field or
            tag the sink cannot encode.
    """
    if not point.measurement:
        raise PointConstructionError("point has an empty measurement")
    if not point.fields:
        raise PointConstructionError(f"point {point.measurement!r} has no fields")
    for name, value in point.fields.items():
        _check_field(name, value)
    for name, value in point.tags.items():
        _check_tag(name, value)
    return point


def assemble_point(
    message: TypedMetricMessage, structured: StructuredKey | None = None
) -> MetricPoint:
    """Build the final point for *message*.

    ``host`` and ``server`` from the message always overwrite any tag of
    the same name set by the classifier.

    Args:
        message: Typed message to convert.
        structured: Pre-computed classification of ``message.key``; the key
            is classified here when omitted.

    Returns:
        A validated MetricPoint.

    Raises:
        PointConstructionError: The point cannot be encoded for the sink.
    """
    if structured is None:
        structured = classify(message.key, message.value)
    tags = {**structured.tags, "host": message.host, "server": message.server}
    point = MetricPoint(
        measurement=structured.measurement,
        tags=tags,
        fields=dict(structured.fields),
        timestamp=message.timestamp,
    )
    return validate_point(point)
