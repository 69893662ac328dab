"""InfluxDB line protocol encoder for metric points."""

from collections.abc import Iterable

from zbxingest.core.assemble import validate_point
from zbxingest.core.models import FieldValue, MetricPoint

_PRECISION_SCALE = {"s": 1, "ms": 10**3, "us": 10**6, "ns": 10**9}


def _escape_measurement(text: str) -> str:
    return text.replace("\\", "\\\\").replace(",", "\\,").replace(" ", "\\ ")


def _escape_key(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace("=", "\\=")
        .replace(" ", "\\ ")
    )


def _format_field(value: FieldValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _format_timestamp(timestamp: float, precision: str) -> str:
    scale = _PRECISION_SCALE[precision]
    whole = int(timestamp)
    fraction = round((timestamp - whole) * scale)
    return str(whole * scale + fraction)


def encode_line(point: MetricPoint, precision: str = "ns") -> str:
    """Encode one point as a line-protocol line (no trailing newline).

    Tags are sorted by key; tags with empty values are omitted.

    Args:
        point: The point to encode.
        precision: Timestamp precision, one of ``s``, ``ms``, ``us``, ``ns``.

    Raises:
        PointConstructionError: The point breaks the encoding rules.
        ValueError: Unknown precision.
    """
    if precision not in _PRECISION_SCALE:
        raise ValueError(f"unknown precision {precision!r}")
    validate_point(point)
    head = _escape_measurement(point.measurement)
    for name in sorted(point.tags):
        value = point.tags[name]
        if value:
            head += f",{_escape_key(name)}={_escape_key(value)}"
    fields = ",".join(
        f"{_escape_key(name)}={_format_field(value)}"
        for name, value in point.fields.items()
    )
    return f"{head} {fields} {_format_timestamp(point.timestamp, precision)}"


def encode_lines(points: Iterable[MetricPoint], precision: str = "ns") -> str:
    """Encode points as newline-terminated line protocol.

    Returns:
        One line per point. Empty string if no points.
    """
    lines = [encode_line(point, precision) for point in points]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
