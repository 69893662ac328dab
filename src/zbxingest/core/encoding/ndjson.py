"""NDJSON encoders for points and log entries."""

import json
from collections.abc import AsyncIterable, Iterable
from typing import Any

from zbxingest.core.models import LogEntry, MetricPoint


def point_to_dict(point: MetricPoint) -> dict[str, Any]:
    """Return a JSON-serializable mapping for *point*."""
    return {
        "measurement": point.measurement,
        "tags": point.tags,
        "fields": point.fields,
        "timestamp": point.timestamp,
    }


def _join_lines(lines: list[str]) -> str:
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def encode_points(points: Iterable[MetricPoint]) -> str:
    """Encode points to newline-delimited JSON.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no points.
    """
    return _join_lines([json.dumps(point_to_dict(p)) for p in points])


async def encode_points_async(points: AsyncIterable[MetricPoint]) -> str:
    """Encode an async stream of points to newline-delimited JSON."""
    return encode_points([p async for p in points])


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode log entries to newline-delimited JSON.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no entries.
    """
    lines = []
    for entry in entries:
        obj = {
            "timestamp": entry.timestamp,
            "level": entry.level,
            "message": entry.message,
            "attributes": entry.attributes,
        }
        lines.append(json.dumps(obj))
    return _join_lines(lines)


async def encode_logs_async(entries: AsyncIterable[LogEntry]) -> str:
    """Encode an async stream of log entries to newline-delimited JSON."""
    return encode_logs([e async for e in entries])
