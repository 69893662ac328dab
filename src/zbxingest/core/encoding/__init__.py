"""Wire encoders for points and log entries."""

from zbxingest.core.encoding.line_protocol import encode_line, encode_lines
from zbxingest.core.encoding.ndjson import encode_logs, encode_points

__all__ = [
    "encode_line",
    "encode_lines",
    "encode_logs",
    "encode_points",
]
