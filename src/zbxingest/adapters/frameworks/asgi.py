"""ASGI adapter exposing ingestion over HTTP.

A framework-agnostic ASGI application usable with any ASGI server
(uvicorn, hypercorn, daphne). It accepts raw payloads on ``/ingest`` and
serves the stored points and logs back.
"""

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from zbxingest.adapters.frameworks.query_params import (
    _parse_level_param,
    _parse_precision_param,
    _parse_since_param,
)
from zbxingest.core.encoding.line_protocol import encode_lines
from zbxingest.core.encoding.ndjson import (
    encode_logs_async,
    encode_points_async,
    point_to_dict,
)
from zbxingest.core.exceptions import IngestError
from zbxingest.core.pipeline import parse_payload
from zbxingest.core.ports import LogStoragePort, PointSinkPort

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

NDJSON = "application/x-ndjson"
LINE_PROTOCOL = "text/plain; charset=utf-8"


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Returns:
        Dictionary mapping parameter names to lists of values.
        Returns empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


async def _read_body(receive: Receive) -> bytes:
    """Collect the full request body from ``http.request`` messages."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body."""
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _handle_endpoint(
    send: Send,
    endpoint_func: Callable[[], Coroutine[Any, Any, str]],
    content_type: str,
    log_message: str,
) -> None:
    """Execute an endpoint function with error handling and send response."""
    try:
        body = await endpoint_func()
        await _send_response(send, 200, content_type, body)
    except Exception:
        logger.exception(log_message)
        error_body = json.dumps({"error": "Internal Server Error"})
        await _send_response(send, 500, "application/json", error_body)


async def _ingest(
    receive: Receive, send: Send, point_storage: PointSinkPort
) -> None:
    """Parse one payload from the request body and store its point."""
    body = await _read_body(receive)
    try:
        point = parse_payload(body)
    except IngestError as exc:
        logger.warning(
            "rejected payload, %s stage failed: %s",
            exc.stage,
            exc,
            extra={"stage": exc.stage},
        )
        error_body = json.dumps({"error": exc.stage, "message": str(exc)})
        await _send_response(send, 422, "application/json", error_body)
        return
    await point_storage.write(point)
    await _send_response(send, 202, "application/json", json.dumps(point_to_dict(point)))


def create_asgi_app(
    point_storage: PointSinkPort,
    log_storage: LogStoragePort,
) -> ASGIApp:
    """Create an ASGI app with /ingest, /points, /points/line and /logs.

    Args:
        point_storage: Sink receiving points and serving them back.
        log_storage: Storage serving log entries.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        path = scope["path"]
        method = scope.get("method", "GET")

        if path == "/ingest":
            if method != "POST":
                await _send_response(send, 405, "text/plain", "Method Not Allowed")
                return
            await _ingest(receive, send, point_storage)
        elif path == "/points":
            since = _parse_since_param(_parse_query_params(scope))
            await _handle_endpoint(
                send,
                lambda: encode_points_async(point_storage.read(since=since)),
                NDJSON,
                "Error encoding points endpoint",
            )
        elif path == "/points/line":
            params = _parse_query_params(scope)
            since = _parse_since_param(params)
            precision = _parse_precision_param(params)

            async def lines() -> str:
                points = [p async for p in point_storage.read(since=since)]
                return encode_lines(points, precision)

            await _handle_endpoint(
                send, lines, LINE_PROTOCOL, "Error encoding line protocol endpoint"
            )
        elif path == "/logs":
            params = _parse_query_params(scope)
            since = _parse_since_param(params)
            level = _parse_level_param(params)
            await _handle_endpoint(
                send,
                lambda: encode_logs_async(log_storage.read(since=since, level=level)),
                NDJSON,
                "Error encoding logs endpoint",
            )
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
