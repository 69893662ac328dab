"""Python logging handler adapter.

Bridges the standard library logging module to the LogStoragePort so that
parse failures reported by the consumer can be queried back as LogEntry
objects (for example through the ``/logs`` endpoint).
"""

import asyncio
import logging
import traceback

from zbxingest.core.models import LogEntry
from zbxingest.core.ports import LogStoragePort

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

_DEFAULT_INCLUDE_ATTRS = ["module", "funcName", "lineno", "pathname"]


class IngestLogHandler(logging.Handler):
    """Logging handler that writes log records to a LogStoragePort.

    Inside a running event loop the write is scheduled as a task (await
    ``flush_async()`` to wait for it); outside one it runs to completion.

    Example:
        ```python
        from zbxingest.adapters.logging import IngestLogHandler
        from zbxingest.adapters.storage import InMemoryLogStorage

        storage = InMemoryLogStorage()
        logging.getLogger("zbxingest").addHandler(IngestLogHandler(storage))
        ```
    """

    def __init__(
        self,
        storage: LogStoragePort,
        include_attrs: list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a log storage backend.

        Args:
            storage: Storage adapter implementing LogStoragePort.
            include_attrs: LogRecord attributes to include. Defaults to
                ["module", "funcName", "lineno", "pathname"].
            level: Minimum level handled.
        """
        super().__init__(level)
        self._storage = storage
        self._include_attrs = include_attrs or _DEFAULT_INCLUDE_ATTRS
        self._pending: set[asyncio.Task[None]] = set()

    def to_entry(self, record: logging.LogRecord) -> LogEntry:
        """Convert a LogRecord into a LogEntry."""
        attr_mapping: dict[str, str | int | float | bool] = {
            "module": record.name,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
        }
        attributes: dict[str, str | int | float | bool] = {
            key: attr_mapping[key] for key in self._include_attrs if key in attr_mapping
        }

        # extra={...} values passed to the logging call
        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
                value, (str, int, float, bool)
            ):
                attributes[key] = value

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                attributes["exc_type"] = exc_type.__name__
            if exc_value is not None:
                attributes["exc_message"] = str(exc_value)
            if exc_tb is not None:
                attributes["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        return LogEntry(
            timestamp=record.created,
            level=record.levelname,
            message=record.getMessage(),
            attributes=attributes,
        )

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record to the storage backend."""
        try:
            entry = self.to_entry(record)
        except Exception:
            self.handleError(record)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._storage.write(entry))
            return
        task = loop.create_task(self._storage.write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush_async(self) -> None:
        """Wait for writes scheduled from inside the event loop."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
