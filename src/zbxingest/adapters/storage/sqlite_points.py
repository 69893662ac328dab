"""SQLite storage adapter for metric points."""

import json
from collections.abc import AsyncIterable

from zbxingest.adapters.storage.sqlite_base import (
    AsyncConnectionManager,
    _safe_json_loads,
)
from zbxingest.core.models import MetricPoint

_POINTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS points (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    measurement TEXT NOT NULL,
    timestamp REAL NOT NULL,
    tags TEXT NOT NULL DEFAULT '{}',
    fields TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_points_timestamp ON points(timestamp);
CREATE INDEX IF NOT EXISTS idx_points_measurement ON points(measurement);
"""

_INSERT_POINT = """
INSERT INTO points (measurement, timestamp, tags, fields) VALUES (?, ?, ?, ?)
"""

_SELECT_POINTS_SINCE = """
SELECT measurement, timestamp, tags, fields FROM points
WHERE timestamp > ?
ORDER BY timestamp ASC, id ASC
"""

_COUNT_POINTS = """
SELECT COUNT(*) FROM points
"""

_DELETE_POINTS_BEFORE = """
DELETE FROM points WHERE timestamp < ?
"""

_CLEAR_POINTS = """
DELETE FROM points
"""


class SQLitePointStorage:
    """SQLite implementation of PointSinkPort.

    Stores points in a SQLite database using aiosqlite for non-blocking
    async operations. Tags and fields are stored as JSON text. Uses WAL
    mode for file databases.

    For :memory: databases, a persistent connection is maintained since
    in-memory databases are connection-scoped in SQLite.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._manager = AsyncConnectionManager(db_path, _POINTS_SCHEMA)

    async def write(self, point: MetricPoint) -> None:
        """Write a point to storage."""
        async with self._manager.connection() as db:
            await db.execute(
                _INSERT_POINT,
                (
                    point.measurement,
                    point.timestamp,
                    json.dumps(point.tags),
                    json.dumps(point.fields),
                ),
            )
            await db.commit()

    async def read(self, since: float = 0) -> AsyncIterable[MetricPoint]:
        """Read points since the given timestamp.

        Returns points with timestamp > since, ordered by timestamp ascending.
        """
        async with self._manager.connection() as db:
            async with db.execute(_SELECT_POINTS_SINCE, (since,)) as cursor:
                async for row in cursor:
                    yield MetricPoint(
                        measurement=row[0],
                        timestamp=row[1],
                        tags=_safe_json_loads(row[2]),
                        fields=_safe_json_loads(row[3]),
                    )

    async def count(self) -> int:
        """Return total number of points in storage."""
        async with self._manager.connection() as db:
            async with db.execute(_COUNT_POINTS) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def delete_before(self, timestamp: float) -> int:
        """Delete points with timestamp < given value."""
        async with self._manager.connection() as db:
            cursor = await db.execute(_DELETE_POINTS_BEFORE, (timestamp,))
            deleted = cursor.rowcount
            await db.commit()
            return deleted

    async def clear(self) -> None:
        """Remove all points."""
        async with self._manager.connection() as db:
            await db.execute(_CLEAR_POINTS)
            await db.commit()

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()
