"""Shared test fixtures for all test modules."""

from pathlib import Path

import pytest

try:
    import httpx
except ImportError:
    httpx = None


@pytest.fixture
def points_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for point storage tests."""
    return str(tmp_path / "points.db")


@pytest.fixture
def point_storage():
    """Fixture providing an empty in-memory point storage."""
    from zbxingest.adapters.storage.in_memory import InMemoryPointStorage

    return InMemoryPointStorage()


@pytest.fixture
def log_storage():
    """Fixture providing an empty in-memory log storage."""
    from zbxingest.adapters.storage.in_memory import InMemoryLogStorage

    return InMemoryLogStorage()


@pytest.fixture
def message_source():
    """Fixture providing an open in-memory message source."""
    from zbxingest.adapters.broker.in_memory import InMemoryMessageSource

    return InMemoryMessageSource()


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(point_storage, log_storage)
            async with asgi_test_client(app) as client:
                response = await client.get("/points")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
