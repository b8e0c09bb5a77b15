"""
Pytest configuration and fixtures for Text Relay Backend tests.
"""

import asyncio
import os

import httpx
import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
os.environ["N8N_WEBHOOK_URL"] = "http://processor.test/webhook/analyze"
os.environ["LOG_LEVEL"] = "DEBUG"

from text_relay_backend.configuration import load_settings
from text_relay_backend.correlation_service import CorrelationService
from text_relay_backend.main import create_app


class FakeDispatcher:
    """Records dispatched requests instead of calling a processor."""

    def __init__(self, error: Exception | None = None):
        self.calls: list[tuple[str, str]] = []
        self.error = error
        self.closed = False

    async def dispatch(self, request_id: str, text: str) -> None:
        self.calls.append((request_id, text))
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True

    async def wait_for_calls(self, count: int = 1) -> None:
        """Yield to the loop until ``count`` dispatches were recorded."""
        for _ in range(1000):
            if len(self.calls) >= count:
                return
            await asyncio.sleep(0.001)
        raise AssertionError(f"expected {count} dispatch(es), saw {len(self.calls)}")

    @property
    def last_id(self) -> str:
        return self.calls[-1][0]


@pytest.fixture
def dispatcher_factory():
    return FakeDispatcher


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def service(dispatcher):
    return CorrelationService(dispatcher, timeout_ms=5_000)


@pytest.fixture
def short_service(dispatcher):
    """Service whose requests expire almost immediately."""
    return CorrelationService(dispatcher, timeout_ms=50)


@pytest.fixture
def settings():
    return load_settings(
        overrides={"processor": {"webhook_url": "http://processor.test/hook"}},
        environ={},
    )


@pytest.fixture
def app(settings, service):
    return create_app(settings=settings, service=service)


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
async def async_client(app):
    """Client sharing the test's event loop, for requests that block on callbacks."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
