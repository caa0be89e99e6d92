"""
Pytest configuration and async fixtures.
"""

import sys
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

# Add project root to sys.path
sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from gateway_core.protocol import ProtocolHandler
from services.iclock_gateway.main import app
from shared_libraries.config import get_settings
from shared_libraries.state import build_gateway


@pytest.fixture
def gateway() -> ProtocolHandler:
    """Fresh in-memory gateway state attached to the app for one test."""
    handler = build_gateway(get_settings())
    app.state.gateway = handler
    return handler


@pytest.fixture
async def async_client(gateway: ProtocolHandler) -> AsyncGenerator[AsyncClient, None]:
    """Async client for testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


class StepClock:
    """Deterministic clock; each call returns the next queued time or repeats the last."""

    def __init__(self, *times):
        self.times = list(times)
        self.last = self.times[0]

    def __call__(self):
        if self.times:
            self.last = self.times.pop(0)
        return self.last


@pytest.fixture
def step_clock():
    return StepClock
