"""Root pytest configuration for TRPG mock infrastructure tests."""

import random
from typing import Iterator

import pytest

from trpg_mocks.broker import BrokerTestHelper
from trpg_mocks.clock import FakeClock
from trpg_mocks.http_boundary import HTTPMockServer
from trpg_mocks.providers import ProviderRegistry
from trpg_mocks.server import IntegratedMockServer
from trpg_mocks.storage import DataStore, MockDatabase


@pytest.fixture
def clock() -> FakeClock:
    """Virtual clock; nothing fires until a test advances it."""
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def registry(clock) -> ProviderRegistry:
    return ProviderRegistry(clock)


@pytest.fixture
def store() -> DataStore:
    return DataStore()


@pytest.fixture
def database() -> Iterator[MockDatabase]:
    db = MockDatabase()
    yield db
    db.close()


@pytest.fixture
def seeded_database(database) -> MockDatabase:
    database.seed_test_data()
    return database


@pytest.fixture
def broker(clock) -> Iterator[BrokerTestHelper]:
    helper = BrokerTestHelper(clock, simulate_latency=10)
    yield helper
    helper.cleanup()


@pytest.fixture
def http_server(clock) -> Iterator[HTTPMockServer]:
    """HTTP mock server with zero latency. Not started."""
    server = HTTPMockServer(base_url="http://localhost:3001", clock=clock, simulate_latency=0)
    yield server
    server.stop()


@pytest.fixture
def mock_server(clock) -> Iterator[IntegratedMockServer]:
    """Integrated server on the fake clock. Not started; always stopped afterwards."""
    server = IntegratedMockServer(
        {
            "ai_providers": {"simulate_latency": 0},
            "websocket": {"simulate_latency": 10},
            "http": {"simulate_latency": 0},
            "database": {"seed_test_data": True},
        },
        clock=clock,
        rng=random.Random(7),
    )
    yield server
    server.stop()
