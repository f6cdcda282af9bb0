"""Shared test fixtures: in-memory store, mock verifier, ASGI test client.

Invariants:
    - Tests never load a .env file or reach a real database / Firebase
    - Every test gets a fresh MemoryDocumentStore driven by a frozen clock
    - Route dependencies are swapped through app.dependency_overrides
"""

import os
from datetime import datetime, timedelta, timezone

# Must be set before order_api settings are first loaded
os.environ.setdefault("ENV_MODE", "development")
os.environ.setdefault("MENU_SEED_FILE", "")

import pytest
from httpx import ASGITransport, AsyncClient

from order_api.core.config import Settings
from order_api.dependencies import (
    get_app_settings,
    get_order_service,
    get_store,
    get_verifier,
)
from order_api.main import app
from order_api.services.identity import MockTokenVerifier
from order_api.services.orders import OrderService
from order_api.services.store import MemoryDocumentStore

MENU_ITEMS = [
    {"id": "pizza", "name": "Pizza", "price": 120, "category": "main"},
    {"id": "borscht", "name": "Borscht", "price": 95},
]


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        env_mode="development",
        delivery_offset_seconds=1800,
        menu_seed_file=None,
    )


@pytest.fixture
def store(clock):
    return MemoryDocumentStore(seed={"menu": MENU_ITEMS}, clock=clock)


class CountingTokenVerifier(MockTokenVerifier):
    """MockTokenVerifier that records how often it was asked."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = 0

    async def verify_token(self, token: str):
        self.calls += 1
        return await super().verify_token(token)


@pytest.fixture
def verifier():
    return CountingTokenVerifier(
        tokens={"token-alice": "alice", "token-bob": "bob"},
        prefix=None,
    )


@pytest.fixture
def order_service(store, test_settings, clock):
    return OrderService(
        store,
        delivery_offset=test_settings.delivery_offset,
        collection=test_settings.orders_collection,
        locale=test_settings.message_locale,
        clock=clock,
    )


@pytest.fixture
async def client(store, verifier, test_settings, order_service):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_verifier] = lambda: verifier
    app.dependency_overrides[get_app_settings] = lambda: test_settings
    app.dependency_overrides[get_order_service] = lambda: order_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

