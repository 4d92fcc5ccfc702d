"""Pytest fixtures for HTTP API tests."""

import pytest
from fastapi.testclient import TestClient

from market_api import deps
from market_api.main import app
from market_core.infrastructure.database import DatabaseSettings
from market_core.infrastructure.locks import InMemoryPaymentLockStore, InMemoryVerificationTokenStore
from market_core.settings import AppSettings, RedisSettings


def headers(actor_id: str, role: str) -> dict:
    return {"X-Actor-Id": actor_id, "X-Actor-Role": role}


@pytest.fixture
def client(session_factory, gateway, event_bus, marketplace_settings, payment_settings):
    """Test client wired to the test database, fake gateway and in-memory stores."""
    settings = AppSettings(
        marketplace=marketplace_settings,
        payment=payment_settings,
        redis=RedisSettings(enabled=False),
        database=DatabaseSettings(database_url="sqlite+aiosqlite://"),
    )
    lock_store = InMemoryPaymentLockStore()
    token_store = InMemoryVerificationTokenStore()

    app.dependency_overrides[deps.get_settings] = lambda: settings
    app.dependency_overrides[deps.get_session_factory] = lambda: session_factory
    app.dependency_overrides[deps.get_bus] = lambda: event_bus
    app.dependency_overrides[deps.get_payment_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_lock_store] = lambda: lock_store
    app.dependency_overrides[deps.get_token_store] = lambda: token_store

    yield TestClient(app)

    app.dependency_overrides.clear()
