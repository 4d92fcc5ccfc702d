"""Pytest fixtures for service-level integration tests."""

import pytest

from market_core.application.services import (
    CheckoutService,
    CommissionService,
    DispatchService,
    OrderApplicationService,
    PaymentService,
    PayoutService,
)
from market_core.infrastructure.locks import InMemoryPaymentLockStore, InMemoryVerificationTokenStore


@pytest.fixture
def order_service(session_factory, event_bus, marketplace_settings) -> OrderApplicationService:
    return OrderApplicationService(session_factory, event_bus, marketplace_settings.currency)


@pytest.fixture
def dispatch_service(session_factory, marketplace_settings, event_bus) -> DispatchService:
    return DispatchService(session_factory, marketplace_settings, event_bus)


@pytest.fixture
def checkout_service(session_factory, marketplace_settings, event_bus, dispatch_service) -> CheckoutService:
    return CheckoutService(session_factory, marketplace_settings, event_bus, dispatch_service)


@pytest.fixture
def commission_service(session_factory, marketplace_settings, event_bus) -> CommissionService:
    return CommissionService(session_factory, marketplace_settings, event_bus)


@pytest.fixture
def lock_store() -> InMemoryPaymentLockStore:
    return InMemoryPaymentLockStore()


@pytest.fixture
def token_store() -> InMemoryVerificationTokenStore:
    return InMemoryVerificationTokenStore()


@pytest.fixture
def payment_service(
    session_factory,
    gateway,
    lock_store,
    token_store,
    commission_service,
    payment_settings,
    marketplace_settings,
    event_bus,
) -> PaymentService:
    return PaymentService(
        session_factory,
        gateway,
        lock_store,
        token_store,
        commission_service,
        payment_settings,
        marketplace_settings,
        event_bus,
    )


@pytest.fixture
def payout_service(session_factory, marketplace_settings, event_bus) -> PayoutService:
    return PayoutService(session_factory, marketplace_settings, event_bus)
