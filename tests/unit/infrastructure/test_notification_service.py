"""Tests for event-driven notifications."""

import logging

import pytest

from market_core.domain.events import OrderCreatedEvent, PaymentCompletedEvent, RiderAssignedEvent
from market_core.infrastructure.adapters.notifications import LoggingNotificationService
from market_core.infrastructure.event_bus import InMemoryEventBus

from tests.mocks.recording_notification_service import RecordingNotificationService


@pytest.mark.asyncio
async def test_order_created_notifies_buyer_and_seller():
    service = RecordingNotificationService()
    await service.handle_event(
        OrderCreatedEvent(
            order_id="o-1",
            order_number="ORD-1",
            buyer_id="buyer-1",
            seller_id="seller-1",
            checkout_session_id=None,
            total="52.25",
            currency="GHS",
        )
    )
    assert [n["user_id"] for n in service.notifications_sent] == ["buyer-1", "seller-1"]


@pytest.mark.asyncio
async def test_subscribed_service_receives_published_events():
    bus = InMemoryEventBus()
    service = RecordingNotificationService()
    bus.subscribe(service.handle_event)

    await bus.publish_all(
        [
            RiderAssignedEvent(
                order_id="o-1", order_number="ORD-1", rider_id="rider-1",
                previous_rider_id=None, assigned_by="system",
            ),
            PaymentCompletedEvent(
                payment_reference="ref-1", order_ids=["o-1"], amount="52.25",
                currency="GHS", user_id="buyer-1",
            ),
        ]
    )

    assert [n["title"] for n in service.notifications_sent] == ["New Delivery", "Payment Successful"]


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_stop_others():
    bus = InMemoryEventBus()
    received = []

    async def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    await bus.publish(
        PaymentCompletedEvent(payment_reference="ref-1", order_ids=[], amount="1.00", currency="GHS", user_id="u")
    )
    assert len(received) == 1


@pytest.mark.asyncio
async def test_logging_service_keeps_no_message_history(caplog):
    service = LoggingNotificationService()

    with caplog.at_level(logging.INFO):
        for n in range(50):
            await service.notify(f"buyer-{n}", "Order Update", "Order ORD-1 is now processing.")

    assert vars(service) == {}
    assert sum("Notify buyer-" in record.getMessage() for record in caplog.records) == 50
