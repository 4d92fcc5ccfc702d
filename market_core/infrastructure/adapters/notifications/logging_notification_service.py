"""
Logging Notification Service.

Turns committed domain events into user-facing messages and logs
them. Real delivery (push, SMS, email) is a separate collaborator that
can replace ``notify``.
"""
from typing import List, Tuple
import logging

from market_core.application.interfaces import INotificationService
from market_core.domain.events import (
    CommissionRecordedEvent,
    DomainEvent,
    OrderCreatedEvent,
    OrderStatusChangedEvent,
    PaymentCompletedEvent,
    PaymentFailedEvent,
    PayoutProcessedEvent,
    PayoutRequestedEvent,
    RiderAssignedEvent,
)


logger = logging.getLogger(__name__)


class LoggingNotificationService(INotificationService):
    """Notification service that only logs; it keeps no per-message state."""

    async def handle_event(self, event: DomainEvent) -> None:
        for user_id, title, message in self._messages_for(event):
            await self.notify(user_id, title, message)

    async def notify(self, user_id: str, title: str, message: str) -> None:
        logger.info(f"🔔 Notify {user_id}: {title} - {message}")

    def _messages_for(self, event: DomainEvent) -> List[Tuple[str, str, str]]:
        if isinstance(event, OrderCreatedEvent):
            return [
                (event.buyer_id, "Order Placed",
                 f"Your order {event.order_number} has been placed."),
                (event.seller_id, "New Order",
                 f"You received order {event.order_number} ({event.total} {event.currency})."),
            ]
        if isinstance(event, OrderStatusChangedEvent):
            text = f"Order {event.order_number} is now {event.new_status}."
            return [
                (event.buyer_id, "Order Update", text),
                (event.seller_id, "Order Update", text),
            ]
        if isinstance(event, RiderAssignedEvent):
            return [(event.rider_id, "New Delivery", f"Order {event.order_number} was assigned to you.")]
        if isinstance(event, PaymentCompletedEvent):
            return [(event.user_id or "", "Payment Successful",
                     f"Payment {event.payment_reference} of {event.amount} {event.currency} confirmed.")]
        if isinstance(event, PaymentFailedEvent):
            return [(event.user_id or "", "Payment Failed",
                     f"Payment {event.payment_reference} was not successful.")]
        if isinstance(event, CommissionRecordedEvent):
            return [(event.seller_id, "Earnings Updated",
                     f"{event.seller_amount} added to your pending balance.")]
        if isinstance(event, PayoutRequestedEvent):
            return [(event.seller_id, "Payout Requested",
                     f"Your payout request of {event.amount} was received.")]
        if isinstance(event, PayoutProcessedEvent):
            return [(event.seller_id, "Payout Update",
                     f"Your payout of {event.amount} is now {event.new_status}.")]
        return []
