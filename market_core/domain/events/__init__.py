"""Domain events."""
from .base import DomainEvent
from .order_events import (
    CheckoutCompletedEvent,
    OrderCreatedEvent,
    OrderStatusChangedEvent,
    RiderAssignedEvent,
)
from .payment_events import (
    CommissionRecordedEvent,
    PaymentCompletedEvent,
    PaymentFailedEvent,
    PayoutProcessedEvent,
    PayoutRequestedEvent,
)

__all__ = [
    "CheckoutCompletedEvent",
    "CommissionRecordedEvent",
    "DomainEvent",
    "OrderCreatedEvent",
    "OrderStatusChangedEvent",
    "PaymentCompletedEvent",
    "PaymentFailedEvent",
    "PayoutProcessedEvent",
    "PayoutRequestedEvent",
    "RiderAssignedEvent",
]
