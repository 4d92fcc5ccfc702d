"""
Order Domain Events.

Emitted during checkout, fulfillment transitions and rider dispatch.
Consumed by the notification collaborator.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import DomainEvent


@dataclass
class OrderCreatedEvent(DomainEvent):
    """
    Order was created by checkout.

    Trigger: checkout transaction committed
    Consumers: notification (buyer confirmation, seller new-order alert)
    """

    order_id: str = ""
    order_number: str = ""
    buyer_id: str = ""
    seller_id: str = ""
    checkout_session_id: Optional[str] = None
    total: str = "0.00"
    currency: str = ""

    def __post_init__(self):
        if not self.aggregate_id and self.order_id:
            self.aggregate_id = self.order_id
        super().__post_init__()


@dataclass
class OrderStatusChangedEvent(DomainEvent):
    """
    Order fulfillment status changed.

    Carries the side effects applied with the transition.
    """

    order_id: str = ""
    order_number: str = ""
    buyer_id: str = ""
    seller_id: str = ""
    previous_status: str = ""
    new_status: str = ""
    changed_by: str = ""
    changed_by_role: str = ""
    reason: Optional[str] = None
    side_effects: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.aggregate_id and self.order_id:
            self.aggregate_id = self.order_id
        super().__post_init__()


@dataclass
class RiderAssignedEvent(DomainEvent):
    """A rider was assigned (automatically or manually) to an order."""

    order_id: str = ""
    order_number: str = ""
    rider_id: str = ""
    previous_rider_id: Optional[str] = None
    assigned_by: str = ""

    def __post_init__(self):
        if not self.aggregate_id and self.order_id:
            self.aggregate_id = self.order_id
        super().__post_init__()


@dataclass
class CheckoutCompletedEvent(DomainEvent):
    """All sibling orders of one checkout were persisted."""

    checkout_session_id: Optional[str] = None
    buyer_id: str = ""
    order_ids: List[str] = field(default_factory=list)
    grand_total: str = "0.00"

    def __post_init__(self):
        if not self.aggregate_id:
            self.aggregate_id = self.checkout_session_id or (self.order_ids[0] if self.order_ids else "")
        super().__post_init__()
