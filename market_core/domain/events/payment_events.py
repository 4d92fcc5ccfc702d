"""Payment and settlement domain events."""
from dataclasses import dataclass, field
from typing import List, Optional

from .base import DomainEvent


@dataclass
class PaymentCompletedEvent(DomainEvent):
    """Gateway confirmed the charge; every order of the reference is paid."""

    payment_reference: str = ""
    order_ids: List[str] = field(default_factory=list)
    amount: str = "0.00"
    currency: str = ""

    def __post_init__(self):
        if not self.aggregate_id:
            self.aggregate_id = self.payment_reference
        super().__post_init__()


@dataclass
class PaymentFailedEvent(DomainEvent):
    """Gateway reported a definitive failure for the charge."""

    payment_reference: str = ""
    order_ids: List[str] = field(default_factory=list)
    gateway_status: str = ""
    reason: Optional[str] = None

    def __post_init__(self):
        if not self.aggregate_id:
            self.aggregate_id = self.payment_reference
        super().__post_init__()


@dataclass
class CommissionRecordedEvent(DomainEvent):
    """Platform/seller split computed for a paid order."""

    commission_id: str = ""
    order_id: str = ""
    seller_id: str = ""
    order_amount: str = "0.00"
    commission_amount: str = "0.00"
    seller_amount: str = "0.00"
    commission_rate: str = "0.00"

    def __post_init__(self):
        if not self.aggregate_id:
            self.aggregate_id = self.commission_id
        super().__post_init__()


@dataclass
class PayoutRequestedEvent(DomainEvent):
    """Seller requested a withdrawal backed by specific commissions."""

    payout_id: str = ""
    seller_id: str = ""
    amount: str = "0.00"
    method: str = ""
    commission_ids: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.aggregate_id:
            self.aggregate_id = self.payout_id
        super().__post_init__()


@dataclass
class PayoutProcessedEvent(DomainEvent):
    """Administrator advanced a payout's status."""

    payout_id: str = ""
    seller_id: str = ""
    amount: str = "0.00"
    previous_status: str = ""
    new_status: str = ""
    processed_by: Optional[str] = None

    def __post_init__(self):
        if not self.aggregate_id:
            self.aggregate_id = self.payout_id
        super().__post_init__()
