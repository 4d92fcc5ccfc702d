"""
Order domain entity.

CRITICAL: This file must contain ZERO imports from sqlalchemy.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from market_core.domain.clock import utcnow
from market_core.domain.enums import (
    ActorRole,
    DeliveryMethod,
    OrderStatus,
    PaymentStatus,
)
from market_core.domain.errors import CalculationError
from market_core.domain.events import (
    DomainEvent,
    OrderStatusChangedEvent,
    RiderAssignedEvent,
)
from market_core.domain.value_objects import Money


@dataclass(frozen=True)
class OrderItem:
    """
    Immutable purchase snapshot of one cart line.

    Prices are copied at checkout time and never re-read from the catalog.
    """

    product_id: str
    product_name: str
    quantity: int
    unit_price: Money
    original_price: Money
    discount_percent: Decimal
    total: Money
    id: Optional[str] = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"Quantity must be positive, got: {self.quantity}")
        if self.unit_price * self.quantity != self.total:
            raise CalculationError(
                f"Line total {self.total} != {self.unit_price} x {self.quantity}",
                details={"product_id": self.product_id},
            )


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One accepted transition, as written to the append-only audit log."""

    order_id: str
    from_status: OrderStatus
    to_status: OrderStatus
    changed_by: str
    changed_by_role: ActorRole
    reason: Optional[str]
    metadata: Dict[str, Any]
    created_at: datetime


@dataclass
class Order:
    """
    Seller-scoped order aggregate.

    Money fields are integer-cent ``Money`` values. ``total`` is always
    derived as subtotal - coupon_discount + delivery_fee + processing_fee
    and the invariant is checked on construction.
    """

    id: str
    order_number: str
    buyer_id: str
    seller_id: str
    subtotal: Money
    delivery_fee: Money
    processing_fee: Money
    coupon_discount: Money
    total: Money
    items: List[OrderItem] = field(default_factory=list)
    store_id: Optional[str] = None
    rider_id: Optional[str] = None
    checkout_session_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_reference: Optional[str] = None
    coupon_code: Optional[str] = None
    delivery_method: DeliveryMethod = DeliveryMethod.RIDER
    delivery_zone_id: Optional[str] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    _domain_events: List[DomainEvent] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self.verify_totals()

    @property
    def currency(self) -> str:
        return self.total.currency

    def expected_total(self) -> Money:
        return self.subtotal - self.coupon_discount + self.delivery_fee + self.processing_fee

    def verify_totals(self) -> None:
        """Raise ``CalculationError`` when the stored total drifted."""
        expected = self.expected_total()
        if expected != self.total:
            raise CalculationError(
                f"Order {self.order_number} total {self.total} != derived {expected}",
                details={
                    "order_id": self.id,
                    "subtotal": str(self.subtotal.amount),
                    "coupon_discount": str(self.coupon_discount.amount),
                    "delivery_fee": str(self.delivery_fee.amount),
                    "processing_fee": str(self.processing_fee.amount),
                    "total": str(self.total.amount),
                },
            )

    # =========================================================================
    # BUSINESS RULES
    # =========================================================================

    def apply_transition(
        self,
        target_status: OrderStatus,
        changes: Dict[str, Any],
        changed_by: str,
        changed_by_role: ActorRole,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> StatusHistoryEntry:
        """
        Apply an already-validated transition and its side effects.

        Validation lives in ``state_machine.evaluate_transition``; this
        method only mutates and records.

        Returns:
            Audit entry to append in the same unit of work
        """
        now = now or utcnow()
        previous_status = self.status

        for attribute, value in changes.items():
            setattr(self, attribute, value)
        self.status = target_status
        self.updated_at = now

        metadata = {key: _audit_value(value) for key, value in changes.items()}

        self._record_event(
            OrderStatusChangedEvent(
                order_id=self.id,
                order_number=self.order_number,
                buyer_id=self.buyer_id,
                seller_id=self.seller_id,
                previous_status=previous_status.value,
                new_status=target_status.value,
                changed_by=changed_by,
                changed_by_role=changed_by_role.value,
                reason=reason,
                side_effects=metadata,
                user_id=changed_by,
            )
        )

        return StatusHistoryEntry(
            order_id=self.id,
            from_status=previous_status,
            to_status=target_status,
            changed_by=changed_by,
            changed_by_role=changed_by_role,
            reason=reason,
            metadata=metadata,
            created_at=now,
        )

    def assign_rider(self, rider_id: str, assigned_by: str) -> None:
        previous_rider_id = self.rider_id
        self.rider_id = rider_id
        self.updated_at = utcnow()
        self._record_event(
            RiderAssignedEvent(
                order_id=self.id,
                order_number=self.order_number,
                rider_id=rider_id,
                previous_rider_id=previous_rider_id,
                assigned_by=assigned_by,
                user_id=assigned_by,
            )
        )

    def start_payment(self, reference: str) -> None:
        """Bind a freshly initialized gateway charge to this order."""
        if self.payment_status == PaymentStatus.COMPLETED:
            raise ValueError(f"Order {self.order_number} is already paid")
        self.payment_reference = reference
        self.payment_status = PaymentStatus.PROCESSING
        self.updated_at = utcnow()

    def mark_payment_completed(self) -> None:
        self.payment_status = PaymentStatus.COMPLETED
        self.updated_at = utcnow()

    def mark_payment_failed(self) -> None:
        self.payment_status = PaymentStatus.FAILED
        self.updated_at = utcnow()

    # =========================================================================
    # EVENT COLLECTION
    # =========================================================================

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def get_domain_events(self) -> List[DomainEvent]:
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()


def _audit_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
