"""
Settlement ledger entities: payment transactions, commissions,
platform earnings and seller payouts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional

from market_core.domain.clock import utcnow
from market_core.domain.enums import (
    CommissionStatus,
    PayoutMethod,
    PayoutStatus,
    TransactionStatus,
)
from market_core.domain.errors import CalculationError, InvalidTransitionError
from market_core.domain.value_objects import Money


@dataclass
class PaymentTransaction:
    """
    Recorded gateway outcome, unique per payment reference.

    This row is the idempotency anchor for reconciliation: once it
    exists, verification returns it without contacting the gateway.
    """

    id: str
    payment_reference: str
    user_id: str
    status: TransactionStatus
    amount: Money
    order_ids: List[str]
    checkout_session_id: Optional[str] = None
    gateway_status: Optional[str] = None
    gateway_response: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.COMPLETED


@dataclass
class Commission:
    """Platform/seller split of one paid order."""

    id: str
    order_id: str
    seller_id: str
    order_amount: Money
    commission_rate: Decimal
    commission_amount: Money
    seller_amount: Money
    status: CommissionStatus = CommissionStatus.PENDING
    processed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.seller_amount + self.commission_amount != self.order_amount:
            raise CalculationError(
                "Commission split does not sum to the order amount",
                details={
                    "order_id": self.order_id,
                    "order_amount": str(self.order_amount.amount),
                    "commission_amount": str(self.commission_amount.amount),
                    "seller_amount": str(self.seller_amount.amount),
                },
            )

    @property
    def platform_amount(self) -> Money:
        return self.commission_amount


@dataclass
class PlatformEarning:
    """Platform-side revenue row, 1:1 with a Commission."""

    id: str
    commission_id: str
    order_id: str
    amount: Money
    description: str
    earning_type: str = "commission"
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class PayoutDetails:
    """Where the money goes. Which fields are required depends on the method."""

    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    account_name: Optional[str] = None
    mobile_number: Optional[str] = None
    provider: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "account_number": self.account_number,
            "bank_name": self.bank_name,
            "account_name": self.account_name,
            "mobile_number": self.mobile_number,
            "provider": self.provider,
        }


@dataclass
class SellerPayout:
    """Seller withdrawal backed by an exact set of commissions."""

    id: str
    seller_id: str
    amount: Money
    method: PayoutMethod
    details: PayoutDetails
    commission_ids: List[str]
    status: PayoutStatus = PayoutStatus.PENDING
    reference: Optional[str] = None
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    def advance(self, target: PayoutStatus, processed_by: str, now: Optional[datetime] = None) -> bool:
        """
        Move the payout along its status edges.

        Returns:
            False when ``target`` is already the current status (no-op)

        Raises:
            InvalidTransitionError: no edge from the current status
        """
        if target == self.status:
            return False
        if target not in PAYOUT_STATUS_EDGES.get(self.status, frozenset()):
            raise InvalidTransitionError(
                self.status,
                target,
                f"Cannot move payout from {self.status.value} to {target.value}",
                details={"payout_id": self.id},
            )

        self.status = target
        if target in (PayoutStatus.COMPLETED, PayoutStatus.FAILED):
            self.processed_by = processed_by
            self.processed_at = now or utcnow()
        return True


PAYOUT_STATUS_EDGES: Dict[PayoutStatus, FrozenSet[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset({PayoutStatus.PROCESSING, PayoutStatus.FAILED}),
    PayoutStatus.PROCESSING: frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED}),
    PayoutStatus.COMPLETED: frozenset(),
    PayoutStatus.FAILED: frozenset(),
}
