"""Application DTOs for commissions, balances and payouts."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from market_core.domain.entities import Commission, PayoutDetails, SellerPayout
from market_core.domain.enums import PayoutMethod, PayoutStatus


class CommissionDTO(BaseModel):
    id: str
    order_id: str
    seller_id: str
    order_amount: Decimal
    commission_rate: Decimal = Field(..., description="Rate (%) at time of calculation")
    commission_amount: Decimal
    seller_amount: Decimal
    platform_amount: Decimal
    currency: str
    status: str
    processed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, commission: Commission) -> "CommissionDTO":
        return cls(
            id=commission.id,
            order_id=commission.order_id,
            seller_id=commission.seller_id,
            order_amount=commission.order_amount.amount,
            commission_rate=commission.commission_rate,
            commission_amount=commission.commission_amount.amount,
            seller_amount=commission.seller_amount.amount,
            platform_amount=commission.platform_amount.amount,
            currency=commission.order_amount.currency,
            status=commission.status.value,
            processed_at=commission.processed_at,
            created_at=commission.created_at,
        )


class SellerBalanceDTO(BaseModel):
    """Available balance = pending seller amounts."""

    seller_id: str
    available_balance: Decimal
    pending_commissions: int = Field(..., ge=0)
    minimum_payout: Decimal
    currency: str

    model_config = {"frozen": True}


class PlatformEarningsDTO(BaseModel):
    total: Decimal
    currency: str

    model_config = {"frozen": True}


class PayoutDetailsDTO(BaseModel):
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    account_name: Optional[str] = None
    mobile_number: Optional[str] = None
    provider: Optional[str] = None

    model_config = {"frozen": True}

    def to_entity(self) -> PayoutDetails:
        return PayoutDetails(**self.model_dump())


class PayoutRequest(BaseModel):
    """
    Request DTO for a seller withdrawal.

    Method-specific details are checked here so a malformed request
    never reaches the ledger.
    """

    amount: Decimal = Field(..., description="Requested amount (must match pending commissions exactly)")
    method: PayoutMethod
    details: PayoutDetailsDTO = Field(default_factory=PayoutDetailsDTO)
    notes: Optional[str] = Field(None, max_length=1000)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_method_details(self) -> "PayoutRequest":
        if self.method == PayoutMethod.BANK_ACCOUNT:
            if not (self.details.account_number and self.details.bank_name):
                raise ValueError("Bank payouts require account_number and bank_name")
        elif self.method == PayoutMethod.MOBILE_MONEY:
            if not self.details.mobile_number:
                raise ValueError("Mobile money payouts require mobile_number")
        return self


class UpdatePayoutStatusRequest(BaseModel):
    status: PayoutStatus
    reference: Optional[str] = Field(None, max_length=255, description="Transfer reference")
    notes: Optional[str] = Field(None, max_length=1000)

    model_config = {"frozen": True}


class PayoutDTO(BaseModel):
    id: str
    seller_id: str
    amount: Decimal
    currency: str
    method: str
    status: str
    details: PayoutDetailsDTO
    commission_ids: List[str] = Field(default_factory=list)
    reference: Optional[str] = None
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, payout: SellerPayout) -> "PayoutDTO":
        return cls(
            id=payout.id,
            seller_id=payout.seller_id,
            amount=payout.amount.amount,
            currency=payout.amount.currency,
            method=payout.method.value,
            status=payout.status.value,
            details=PayoutDetailsDTO(**payout.details.to_dict()),
            commission_ids=list(payout.commission_ids),
            reference=payout.reference,
            notes=payout.notes,
            processed_by=payout.processed_by,
            processed_at=payout.processed_at,
            created_at=payout.created_at,
        )
