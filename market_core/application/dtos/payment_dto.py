"""Application DTOs for payment reconciliation."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from market_core.domain.entities import PaymentTransaction


class InitializePaymentRequest(BaseModel):
    """Pay for one order, or for every order of a checkout session."""

    order_id: Optional[str] = Field(None, description="Single order to pay")
    checkout_session_id: Optional[str] = Field(None, description="Multi-vendor session to pay")

    model_config = {"frozen": True}


class PaymentInitializationDTO(BaseModel):
    authorization_url: str = Field(..., description="Gateway checkout page")
    reference: str = Field(..., description="Gateway payment reference")
    access_code: Optional[str] = None
    verification_token: str = Field(..., description="One-time token required to verify")
    amount: Decimal
    currency: str
    order_ids: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class VerifyPaymentRequest(BaseModel):
    reference: str = Field(..., min_length=1)
    verification_token: str = Field(..., min_length=1)

    model_config = {"frozen": True}


class PaymentOutcomeDTO(BaseModel):
    """
    Outcome of a verification.

    ``status`` is ``completed`` or ``failed`` once recorded, ``pending``
    while the gateway has no definitive answer (nothing recorded).
    """

    reference: str
    status: str
    recorded: bool = Field(..., description="True once a Transaction exists for the reference")
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    order_ids: List[str] = Field(default_factory=list)
    gateway_status: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_definitive(self) -> bool:
        return self.recorded

    @classmethod
    def from_transaction(cls, transaction: PaymentTransaction) -> "PaymentOutcomeDTO":
        return cls(
            reference=transaction.payment_reference,
            status=transaction.status.value,
            recorded=True,
            amount=transaction.amount.amount,
            currency=transaction.amount.currency,
            order_ids=list(transaction.order_ids),
            gateway_status=transaction.gateway_status,
        )


class WebhookAckDTO(BaseModel):
    received: bool = True
    event: Optional[str] = None
    outcome: Optional[PaymentOutcomeDTO] = None

    model_config = {"frozen": True}
