"""Application DTOs."""

from .checkout_dto import CartLineDTO, CheckoutRequest, CheckoutResult
from .order_dto import (
    AllowedTransitionsDTO,
    AssignRiderRequest,
    OrderDTO,
    OrderItemDTO,
    StatusHistoryDTO,
    TransitionOrderRequest,
)
from .payment_dto import (
    InitializePaymentRequest,
    PaymentInitializationDTO,
    PaymentOutcomeDTO,
    VerifyPaymentRequest,
    WebhookAckDTO,
)
from .payout_dto import (
    CommissionDTO,
    PayoutDetailsDTO,
    PayoutDTO,
    PayoutRequest,
    PlatformEarningsDTO,
    SellerBalanceDTO,
    UpdatePayoutStatusRequest,
)
from .rider_dto import RiderLoadDTO

__all__ = [
    "AllowedTransitionsDTO",
    "AssignRiderRequest",
    "CartLineDTO",
    "CheckoutRequest",
    "CheckoutResult",
    "CommissionDTO",
    "InitializePaymentRequest",
    "OrderDTO",
    "OrderItemDTO",
    "PaymentInitializationDTO",
    "PaymentOutcomeDTO",
    "PayoutDetailsDTO",
    "PayoutDTO",
    "PayoutRequest",
    "PlatformEarningsDTO",
    "RiderLoadDTO",
    "SellerBalanceDTO",
    "StatusHistoryDTO",
    "TransitionOrderRequest",
    "UpdatePayoutStatusRequest",
    "VerifyPaymentRequest",
    "WebhookAckDTO",
]
