"""Application services."""

from .checkout_service import CheckoutService
from .commission_service import CommissionService
from .dispatch_service import DispatchService
from .order_service import OrderApplicationService, transition_locked_order
from .payment_service import PaymentService
from .payout_service import PayoutService

__all__ = [
    "CheckoutService",
    "CommissionService",
    "DispatchService",
    "OrderApplicationService",
    "PaymentService",
    "PayoutService",
    "transition_locked_order",
]
