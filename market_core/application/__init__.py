"""Application layer - services, interfaces and DTOs."""

from .interfaces import (
    INotificationService,
    IPaymentGateway,
    IPaymentLockStore,
    IVerificationTokenStore,
)
from .dtos import CheckoutRequest, CheckoutResult, OrderDTO, PaymentOutcomeDTO, PayoutDTO
from .services import (
    CheckoutService,
    CommissionService,
    DispatchService,
    OrderApplicationService,
    PaymentService,
    PayoutService,
)

__all__ = [
    # Interfaces
    "INotificationService",
    "IPaymentGateway",
    "IPaymentLockStore",
    "IVerificationTokenStore",
    # DTOs
    "CheckoutRequest",
    "CheckoutResult",
    "OrderDTO",
    "PaymentOutcomeDTO",
    "PayoutDTO",
    # Services
    "CheckoutService",
    "CommissionService",
    "DispatchService",
    "OrderApplicationService",
    "PaymentService",
    "PayoutService",
]
