from .statuses import (
    ActorRole,
    CommissionStatus,
    DeliveryMethod,
    DiscountType,
    OrderStatus,
    PaymentStatus,
    PayoutMethod,
    PayoutStatus,
    TransactionStatus,
)

__all__ = [
    "ActorRole",
    "CommissionStatus",
    "DeliveryMethod",
    "DiscountType",
    "OrderStatus",
    "PaymentStatus",
    "PayoutMethod",
    "PayoutStatus",
    "TransactionStatus",
]
