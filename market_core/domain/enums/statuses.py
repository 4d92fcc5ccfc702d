"""Status and role enums shared across the order lifecycle."""

from enum import Enum


class OrderStatus(str, Enum):
    """Fulfillment status of a seller-scoped order."""

    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class PaymentStatus(str, Enum):
    """Payment status, tracked independently of fulfillment."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ActorRole(str, Enum):
    """Role of whoever requests a mutation.

    ``SYSTEM`` is the machine actor used by payment reconciliation.
    """

    BUYER = "buyer"
    SELLER = "seller"
    RIDER = "rider"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    SYSTEM = "system"

    @property
    def is_admin(self) -> bool:
        return self in (ActorRole.ADMIN, ActorRole.SUPER_ADMIN)


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class PayoutMethod(str, Enum):
    BANK_ACCOUNT = "bank_account"
    MOBILE_MONEY = "mobile_money"


class DeliveryMethod(str, Enum):
    PICKUP = "pickup"
    BUS = "bus"
    RIDER = "rider"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class TransactionStatus(str, Enum):
    """Definitive outcome recorded for a payment reference."""

    COMPLETED = "completed"
    FAILED = "failed"
