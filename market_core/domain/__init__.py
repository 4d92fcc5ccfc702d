"""Domain layer - pure domain models, rules and interfaces."""

from .entities import Order, OrderItem
from .enums import ActorRole, OrderStatus, PaymentStatus
from .errors import ErrorCode, MarketplaceError
from .value_objects import ExecutionID, Money

__all__ = [
    "ActorRole",
    "ErrorCode",
    "ExecutionID",
    "MarketplaceError",
    "Money",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
]
