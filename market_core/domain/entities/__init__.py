"""Domain entities."""
from .catalog import Coupon, Product, RiderLoad
from .ledger import (
    Commission,
    PaymentTransaction,
    PayoutDetails,
    PAYOUT_STATUS_EDGES,
    PlatformEarning,
    SellerPayout,
)
from .order import Order, OrderItem, StatusHistoryEntry

__all__ = [
    "Commission",
    "Coupon",
    "Order",
    "PAYOUT_STATUS_EDGES",
    "OrderItem",
    "PaymentTransaction",
    "PayoutDetails",
    "PlatformEarning",
    "Product",
    "RiderLoad",
    "SellerPayout",
    "StatusHistoryEntry",
]
