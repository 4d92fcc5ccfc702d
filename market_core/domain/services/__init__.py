"""Pure domain services (no I/O)."""
from .checkout_splitter import (
    CartLine,
    CheckoutPlan,
    PricedLine,
    SellerOrderPlan,
    group_by_seller,
    price_lines,
    split_checkout,
)
from .commission_calculator import CommissionSplit, split_commission
from .dispatch import select_least_loaded
from .payout_composer import PayoutCandidate, compose_payout

__all__ = [
    "CartLine",
    "CheckoutPlan",
    "CommissionSplit",
    "PayoutCandidate",
    "PricedLine",
    "SellerOrderPlan",
    "compose_payout",
    "group_by_seller",
    "price_lines",
    "select_least_loaded",
    "split_checkout",
    "split_commission",
]
