"""Read-only views of collaborator data used at checkout and dispatch."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from market_core.domain.enums import DiscountType
from market_core.domain.errors import InvalidCouponError
from market_core.domain.value_objects import Money


@dataclass(frozen=True)
class Product:
    """Authoritative catalog entry. ``discount`` is a percentage (0-100)."""

    id: str
    name: str
    seller_id: str
    price: Money
    discount: Decimal = Decimal("0")
    is_active: bool = True
    store_id: Optional[str] = None


@dataclass(frozen=True)
class Coupon:
    """Seller-issued discount code."""

    id: str
    code: str
    seller_id: str
    discount_type: DiscountType
    discount_value: Decimal
    is_active: bool = True
    minimum_purchase: Optional[Money] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    expires_at: Optional[datetime] = None

    def ensure_applicable(self, seller_subtotal: Money, now: datetime) -> None:
        """
        Raise ``InvalidCouponError`` unless the coupon may discount
        ``seller_subtotal`` (the owning seller's share of the cart).
        """
        if not self.is_active:
            raise InvalidCouponError(
                f"Coupon {self.code} is inactive",
                user_message="This coupon is not active.",
                details={"code": self.code},
            )
        if self.expires_at is not None and self.expires_at < now:
            raise InvalidCouponError(
                f"Coupon {self.code} expired at {self.expires_at.isoformat()}",
                user_message="This coupon has expired.",
                details={"code": self.code},
            )
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            raise InvalidCouponError(
                f"Coupon {self.code} reached its usage limit ({self.usage_limit})",
                user_message="This coupon has reached its usage limit.",
                details={"code": self.code},
            )
        if self.minimum_purchase is not None and seller_subtotal.cents < self.minimum_purchase.cents:
            raise InvalidCouponError(
                f"Coupon {self.code} requires {self.minimum_purchase}, got {seller_subtotal}",
                user_message=f"Minimum purchase of {self.minimum_purchase} required for this coupon.",
                details={"code": self.code, "minimum_purchase": str(self.minimum_purchase.amount)},
            )

    def discount_for(self, seller_subtotal: Money) -> Money:
        """Discount on the owning seller's subtotal, never exceeding it."""
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = seller_subtotal.percent(self.discount_value)
        else:
            discount = Money.of(self.discount_value, seller_subtotal.currency)
        return discount.min(seller_subtotal)


@dataclass(frozen=True)
class RiderLoad:
    """An approved, active rider and the orders currently on their hands."""

    rider_id: str
    name: str
    active_orders: int
