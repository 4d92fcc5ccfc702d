"""
Checkout splitting - pure pricing and allocation, no persistence.

Turns a cart into one order plan per seller:

1. every line is re-priced from the catalog (client prices are only
   compared, never used),
2. the cart-level delivery fee is allocated proportionally to each
   seller's share of the subtotal (leftover cents go to the lowest
   seller id),
3. a coupon discounts only the sub-order of the seller who issued it,
4. processing fee and total are derived per sub-order.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from market_core.domain.entities.catalog import Coupon, Product
from market_core.domain.errors import (
    InvalidCouponError,
    NotFoundError,
    PlatformModeError,
    TamperDetectedError,
    ValidationFailedError,
)
from market_core.domain.value_objects import Money, allocate_proportionally

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CartLine:
    """One cart line as submitted. ``declared_unit_price`` is for tamper detection only."""

    product_id: str
    quantity: int
    declared_unit_price: Optional[Money] = None


@dataclass(frozen=True)
class PricedLine:
    product: Product
    quantity: int
    unit_price: Money
    line_total: Money
    savings: Money

    @property
    def seller_id(self) -> str:
        return self.product.seller_id


@dataclass(frozen=True)
class SellerOrderPlan:
    """Everything needed to persist one seller-scoped order."""

    seller_id: str
    store_id: Optional[str]
    lines: Tuple[PricedLine, ...]
    subtotal: Money
    delivery_fee: Money
    coupon_discount: Money
    coupon_code: Optional[str]
    processing_fee: Money
    total: Money


@dataclass(frozen=True)
class CheckoutPlan:
    seller_orders: Tuple[SellerOrderPlan, ...]
    subtotal: Money
    product_savings: Money
    delivery_fee: Money
    coupon_discount: Money
    processing_fee: Money
    grand_total: Money

    @property
    def is_multi_vendor(self) -> bool:
        return len(self.seller_orders) > 1


def price_lines(
    cart_lines: Sequence[CartLine],
    products: Mapping[str, Product],
    price_tolerance_cents: int = 1,
) -> List[PricedLine]:
    """
    Re-price every cart line from authoritative catalog data.

    Raises:
        ValidationFailedError: empty cart, bad quantity or inactive product
        NotFoundError: product missing from the catalog
        TamperDetectedError: declared unit price diverges from the catalog
    """
    if not cart_lines:
        raise ValidationFailedError("Cart is empty", user_message="Your cart is empty.")

    priced: List[PricedLine] = []
    for line in cart_lines:
        if line.quantity <= 0:
            raise ValidationFailedError(
                f"Invalid quantity {line.quantity} for product {line.product_id}",
                user_message="Quantities must be at least 1.",
                details={"product_id": line.product_id, "quantity": line.quantity},
            )

        product = products.get(line.product_id)
        if product is None:
            raise NotFoundError("Product", line.product_id)
        if not product.is_active:
            raise ValidationFailedError(
                f"Product {product.id} is not available",
                user_message=f"Product {product.name} is no longer available.",
                details={"product_id": product.id},
            )

        unit_price = product.price.percent(HUNDRED - product.discount)
        if line.declared_unit_price is not None and not unit_price.within(
            line.declared_unit_price, price_tolerance_cents
        ):
            raise TamperDetectedError(
                f"Declared price {line.declared_unit_price} != catalog price {unit_price} "
                f"for product {product.id}",
                details={
                    "product_id": product.id,
                    "declared": str(line.declared_unit_price.amount),
                    "expected": str(unit_price.amount),
                },
            )

        priced.append(
            PricedLine(
                product=product,
                quantity=line.quantity,
                unit_price=unit_price,
                line_total=unit_price * line.quantity,
                savings=(product.price - unit_price) * line.quantity,
            )
        )
    return priced


def group_by_seller(lines: Sequence[PricedLine]) -> "OrderedDict[str, List[PricedLine]]":
    """Group priced lines by seller id, sellers in sorted order."""
    groups: Dict[str, List[PricedLine]] = {}
    for line in lines:
        groups.setdefault(line.seller_id, []).append(line)
    return OrderedDict((seller_id, groups[seller_id]) for seller_id in sorted(groups))


def split_checkout(
    lines: Sequence[PricedLine],
    *,
    delivery_fee: Money,
    processing_fee_percent: Decimal,
    multi_vendor_enabled: bool,
    declared_subtotal: Money,
    declared_total: Money,
    now: datetime,
    coupon: Optional[Coupon] = None,
    price_tolerance_cents: int = 1,
    total_tolerance_cents: int = 2,
) -> CheckoutPlan:
    """
    Build one order plan per seller from re-priced lines.

    Raises:
        TamperDetectedError: declared subtotal or total diverges
        PlatformModeError: several sellers while multi-vendor is disabled
        InvalidCouponError: coupon not issued by a seller in the cart, or not applicable
    """
    currency = delivery_fee.currency
    zero = Money.zero(currency)

    server_subtotal = sum((line.line_total for line in lines), zero)
    product_savings = sum((line.savings for line in lines), zero)

    if not server_subtotal.within(declared_subtotal, price_tolerance_cents):
        raise TamperDetectedError(
            f"Subtotal mismatch: declared {declared_subtotal}, server {server_subtotal}",
            details={
                "declared_subtotal": str(declared_subtotal.amount),
                "server_subtotal": str(server_subtotal.amount),
            },
        )

    groups = group_by_seller(lines)

    if len(groups) > 1 and not multi_vendor_enabled:
        raise PlatformModeError(
            "Platform is in single-store mode but the cart spans "
            f"{len(groups)} sellers",
            details={"seller_ids": list(groups)},
        )

    seller_subtotals = {
        seller_id: sum((line.line_total for line in seller_lines), zero)
        for seller_id, seller_lines in groups.items()
    }

    delivery_shares = allocate_proportionally(
        delivery_fee.cents,
        {seller_id: subtotal.cents for seller_id, subtotal in seller_subtotals.items()},
    )

    coupon_owner_discount = zero
    if coupon is not None:
        if coupon.seller_id not in groups:
            raise InvalidCouponError(
                f"Coupon {coupon.code} belongs to seller {coupon.seller_id}, not in cart",
                user_message="This coupon can only be used with products from the seller who issued it.",
                details={"code": coupon.code},
            )
        owner_subtotal = seller_subtotals[coupon.seller_id]
        coupon.ensure_applicable(owner_subtotal, now)
        coupon_owner_discount = coupon.discount_for(owner_subtotal)

    plans: List[SellerOrderPlan] = []
    for seller_id, seller_lines in groups.items():
        subtotal = seller_subtotals[seller_id]
        seller_delivery = Money(delivery_shares[seller_id], currency)
        owns_coupon = coupon is not None and coupon.seller_id == seller_id
        discount = coupon_owner_discount if owns_coupon else zero

        fee_base = subtotal - discount + seller_delivery
        processing_fee = fee_base.percent(processing_fee_percent)

        plans.append(
            SellerOrderPlan(
                seller_id=seller_id,
                store_id=next(
                    (line.product.store_id for line in seller_lines if line.product.store_id),
                    None,
                ),
                lines=tuple(seller_lines),
                subtotal=subtotal,
                delivery_fee=seller_delivery,
                coupon_discount=discount,
                coupon_code=coupon.code if owns_coupon else None,
                processing_fee=processing_fee,
                total=fee_base + processing_fee,
            )
        )

    grand_total = sum((plan.total for plan in plans), zero)
    if not grand_total.within(declared_total, total_tolerance_cents):
        raise TamperDetectedError(
            f"Total mismatch: declared {declared_total}, server {grand_total}",
            details={
                "declared_total": str(declared_total.amount),
                "server_total": str(grand_total.amount),
            },
        )

    return CheckoutPlan(
        seller_orders=tuple(plans),
        subtotal=server_subtotal,
        product_savings=product_savings,
        delivery_fee=delivery_fee,
        coupon_discount=coupon_owner_discount,
        processing_fee=sum((plan.processing_fee for plan in plans), zero),
        grand_total=grand_total,
    )
