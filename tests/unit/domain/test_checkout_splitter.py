"""Tests for cart re-pricing and per-seller splitting."""

from datetime import datetime
from decimal import Decimal

import pytest

from market_core.domain.entities import Coupon, Product
from market_core.domain.enums import DiscountType
from market_core.domain.errors import (
    InvalidCouponError,
    NotFoundError,
    PlatformModeError,
    TamperDetectedError,
    ValidationFailedError,
)
from market_core.domain.services import CartLine, price_lines, split_checkout
from market_core.domain.value_objects import Money

NOW = datetime(2026, 3, 1, 10, 0, 0)
FEE = Decimal("1.95")

PRODUCTS = {
    "p-x": Product(id="p-x", name="X item", seller_id="seller-x", price=Money.of("50.00")),
    "p-y": Product(id="p-y", name="Y item", seller_id="seller-y", price=Money.of("30.00")),
    "p-sale": Product(id="p-sale", name="Sale", seller_id="seller-x", price=Money.of("20.00"), discount=Decimal("25")),
    "p-off": Product(id="p-off", name="Gone", seller_id="seller-x", price=Money.of("5.00"), is_active=False),
}

SAVE10 = Coupon(
    id="c-1",
    code="SAVE10",
    seller_id="seller-x",
    discount_type=DiscountType.PERCENTAGE,
    discount_value=Decimal("10"),
)


def split(lines, declared_subtotal, declared_total, coupon=None, multi_vendor=True, delivery="10.00"):
    return split_checkout(
        lines,
        delivery_fee=Money.of(delivery),
        processing_fee_percent=FEE,
        multi_vendor_enabled=multi_vendor,
        declared_subtotal=Money.of(declared_subtotal),
        declared_total=Money.of(declared_total),
        now=NOW,
        coupon=coupon,
    )


def test_two_seller_cart_with_seller_coupon():
    lines = price_lines([CartLine("p-x", 1), CartLine("p-y", 1)], PRODUCTS)

    plan = split(lines, "80.00", "86.66", coupon=SAVE10)

    assert plan.is_multi_vendor
    x, y = plan.seller_orders
    assert x.seller_id == "seller-x"
    assert x.subtotal == Money.of("50.00")
    assert x.delivery_fee == Money.of("6.25")
    assert x.coupon_discount == Money.of("5.00")
    assert x.coupon_code == "SAVE10"
    assert x.processing_fee == Money.of("1.00")
    assert x.total == Money.of("52.25")

    assert y.seller_id == "seller-y"
    assert y.subtotal == Money.of("30.00")
    assert y.delivery_fee == Money.of("3.75")
    assert y.coupon_discount == Money.zero()
    assert y.coupon_code is None
    assert y.processing_fee == Money.of("0.66")
    assert y.total == Money.of("34.41")

    assert plan.grand_total == Money.of("86.66")
    assert plan.delivery_fee == x.delivery_fee + y.delivery_fee


def test_each_sub_order_total_is_derived():
    lines = price_lines([CartLine("p-x", 2), CartLine("p-y", 3), CartLine("p-sale", 1)], PRODUCTS)
    subtotal = sum((line.line_total for line in lines), Money.zero())
    plan = split_checkout(
        lines,
        delivery_fee=Money.of("7.77"),
        processing_fee_percent=FEE,
        multi_vendor_enabled=True,
        declared_subtotal=subtotal,
        declared_total=Money.of("0"),
        now=NOW,
        total_tolerance_cents=10**9,
    )
    for order in plan.seller_orders:
        assert order.total == order.subtotal - order.coupon_discount + order.delivery_fee + order.processing_fee
    assert sum((o.delivery_fee for o in plan.seller_orders), Money.zero()) == Money.of("7.77")


def test_product_discount_is_applied_server_side():
    (line,) = price_lines([CartLine("p-sale", 2)], PRODUCTS)
    assert line.unit_price == Money.of("15.00")
    assert line.line_total == Money.of("30.00")
    assert line.savings == Money.of("10.00")


def test_declared_unit_price_mismatch_is_tampering():
    with pytest.raises(TamperDetectedError) as exc:
        price_lines([CartLine("p-x", 1, declared_unit_price=Money.of("1.00"))], PRODUCTS)
    assert exc.value.details["expected"] == "50.00"

    (line,) = price_lines([CartLine("p-x", 1, declared_unit_price=Money.of("49.99"))], PRODUCTS)
    assert line.unit_price == Money.of("50.00")


def test_declared_subtotal_mismatch_is_tampering():
    lines = price_lines([CartLine("p-x", 1)], PRODUCTS)
    with pytest.raises(TamperDetectedError):
        split(lines, "40.00", "61.17")


def test_declared_total_outside_tolerance_is_tampering():
    lines = price_lines([CartLine("p-x", 1)], PRODUCTS)
    # 50 + 10 = 60, fee 1.17 -> 61.17
    assert split(lines, "50.00", "61.19").grand_total == Money.of("61.17")
    with pytest.raises(TamperDetectedError):
        split(lines, "50.00", "61.20")


def test_single_store_mode_rejects_multi_seller_cart():
    lines = price_lines([CartLine("p-x", 1), CartLine("p-y", 1)], PRODUCTS)
    with pytest.raises(PlatformModeError):
        split(lines, "80.00", "88.61", multi_vendor=False)


def test_coupon_from_seller_outside_cart_is_rejected():
    lines = price_lines([CartLine("p-y", 1)], PRODUCTS)
    with pytest.raises(InvalidCouponError):
        split(lines, "30.00", "40.79", coupon=SAVE10)


def test_coupon_minimum_uses_owner_subtotal_only():
    coupon = Coupon(
        id="c-2",
        code="BIG",
        seller_id="seller-x",
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("5"),
        minimum_purchase=Money.of("60.00"),
    )
    lines = price_lines([CartLine("p-x", 1), CartLine("p-y", 1)], PRODUCTS)
    # Cart is 80.00 but seller X's share is only 50.00
    with pytest.raises(InvalidCouponError):
        split(lines, "80.00", "0", coupon=coupon)


def test_expired_and_exhausted_coupons_are_rejected():
    lines = price_lines([CartLine("p-x", 1)], PRODUCTS)
    expired = Coupon(
        id="c-3", code="OLD", seller_id="seller-x", discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"), expires_at=datetime(2026, 1, 1),
    )
    exhausted = Coupon(
        id="c-4", code="USED", seller_id="seller-x", discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"), usage_limit=3, used_count=3,
    )
    for coupon in (expired, exhausted):
        with pytest.raises(InvalidCouponError):
            split(lines, "50.00", "0", coupon=coupon)


def test_fixed_coupon_never_exceeds_owner_subtotal():
    coupon = Coupon(
        id="c-5", code="HUGE", seller_id="seller-x", discount_type=DiscountType.FIXED,
        discount_value=Decimal("500"),
    )
    lines = price_lines([CartLine("p-x", 1)], PRODUCTS)
    plan = split(lines, "50.00", "10.20", coupon=coupon)
    (order,) = plan.seller_orders
    assert order.coupon_discount == Money.of("50.00")
    # 0 + 10 delivery, fee 0.195 -> 0.20
    assert order.total == Money.of("10.20")


def test_bad_carts_are_rejected():
    with pytest.raises(ValidationFailedError):
        price_lines([], PRODUCTS)
    with pytest.raises(ValidationFailedError):
        price_lines([CartLine("p-x", 0)], PRODUCTS)
    with pytest.raises(ValidationFailedError):
        price_lines([CartLine("p-off", 1)], PRODUCTS)
    with pytest.raises(NotFoundError):
        price_lines([CartLine("p-missing", 1)], PRODUCTS)
