"""Tests for the order line snapshot."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from market_core.domain.entities import OrderItem
from market_core.domain.errors import CalculationError
from market_core.domain.value_objects import Money


def line(**overrides) -> OrderItem:
    fields = dict(
        product_id="p-1",
        product_name="Shea Butter",
        quantity=2,
        unit_price=Money.of("27.00"),
        original_price=Money.of("30.00"),
        discount_percent=Decimal("10"),
        total=Money.of("54.00"),
    )
    fields.update(overrides)
    return OrderItem(**fields)


def test_line_cannot_be_changed_after_checkout():
    item = line()

    with pytest.raises(FrozenInstanceError):
        item.quantity = 5
    with pytest.raises(FrozenInstanceError):
        item.unit_price = Money.of("1.00")


def test_line_total_must_match_price_and_quantity():
    with pytest.raises(CalculationError):
        line(total=Money.of("50.00"))


def test_quantity_must_be_positive():
    with pytest.raises(ValueError):
        line(quantity=0, total=Money.of("0.00"))
