"""Platform/seller split of a paid order, in integer cents."""

from dataclasses import dataclass
from decimal import Decimal

from market_core.domain.errors import CalculationError, ValidationFailedError
from market_core.domain.value_objects import Money, percent_of


@dataclass(frozen=True)
class CommissionSplit:
    order_amount: Money
    commission_rate: Decimal
    commission_amount: Money
    seller_amount: Money


def split_commission(order_amount: Money, commission_rate_percent: Decimal) -> CommissionSplit:
    """
    Split ``order_amount`` into platform commission and seller share.

    commission = round(order_cents * rate / 100), seller = order - commission.

    Raises:
        ValidationFailedError: rate outside 0-100 or negative amount
        CalculationError: the parts do not add back up to the whole
    """
    rate = Decimal(str(commission_rate_percent))
    if rate < 0 or rate > 100:
        raise ValidationFailedError(
            f"Commission rate must be between 0 and 100, got {rate}",
            details={"commission_rate": str(rate)},
        )
    if order_amount.is_negative():
        raise ValidationFailedError(
            f"Order amount must not be negative, got {order_amount}",
            details={"order_amount": str(order_amount.amount)},
        )

    commission_cents = percent_of(order_amount.cents, rate)
    seller_cents = order_amount.cents - commission_cents

    if commission_cents + seller_cents != order_amount.cents or seller_cents < 0:
        raise CalculationError(
            "Commission split drifted from the order amount",
            details={
                "order_cents": order_amount.cents,
                "commission_cents": commission_cents,
                "seller_cents": seller_cents,
                "commission_rate": str(rate),
            },
        )

    return CommissionSplit(
        order_amount=order_amount,
        commission_rate=rate,
        commission_amount=Money(commission_cents, order_amount.currency),
        seller_amount=Money(seller_cents, order_amount.currency),
    )
