from __future__ import annotations

from decimal import Decimal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from market_core.settings.base import MarketBaseSettings


class MarketplaceSettings(MarketBaseSettings):
    """
    Platform-wide commercial rules.

    Environment variables use the ``MARKET_`` prefix, e.g.
    ``MARKET_MULTI_VENDOR_ENABLED=true``.
    """

    model_config = SettingsConfigDict(env_prefix="MARKET_")

    # === Platform mode ===
    multi_vendor_enabled: bool = False
    currency: str = Field(default="GHS", min_length=3, max_length=3)

    # === Fees / commission (percentages) ===
    processing_fee_percent: Decimal = Decimal("1.95")
    default_commission_rate_percent: Decimal = Decimal("10.00")

    # === Payouts ===
    minimum_payout_amount: Decimal = Decimal("50.00")
    payout_max_commissions_scanned: int = 500

    # === Tamper detection ===
    price_tolerance: Decimal = Decimal("0.01")
    total_tolerance: Decimal = Decimal("0.02")

    # === Dispatch ===
    rider_max_active_orders: int = 10
    auto_assign_riders: bool = True
