# Settings package
from market_core.settings.modules import (
    AppSettings,
    MarketplaceSettings,
    PaymentSettings,
    RedisSettings,
    get_app_settings,
)

__all__ = [
    "get_app_settings",
    "AppSettings",
    "MarketplaceSettings",
    "PaymentSettings",
    "RedisSettings",
]
