# Settings modules
from .app_settings import AppSettings, get_app_settings
from .marketplace_settings import MarketplaceSettings
from .payment_settings import PaymentSettings
from .redis_settings import RedisSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "MarketplaceSettings",
    "PaymentSettings",
    "RedisSettings",
]
