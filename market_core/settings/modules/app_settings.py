from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from market_core.infrastructure.database.config import DatabaseSettings
from market_core.settings.modules.marketplace_settings import MarketplaceSettings
from market_core.settings.modules.payment_settings import PaymentSettings
from market_core.settings.modules.redis_settings import RedisSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    marketplace: MarketplaceSettings
    payment: PaymentSettings
    redis: RedisSettings
    database: DatabaseSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        marketplace=MarketplaceSettings(),
        payment=PaymentSettings(),
        redis=RedisSettings(),
        database=DatabaseSettings(),
    )
