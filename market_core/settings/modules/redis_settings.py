from __future__ import annotations

from pydantic_settings import SettingsConfigDict

from market_core.settings.base import MarketBaseSettings


class RedisSettings(MarketBaseSettings):
    """Redis backing the verification lock and token stores (``REDIS_`` prefix)."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    enabled: bool = False
    url: str = "redis://localhost:6379/0"
    key_prefix: str = "market"
