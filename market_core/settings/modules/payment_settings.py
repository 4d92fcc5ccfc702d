from __future__ import annotations

from pydantic_settings import SettingsConfigDict

from market_core.settings.base import MarketBaseSettings


class PaymentSettings(MarketBaseSettings):
    """
    Payment gateway (Paystack) settings.

    ``PAYSTACK_SECRET_KEY`` signs API calls and webhook bodies.
    """

    model_config = SettingsConfigDict(env_prefix="PAYSTACK_")

    secret_key: str = ""
    base_url: str = "https://api.paystack.co"
    callback_url: str = "http://localhost:5000/payment/verify"
    timeout_seconds: float = 15.0

    verification_lock_ttl_seconds: int = 300  # 5 minutes
    verification_token_ttl_seconds: int = 3600  # 1 hour
