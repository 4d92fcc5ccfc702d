"""
Paystack Payment Gateway Implementation.

Talks to the Paystack REST API over aiohttp. Every call is bounded by
``PaymentSettings.timeout_seconds``; a timeout surfaces as
``GatewayTimeoutError``, anything else as ``GatewayError``.
"""
from typing import Any, Dict, Optional
import asyncio
import hashlib
import hmac
import json
import logging

import aiohttp

from market_core.application.interfaces import (
    ChargeInitialization,
    ChargeRequest,
    ChargeVerification,
    IPaymentGateway,
)
from market_core.domain.errors import GatewayError, GatewayTimeoutError
from market_core.settings.modules.payment_settings import PaymentSettings


logger = logging.getLogger(__name__)


class PaystackGateway(IPaymentGateway):
    """
    Paystack implementation of the payment gateway.

    Endpoints:
    - POST /transaction/initialize
    - GET  /transaction/verify/{reference}
    Webhooks are signed with HMAC-SHA512 of the raw body using the secret key.
    """

    def __init__(self, settings: PaymentSettings):
        """
        Initialize Paystack gateway.

        Args:
            settings: Payment settings with secret key, base URL and timeout
        """
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        if not settings.secret_key:
            logger.warning("PAYSTACK_SECRET_KEY not configured; gateway calls will be rejected")

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.secret_key}",
            "Content-Type": "application/json",
        }

    async def initialize_charge(self, request: ChargeRequest) -> ChargeInitialization:
        payload: Dict[str, Any] = {
            "email": request.email,
            "amount": request.amount_minor,
            "currency": request.currency,
            "metadata": request.metadata,
        }
        if request.callback_url:
            payload["callback_url"] = request.callback_url

        data = await self._request("POST", "/transaction/initialize", json_body=payload)

        logger.info(f"Paystack charge initialized: {data.get('reference')}")
        return ChargeInitialization(
            reference=data["reference"],
            authorization_url=data["authorization_url"],
            access_code=data.get("access_code"),
        )

    async def verify_charge(self, reference: str) -> ChargeVerification:
        data = await self._request("GET", f"/transaction/verify/{reference}")

        metadata = data.get("metadata") or {}
        if isinstance(metadata, str):
            # Paystack echoes metadata back as a JSON string in some integrations
            try:
                metadata = json.loads(metadata)
            except ValueError:
                metadata = {}

        return ChargeVerification(
            reference=data.get("reference", reference),
            status=str(data.get("status", "")),
            amount_minor=int(data.get("amount") or 0),
            currency=str(data.get("currency", "")),
            metadata=metadata if isinstance(metadata, dict) else {},
            gateway_response=data.get("gateway_response"),
            raw=data,
        )

    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        if not signature or not self.settings.secret_key:
            return False
        expected = hmac.new(
            self.settings.secret_key.encode("utf-8"),
            raw_body,
            hashlib.sha512,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Call the Paystack API and return its ``data`` object.

        Raises:
            GatewayTimeoutError: no answer within the configured timeout
            GatewayError: transport failure or Paystack rejected the call
        """
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, json=json_body, headers=self._headers) as response:
                    body = await response.json(content_type=None)
                    if response.status >= 400 or not (body or {}).get("status"):
                        message = (body or {}).get("message", "Unknown gateway error")
                        logger.error(f"Paystack API error: {response.status} - {message}")
                        raise GatewayError(
                            f"Paystack {method} {path} failed: {message}",
                            details={"http_status": response.status, "gateway_message": message},
                        )
                    return body.get("data") or {}
        except asyncio.TimeoutError as e:
            logger.error(f"Paystack {method} {path} timed out after {self.settings.timeout_seconds}s")
            raise GatewayTimeoutError(
                f"Paystack {method} {path} timed out",
                details={"timeout_seconds": self.settings.timeout_seconds},
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"Paystack {method} {path} transport error: {e}")
            raise GatewayError(f"Paystack {method} {path} unreachable: {e}") from e
