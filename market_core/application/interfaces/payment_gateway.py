"""Payment gateway port."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


# Gateway charge statuses that settle a reference for good
GATEWAY_SUCCESS_STATUSES = frozenset({"success"})
GATEWAY_FAILURE_STATUSES = frozenset({"failed", "abandoned", "reversed"})


@dataclass(frozen=True)
class ChargeRequest:
    """Charge to open at the gateway. ``amount_minor`` is in the currency's minor unit."""

    email: str
    amount_minor: int
    currency: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    callback_url: Optional[str] = None


@dataclass(frozen=True)
class ChargeInitialization:
    reference: str
    authorization_url: str
    access_code: Optional[str] = None


@dataclass(frozen=True)
class ChargeVerification:
    """What the gateway reports for a reference."""

    reference: str
    status: str
    amount_minor: int
    currency: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    gateway_response: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status in GATEWAY_SUCCESS_STATUSES

    @property
    def is_failure(self) -> bool:
        return self.status in GATEWAY_FAILURE_STATUSES


class IPaymentGateway(ABC):
    """
    Interface for the external payment gateway.

    Implementations raise ``GatewayTimeoutError`` when the call exceeds
    its deadline and ``GatewayError`` for any other failure.
    """

    @abstractmethod
    async def initialize_charge(self, request: ChargeRequest) -> ChargeInitialization:
        """
        Open a charge and obtain its reference and redirect URL.

        Args:
            request: Amount, currency, payer email and metadata

        Returns:
            Reference and authorization URL
        """

    @abstractmethod
    async def verify_charge(self, reference: str) -> ChargeVerification:
        """
        Ask the gateway for the current state of a charge.

        Args:
            reference: Gateway payment reference

        Returns:
            Status, amount, currency and metadata as reported by the gateway
        """

    @abstractmethod
    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """Check the webhook HMAC against the raw request body."""
