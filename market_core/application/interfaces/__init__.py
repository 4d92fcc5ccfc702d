"""Application layer interfaces."""
from abc import ABC, abstractmethod

from market_core.domain.events import DomainEvent

from .idempotency import IPaymentLockStore, IVerificationTokenStore, VerificationToken
from .payment_gateway import (
    GATEWAY_FAILURE_STATUSES,
    GATEWAY_SUCCESS_STATUSES,
    ChargeInitialization,
    ChargeRequest,
    ChargeVerification,
    IPaymentGateway,
)


class INotificationService(ABC):
    """
    Interface for delivering marketplace events to people.

    This interface defines the contract for notifications, allowing
    different implementations (push, email, SMS, log).
    """

    @abstractmethod
    async def handle_event(self, event: DomainEvent) -> None:
        """
        Turn a committed domain event into user-facing notifications.

        Args:
            event: Domain event published after commit
        """

    @abstractmethod
    async def notify(self, user_id: str, title: str, message: str) -> None:
        """
        Deliver one notification.

        Args:
            user_id: Recipient
            title: Short title
            message: Human-readable body
        """


__all__ = [
    "GATEWAY_FAILURE_STATUSES",
    "GATEWAY_SUCCESS_STATUSES",
    "ChargeInitialization",
    "ChargeRequest",
    "ChargeVerification",
    "INotificationService",
    "IPaymentGateway",
    "IPaymentLockStore",
    "IVerificationTokenStore",
    "VerificationToken",
]
