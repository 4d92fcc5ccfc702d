"""Ports for the payment verification lock and one-time tokens."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class VerificationToken:
    """One-time token binding a client verification to who started the payment."""

    token: str
    user_id: str
    order_id: str
    payment_reference: str


class IPaymentLockStore(ABC):
    """
    Short-lived mutual exclusion per payment reference.

    ``acquire`` is an atomic set-if-absent with TTL; it returns an owner
    token, or None when someone else holds the lock. ``release`` only
    removes the lock if ``owner`` still holds it.
    """

    @abstractmethod
    async def acquire(self, key: str, ttl_seconds: int) -> Optional[str]:
        pass

    @abstractmethod
    async def release(self, key: str, owner: str) -> None:
        pass


class IVerificationTokenStore(ABC):
    """Storage for single-use verification tokens with expiry."""

    @abstractmethod
    async def put(self, token: VerificationToken, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    async def get(self, token: str) -> Optional[VerificationToken]:
        """The token if present and not expired."""

    @abstractmethod
    async def delete(self, token: str) -> None:
        pass
