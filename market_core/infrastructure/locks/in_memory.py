"""
In-process verification lock and token stores.

Good for a single server process and for tests. Expired entries are
dropped on every access and by ``purge_expired``.
"""
import logging
import secrets
import time
from typing import Callable, Dict, Optional, Tuple

from market_core.application.interfaces import (
    IPaymentLockStore,
    IVerificationTokenStore,
    VerificationToken,
)


logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class InMemoryPaymentLockStore(IPaymentLockStore):
    """Per-key lock with expiry. Check-and-set runs without awaiting, so it is atomic on one event loop."""

    def __init__(self, clock: Clock = time.monotonic):
        self._clock = clock
        self._locks: Dict[str, Tuple[str, float]] = {}

    async def acquire(self, key: str, ttl_seconds: int) -> Optional[str]:
        self.purge_expired()
        if key in self._locks:
            return None
        owner = secrets.token_hex(16)
        self._locks[key] = (owner, self._clock() + ttl_seconds)
        return owner

    async def release(self, key: str, owner: str) -> None:
        entry = self._locks.get(key)
        if entry is not None and entry[0] == owner:
            del self._locks[key]

    def is_locked(self, key: str) -> bool:
        self.purge_expired()
        return key in self._locks

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._locks.items() if expires_at <= now]
        for key in expired:
            del self._locks[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired verification locks")
        return len(expired)


class InMemoryVerificationTokenStore(IVerificationTokenStore):

    def __init__(self, clock: Clock = time.monotonic):
        self._clock = clock
        self._tokens: Dict[str, Tuple[VerificationToken, float]] = {}

    async def put(self, token: VerificationToken, ttl_seconds: int) -> None:
        self.purge_expired()
        self._tokens[token.token] = (token, self._clock() + ttl_seconds)

    async def get(self, token: str) -> Optional[VerificationToken]:
        self.purge_expired()
        entry = self._tokens.get(token)
        return entry[0] if entry else None

    async def delete(self, token: str) -> None:
        self._tokens.pop(token, None)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._tokens.items() if expires_at <= now]
        for key in expired:
            del self._tokens[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired verification tokens")
        return len(expired)
