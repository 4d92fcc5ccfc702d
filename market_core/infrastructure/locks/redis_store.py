"""
Redis-backed verification lock and token stores.

Shared by every server instance. Locks are ``SET NX EX`` with a random
owner value; release is a compare-and-delete script so an expired lock
that was re-acquired by someone else is never removed.
"""
import json
import logging
import secrets
from dataclasses import asdict
from typing import Optional

import redis.asyncio as aioredis

from market_core.application.interfaces import (
    IPaymentLockStore,
    IVerificationTokenStore,
    VerificationToken,
)


logger = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def create_redis_client(url: str) -> aioredis.Redis:
    """Client with string responses, as both stores expect."""
    return aioredis.from_url(url, encoding="utf-8", decode_responses=True)


class RedisPaymentLockStore(IPaymentLockStore):

    def __init__(self, client: aioredis.Redis, prefix: str = "market"):
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:payment-lock:{key}"

    async def acquire(self, key: str, ttl_seconds: int) -> Optional[str]:
        owner = secrets.token_hex(16)
        acquired = await self._client.set(self._key(key), owner, nx=True, ex=ttl_seconds)
        return owner if acquired else None

    async def release(self, key: str, owner: str) -> None:
        released = await self._client.eval(_RELEASE_SCRIPT, 1, self._key(key), owner)
        if not released:
            logger.warning(f"Verification lock {key} was not held by this owner at release")


class RedisVerificationTokenStore(IVerificationTokenStore):

    def __init__(self, client: aioredis.Redis, prefix: str = "market"):
        self._client = client
        self._prefix = prefix

    def _key(self, token: str) -> str:
        return f"{self._prefix}:verification-token:{token}"

    async def put(self, token: VerificationToken, ttl_seconds: int) -> None:
        await self._client.set(self._key(token.token), json.dumps(asdict(token)), ex=ttl_seconds)

    async def get(self, token: str) -> Optional[VerificationToken]:
        raw = await self._client.get(self._key(token))
        if raw is None:
            return None
        return VerificationToken(**json.loads(raw))

    async def delete(self, token: str) -> None:
        await self._client.delete(self._key(token))
