"""Verification lock and one-time token stores."""
from .in_memory import InMemoryPaymentLockStore, InMemoryVerificationTokenStore
from .redis_store import (
    RedisPaymentLockStore,
    RedisVerificationTokenStore,
    create_redis_client,
)

__all__ = [
    "InMemoryPaymentLockStore",
    "InMemoryVerificationTokenStore",
    "RedisPaymentLockStore",
    "RedisVerificationTokenStore",
    "create_redis_client",
]
