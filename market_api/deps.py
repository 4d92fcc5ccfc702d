"""FastAPI dependencies for dependency injection."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import redis.asyncio as aioredis

from market_core.application.interfaces import (
    IPaymentGateway,
    IPaymentLockStore,
    IVerificationTokenStore,
)
from market_core.application.services import (
    CheckoutService,
    CommissionService,
    DispatchService,
    OrderApplicationService,
    PaymentService,
    PayoutService,
)
from market_core.domain.enums import ActorRole
from market_core.domain.errors import RoleViolationError, ValidationFailedError
from market_core.domain.event_bus import EventBus
from market_core.infrastructure.adapters.payments import PaystackGateway
from market_core.infrastructure.database import config as database
from market_core.infrastructure.event_bus import get_event_bus
from market_core.infrastructure.locks import (
    InMemoryPaymentLockStore,
    InMemoryVerificationTokenStore,
    RedisPaymentLockStore,
    RedisVerificationTokenStore,
    create_redis_client,
)
from market_core.settings import AppSettings, get_app_settings

# Load environment variables once, before any settings object is built
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")


# =============================================================================
# ACTOR IDENTITY
# =============================================================================

@dataclass(frozen=True)
class Actor:
    """Authenticated caller as resolved by the upstream gateway."""

    actor_id: str
    role: ActorRole


def get_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> Actor:
    """Read the caller from ``X-Actor-Id`` / ``X-Actor-Role``.

    Authentication happens upstream; these headers carry its result.
    ``system`` is reserved for internal callers and rejected here.
    """
    if not x_actor_id or not x_actor_role:
        raise RoleViolationError(
            "Missing actor identity headers",
            user_message="Authentication required.",
        )
    try:
        role = ActorRole(x_actor_role.strip().lower())
    except ValueError:
        raise ValidationFailedError(
            f"Unknown actor role {x_actor_role}",
            user_message="Unknown role.",
            details={"role": x_actor_role},
        )
    if role == ActorRole.SYSTEM:
        raise RoleViolationError("System role cannot be claimed over HTTP")
    return Actor(actor_id=x_actor_id, role=role)


def require_role(actor: Actor, *roles: ActorRole) -> None:
    """Raise RoleViolationError unless the actor has one of ``roles``."""
    if actor.role not in roles:
        raise RoleViolationError(
            f"Role {actor.role.value} not allowed, expected one of {[r.value for r in roles]}",
            details={"actor_role": actor.role.value},
        )


def require_admin(actor: Actor) -> None:
    require_role(actor, ActorRole.ADMIN, ActorRole.SUPER_ADMIN)


# =============================================================================
# INFRASTRUCTURE
# =============================================================================

def get_settings() -> AppSettings:
    return get_app_settings()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get SQLAlchemy session factory bound to the global engine.

    Returns:
        async_sessionmaker instance
    """
    return database.get_session_factory()


def get_bus() -> EventBus:
    return get_event_bus()


# Process-wide singletons
_redis_client: Optional[aioredis.Redis] = None
_lock_store: Optional[IPaymentLockStore] = None
_token_store: Optional[IVerificationTokenStore] = None
_payment_gateway: Optional[IPaymentGateway] = None


def _get_redis_client(settings: AppSettings) -> aioredis.Redis:
    global _redis_client

    if _redis_client is None:
        _redis_client = create_redis_client(settings.redis.url)
    return _redis_client


def get_lock_store(settings: AppSettings = Depends(get_settings)) -> IPaymentLockStore:
    """Verification lock store: Redis when enabled, otherwise in-process."""
    global _lock_store

    if _lock_store is None:
        if settings.redis.enabled:
            _lock_store = RedisPaymentLockStore(_get_redis_client(settings), settings.redis.key_prefix)
        else:
            _lock_store = InMemoryPaymentLockStore()
    return _lock_store


def get_token_store(settings: AppSettings = Depends(get_settings)) -> IVerificationTokenStore:
    """Verification token store: Redis when enabled, otherwise in-process."""
    global _token_store

    if _token_store is None:
        if settings.redis.enabled:
            _token_store = RedisVerificationTokenStore(_get_redis_client(settings), settings.redis.key_prefix)
        else:
            _token_store = InMemoryVerificationTokenStore()
    return _token_store


def get_payment_gateway(settings: AppSettings = Depends(get_settings)) -> IPaymentGateway:
    global _payment_gateway

    if _payment_gateway is None:
        _payment_gateway = PaystackGateway(settings.payment)
    return _payment_gateway


async def close_shared_clients() -> None:
    """Close the Redis connection pool, if one was opened."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


# =============================================================================
# APPLICATION SERVICES
# =============================================================================

def get_order_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    settings: AppSettings = Depends(get_settings),
    event_bus: EventBus = Depends(get_bus),
) -> OrderApplicationService:
    """Get OrderApplicationService instance.

    Returns:
        OrderApplicationService instance
    """
    return OrderApplicationService(session_factory, event_bus, settings.marketplace.currency)


def get_dispatch_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    settings: AppSettings = Depends(get_settings),
    event_bus: EventBus = Depends(get_bus),
) -> DispatchService:
    return DispatchService(session_factory, settings.marketplace, event_bus)


def get_checkout_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    settings: AppSettings = Depends(get_settings),
    event_bus: EventBus = Depends(get_bus),
    dispatch_service: DispatchService = Depends(get_dispatch_service),
) -> CheckoutService:
    return CheckoutService(session_factory, settings.marketplace, event_bus, dispatch_service)


def get_commission_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    settings: AppSettings = Depends(get_settings),
    event_bus: EventBus = Depends(get_bus),
) -> CommissionService:
    return CommissionService(session_factory, settings.marketplace, event_bus)


def get_payment_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    settings: AppSettings = Depends(get_settings),
    event_bus: EventBus = Depends(get_bus),
    gateway: IPaymentGateway = Depends(get_payment_gateway),
    lock_store: IPaymentLockStore = Depends(get_lock_store),
    token_store: IVerificationTokenStore = Depends(get_token_store),
    commission_service: CommissionService = Depends(get_commission_service),
) -> PaymentService:
    """Get PaymentService wired to the shared gateway and verification stores.

    Returns:
        PaymentService instance
    """
    return PaymentService(
        session_factory,
        gateway,
        lock_store,
        token_store,
        commission_service,
        settings.payment,
        settings.marketplace,
        event_bus,
    )


def get_payout_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    settings: AppSettings = Depends(get_settings),
    event_bus: EventBus = Depends(get_bus),
) -> PayoutService:
    return PayoutService(session_factory, settings.marketplace, event_bus)
