"""Checkout endpoint for REST API."""

import logging

from fastapi import APIRouter, Depends

from market_core.application.dtos import CheckoutRequest, CheckoutResult
from market_core.application.services import CheckoutService
from market_core.domain.enums import ActorRole

from market_api.deps import Actor, get_actor, get_checkout_service, require_role

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "",
    response_model=CheckoutResult,
    status_code=201,
    summary="Check out the buyer's cart",
    description=(
        "Re-prices the cart from the catalog, splits it into one order per seller "
        "and persists all of them atomically. Multi-vendor carts share a "
        "checkout_session_id and are paid with a single charge."
    ),
)
async def checkout(
    request: CheckoutRequest,
    actor: Actor = Depends(get_actor),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResult:
    require_role(actor, ActorRole.BUYER)
    logger.info(f"API: Checkout by buyer {actor.actor_id} ({len(request.items)} line(s))")
    return await service.checkout(actor.actor_id, request)
