"""Commission and earnings endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from market_core.application.dtos import CommissionDTO, PlatformEarningsDTO, SellerBalanceDTO
from market_core.application.services import CommissionService
from market_core.domain.enums import ActorRole, CommissionStatus

from market_api.deps import Actor, get_actor, get_commission_service, require_admin, require_role

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/commissions", tags=["commissions"])


@router.get("", response_model=List[CommissionDTO])
async def list_commissions(
    status: Optional[CommissionStatus] = Query(default=None, description="Filter by commission status"),
    actor: Actor = Depends(get_actor),
    service: CommissionService = Depends(get_commission_service),
) -> List[CommissionDTO]:
    """The calling seller's commissions, oldest first."""
    require_role(actor, ActorRole.SELLER)
    return await service.list_seller_commissions(actor.actor_id, status)


@router.get("/balance", response_model=SellerBalanceDTO)
async def get_balance(
    actor: Actor = Depends(get_actor),
    service: CommissionService = Depends(get_commission_service),
) -> SellerBalanceDTO:
    """Available balance: the sum of pending seller amounts."""
    require_role(actor, ActorRole.SELLER)
    return await service.get_seller_balance(actor.actor_id)


@router.get("/platform-earnings", response_model=PlatformEarningsDTO)
async def get_platform_earnings(
    actor: Actor = Depends(get_actor),
    service: CommissionService = Depends(get_commission_service),
) -> PlatformEarningsDTO:
    require_admin(actor)
    return await service.get_platform_earnings()


@router.post(
    "/orders/{order_id}",
    response_model=CommissionDTO,
    summary="Record the commission of a paid order",
    description="Idempotent: returns the existing commission when one is already recorded.",
)
async def calculate_commission(
    order_id: str,
    actor: Actor = Depends(get_actor),
    service: CommissionService = Depends(get_commission_service),
) -> CommissionDTO:
    require_admin(actor)
    logger.info(f"API: Calculate commission for order {order_id} by {actor.actor_id}")
    return await service.calculate_commission(order_id)
