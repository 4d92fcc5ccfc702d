"""Seller payout endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from market_core.application.dtos import PayoutDTO, PayoutRequest, UpdatePayoutStatusRequest
from market_core.application.services import PayoutService
from market_core.domain.enums import PayoutStatus

from market_api.deps import Actor, get_actor, get_payout_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payouts", tags=["payouts"])


@router.post(
    "",
    response_model=PayoutDTO,
    status_code=201,
    summary="Request a payout",
    description=(
        "The amount must equal the sum of an exact set of pending commissions. "
        "When it does not, the error lists the amounts that can be withdrawn."
    ),
)
async def request_payout(
    request: PayoutRequest,
    actor: Actor = Depends(get_actor),
    service: PayoutService = Depends(get_payout_service),
) -> PayoutDTO:
    logger.info(f"API: Payout of {request.amount} requested by {actor.actor_id}")
    return await service.request_payout(actor.actor_id, actor.role, request)


@router.get("", response_model=List[PayoutDTO])
async def list_payouts(
    status: Optional[PayoutStatus] = Query(default=None, description="Filter by payout status"),
    seller_id: Optional[str] = Query(default=None, description="Admins only: filter by seller"),
    actor: Actor = Depends(get_actor),
    service: PayoutService = Depends(get_payout_service),
) -> List[PayoutDTO]:
    return await service.list_payouts(actor.actor_id, actor.role, status=status, seller_id=seller_id)


@router.patch("/{payout_id}/status", response_model=PayoutDTO, summary="Advance a payout (admin)")
async def update_payout_status(
    payout_id: str,
    request: UpdatePayoutStatusRequest,
    actor: Actor = Depends(get_actor),
    service: PayoutService = Depends(get_payout_service),
) -> PayoutDTO:
    logger.info(f"API: Payout {payout_id} -> {request.status.value} by {actor.actor_id}")
    return await service.update_payout_status(payout_id, request, actor.actor_id, actor.role)
