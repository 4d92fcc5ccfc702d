"""Order endpoints for REST API."""

import logging
from typing import List

from fastapi import APIRouter, Depends

from market_core.application.dtos import (
    AllowedTransitionsDTO,
    AssignRiderRequest,
    OrderDTO,
    RiderLoadDTO,
    StatusHistoryDTO,
    TransitionOrderRequest,
)
from market_core.application.services import DispatchService, OrderApplicationService
from market_core.domain.enums import ActorRole
from market_core.domain.errors import RoleViolationError

from market_api.deps import (
    Actor,
    get_actor,
    get_dispatch_service,
    get_order_service,
    require_admin,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["orders"])


def _ensure_can_view(order: OrderDTO, actor: Actor) -> None:
    """Parties to an order and administrators may read it."""
    if actor.role.is_admin:
        return
    party = {
        ActorRole.BUYER: order.buyer_id,
        ActorRole.SELLER: order.seller_id,
        ActorRole.RIDER: order.rider_id,
    }.get(actor.role)
    if party != actor.actor_id:
        raise RoleViolationError(
            f"{actor.role.value} {actor.actor_id} is not a party to order {order.id}",
            user_message="You do not have access to this order.",
            details={"order_id": order.id},
        )


@router.get("/orders/{order_id}", response_model=OrderDTO)
async def get_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    service: OrderApplicationService = Depends(get_order_service),
) -> OrderDTO:
    """Get order by ID.

    Args:
        order_id: Order ID string
        actor: Caller identity
        service: OrderApplicationService instance

    Returns:
        OrderDTO with order details
    """
    order = await service.get_order(order_id)
    _ensure_can_view(order, actor)
    return order


@router.post(
    "/orders/{order_id}/status",
    response_model=OrderDTO,
    summary="Transition order status",
    description=(
        "Validates the move against the lifecycle table, the caller's role and "
        "the order's guards, then applies it with its side effects and an audit row."
    ),
)
async def transition_order(
    order_id: str,
    request: TransitionOrderRequest,
    actor: Actor = Depends(get_actor),
    service: OrderApplicationService = Depends(get_order_service),
) -> OrderDTO:
    logger.info(f"API: {actor.role.value} {actor.actor_id} requests {order_id} -> {request.status.value}")
    return await service.transition_order(order_id, request, actor.actor_id, actor.role)


@router.get("/orders/{order_id}/allowed-transitions", response_model=AllowedTransitionsDTO)
async def get_allowed_transitions(
    order_id: str,
    actor: Actor = Depends(get_actor),
    service: OrderApplicationService = Depends(get_order_service),
) -> AllowedTransitionsDTO:
    """Statuses the caller's role may request next (guards are checked on the actual transition)."""
    _ensure_can_view(await service.get_order(order_id), actor)
    return await service.get_allowed_transitions(order_id, actor.role)


@router.get("/orders/{order_id}/history", response_model=List[StatusHistoryDTO])
async def get_status_history(
    order_id: str,
    actor: Actor = Depends(get_actor),
    service: OrderApplicationService = Depends(get_order_service),
) -> List[StatusHistoryDTO]:
    _ensure_can_view(await service.get_order(order_id), actor)
    return await service.get_status_history(order_id)


@router.get("/orders/sessions/{checkout_session_id}", response_model=List[OrderDTO])
async def list_session_orders(
    checkout_session_id: str,
    actor: Actor = Depends(get_actor),
    service: OrderApplicationService = Depends(get_order_service),
) -> List[OrderDTO]:
    """Sibling orders created by one multi-vendor checkout."""
    orders = await service.list_session_orders(checkout_session_id)
    if not actor.role.is_admin:
        orders = [order for order in orders if actor.actor_id in (order.buyer_id, order.seller_id, order.rider_id)]
        if not orders:
            raise RoleViolationError(
                f"{actor.actor_id} is not a party to checkout session {checkout_session_id}",
                user_message="You do not have access to this checkout.",
            )
    return orders


@router.post(
    "/orders/{order_id}/rider",
    response_model=OrderDTO,
    summary="Assign or reassign a rider",
)
async def assign_rider(
    order_id: str,
    request: AssignRiderRequest,
    actor: Actor = Depends(get_actor),
    service: DispatchService = Depends(get_dispatch_service),
) -> OrderDTO:
    logger.info(f"API: Assign rider {request.rider_id} to order {order_id} by {actor.actor_id}")
    return await service.assign_rider(order_id, request.rider_id, actor.actor_id, actor.role)


@router.get("/riders/available", response_model=List[RiderLoadDTO])
async def available_riders(
    actor: Actor = Depends(get_actor),
    service: DispatchService = Depends(get_dispatch_service),
) -> List[RiderLoadDTO]:
    """Approved, active riders with their current load."""
    require_admin(actor)
    return await service.available_riders()
