"""Rider dispatch: automatic least-loaded assignment and manual reassignment."""

from typing import List, Optional, Tuple
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from market_core.application.dtos import OrderDTO, RiderLoadDTO
from market_core.domain.entities import Order, RiderLoad
from market_core.domain.enums import ActorRole, OrderStatus
from market_core.domain.errors import (
    NotFoundError,
    PreconditionFailedError,
    RoleViolationError,
)
from market_core.domain.event_bus import EventBus
from market_core.domain.services import select_least_loaded
from market_core.infrastructure.database.unit_of_work import create_uow
from market_core.settings.modules.marketplace_settings import MarketplaceSettings


logger = logging.getLogger(__name__)

# Riders can only be (re)assigned before the parcel leaves
ASSIGNABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


class DispatchService:
    """
    Greedy load balancer across approved, active riders.

    Both paths lock the order and go through ``Order.assign_rider``, so
    every assignment emits ``RiderAssignedEvent`` after commit.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: MarketplaceSettings,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings
        self._event_bus = event_bus

    async def auto_assign(self, order_id: str) -> Optional[OrderDTO]:
        """
        Assign the least-loaded rider below the load ceiling.

        Returns:
            The updated order, or None when the order already has a rider,
            is past dispatch, or no rider has capacity
        """
        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:

            async def mutate(order: Order) -> Optional[Tuple[Order, RiderLoad]]:
                if order.rider_id or order.status not in ASSIGNABLE_STATUSES:
                    return None
                # Loads include pending orders, so earlier checkout assignments count
                riders = await uow.users.list_rider_loads()
                chosen = select_least_loaded(riders, self._settings.rider_max_active_orders)
                if chosen is None:
                    logger.warning(f"No rider with capacity for order {order.order_number}")
                    return None
                order.assign_rider(chosen.rider_id, assigned_by=ActorRole.SYSTEM.value)
                return order, chosen

            assigned = await uow.with_locked_order(order_id, mutate)
            if assigned is None:
                return None
            order, rider = assigned
            await uow.commit()

        logger.info(
            f"Rider {rider.rider_id} auto-assigned to order {order.order_number} "
            f"({rider.active_orders} active)"
        )
        await self._publish(order)
        return OrderDTO.from_entity(order)

    async def assign_rider(
        self,
        order_id: str,
        rider_id: str,
        actor_id: str,
        actor_role: ActorRole,
    ) -> OrderDTO:
        """
        Manually (re)assign a rider. Admin only.

        Raises:
            RoleViolationError: actor is not an administrator
            NotFoundError: order missing, or rider not approved and active
            PreconditionFailedError: order already out for delivery or closed
        """
        if not actor_role.is_admin:
            raise RoleViolationError(
                f"Role {actor_role.value} cannot assign riders",
                details={"actor_role": actor_role.value},
            )

        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            rider = await uow.users.get_rider_load(rider_id)
            if rider is None:
                raise NotFoundError("Rider", rider_id, user_message="Rider not found or not available.")

            def mutate(order: Order) -> Order:
                if order.status not in ASSIGNABLE_STATUSES:
                    raise PreconditionFailedError(
                        order.status,
                        order.status,
                        f"Cannot assign a rider to a {order.status.value} order",
                        details={"rider_id": rider_id},
                    )
                order.assign_rider(rider_id, assigned_by=actor_id)
                return order

            order = await uow.with_locked_order(order_id, mutate)
            await uow.commit()

        logger.info(f"Rider {rider_id} assigned to order {order.order_number} by {actor_id}")
        await self._publish(order)
        return OrderDTO.from_entity(order)

    async def available_riders(self) -> List[RiderLoadDTO]:
        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            riders = await uow.users.list_rider_loads()
        return [
            RiderLoadDTO.from_entity(rider, self._settings.rider_max_active_orders)
            for rider in riders
        ]

    async def _publish(self, order: Order) -> None:
        events = order.get_domain_events()
        order.clear_domain_events()
        if self._event_bus is not None:
            await self._event_bus.publish_all(events)
