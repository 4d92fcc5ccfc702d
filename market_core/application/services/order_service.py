"""Application service for Order operations."""

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from market_core.application.dtos import (
    AllowedTransitionsDTO,
    OrderDTO,
    StatusHistoryDTO,
    TransitionOrderRequest,
)
from market_core.domain.clock import utcnow
from market_core.domain.entities import Order, StatusHistoryEntry
from market_core.domain.enums import ActorRole, OrderStatus
from market_core.domain.errors import NotFoundError, TransitionError
from market_core.domain.event_bus import EventBus
from market_core.domain.state_machine import (
    TransitionRequest,
    evaluate_transition,
    get_allowed_transitions,
)
from market_core.infrastructure.database.unit_of_work import UnitOfWork, create_uow


logger = logging.getLogger(__name__)


async def transition_locked_order(
    uow: UnitOfWork,
    order: Order,
    request: TransitionRequest,
    now: Optional[datetime] = None,
) -> StatusHistoryEntry:
    """
    Validate and apply a transition on an order locked by ``uow``.

    Status write, side effects and the audit row all land in the same
    unit of work. The caller saves the order and commits.
    """
    now = now or utcnow()
    plan = evaluate_transition(order, request, now)
    entry = order.apply_transition(
        plan.to_status,
        plan.changes,
        changed_by=request.actor_id,
        changed_by_role=request.actor_role,
        reason=request.reason,
        now=now,
    )
    await uow.orders.append_history(entry)
    return entry


class OrderApplicationService:
    """
    Application service for orchestrating order operations.

    Responsibilities:
    - Drive status transitions through the locked-mutation path
    - Expose read models (order, history, allowed transitions)
    - Publish order events after commit
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        event_bus: Optional[EventBus] = None,
        currency: str = "GHS",
    ) -> None:
        """Initialize order application service.

        Args:
            session_factory: SQLAlchemy async session factory
            event_bus: Receives events after commit
            currency: Platform currency
        """
        self._session_factory = session_factory
        self._event_bus = event_bus
        self._currency = currency

    async def transition_order(
        self,
        order_id: str,
        request: TransitionOrderRequest,
        actor_id: str,
        actor_role: ActorRole,
    ) -> OrderDTO:
        """Move an order to a new status on behalf of an actor.

        Args:
            order_id: Order to change
            request: Target status and optional reason
            actor_id: Authenticated actor
            actor_role: Actor's role

        Returns:
            OrderDTO after the transition

        Raises:
            NotFoundError: order missing
            InvalidTransitionError / TransitionRoleViolationError /
            PreconditionFailedError: transition rejected, nothing written
        """
        transition = TransitionRequest(
            target_status=request.status,
            actor_id=actor_id,
            actor_role=actor_role,
            reason=request.reason,
        )

        uow = create_uow(self._session_factory, self._currency)
        async with uow:
            async def mutate(order: Order) -> Order:
                await transition_locked_order(uow, order, transition)
                return order

            try:
                order = await uow.with_locked_order(order_id, mutate)
            except TransitionError as e:
                logger.info(f"[{uow.execution_id}] Transition rejected for order {order_id}: {e.code.value} ({e.reason})")
                raise

            await uow.commit()

        logger.info(
            f"Order {order.order_number} -> {order.status.value} by {actor_role.value} {actor_id}"
        )
        await self._publish(order)
        return OrderDTO.from_entity(order)

    async def get_order(self, order_id: str) -> OrderDTO:
        uow = create_uow(self._session_factory, self._currency)
        async with uow:
            order = await uow.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return OrderDTO.from_entity(order)

    async def list_session_orders(self, checkout_session_id: str) -> List[OrderDTO]:
        """Sibling orders of one multi-vendor checkout."""
        uow = create_uow(self._session_factory, self._currency)
        async with uow:
            orders = await uow.orders.find_by_checkout_session(checkout_session_id)
        if not orders:
            raise NotFoundError("CheckoutSession", checkout_session_id)
        return [OrderDTO.from_entity(order) for order in orders]

    async def get_allowed_transitions(self, order_id: str, actor_role: ActorRole) -> AllowedTransitionsDTO:
        """Targets the role may request from the current status (guards not evaluated)."""
        order = await self.get_order(order_id)
        current = order.status
        allowed = get_allowed_transitions(OrderStatus(current), actor_role)
        return AllowedTransitionsDTO(
            order_id=order_id,
            current_status=current,
            role=actor_role,
            allowed=[status.value for status in allowed],
        )

    async def get_status_history(self, order_id: str) -> List[StatusHistoryDTO]:
        uow = create_uow(self._session_factory, self._currency)
        async with uow:
            order = await uow.orders.get(order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            history = await uow.orders.list_history(order_id)
        return [StatusHistoryDTO.from_entity(entry) for entry in history]

    async def _publish(self, order: Order) -> None:
        if self._event_bus is None:
            order.clear_domain_events()
            return
        await self._event_bus.publish_all(order.get_domain_events())
        order.clear_domain_events()
