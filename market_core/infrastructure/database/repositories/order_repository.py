"""
SQLAlchemy Order Repository Implementation.

Implements the OrderRepository interface on top of an AsyncSession.
Commit is handled by the Unit of Work; methods only flush.
"""
from typing import List, Optional, Sequence
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from market_core.domain.entities import Order, StatusHistoryEntry
from market_core.domain.errors import NotFoundError
from market_core.domain.repositories import OrderRepository
from market_core.infrastructure.database.mappers import OrderMapper, StatusHistoryMapper
from market_core.infrastructure.database.models import OrderModel, OrderStatusHistoryModel


logger = logging.getLogger(__name__)


class SqlAlchemyOrderRepository(OrderRepository):
    """
    SQLAlchemy implementation of OrderRepository.

    Lock-taking reads use ``SELECT ... FOR UPDATE`` and refresh any copy
    already in the identity map, so callers always validate against the
    row as it is under the lock.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, order: Order) -> None:
        self._session.add(OrderMapper.to_model(order))
        await self._session.flush()
        logger.debug(f"Order added: {order.order_number}")

    async def save(self, order: Order) -> None:
        model = await self._session.get(OrderModel, order.id)
        if model is None:
            raise NotFoundError("Order", order.id)

        OrderMapper.update_model(model, order)
        await self._session.flush()

    async def get(self, order_id: str) -> Optional[Order]:
        stmt = select(OrderModel).where(OrderModel.id == order_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return OrderMapper.to_domain(model) if model else None

    async def get_for_update(self, order_id: str) -> Optional[Order]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return OrderMapper.to_domain(model) if model else None

    async def get_many_for_update(self, order_ids: Sequence[str]) -> List[Order]:
        if not order_ids:
            return []

        # Fixed lock order keeps concurrent multi-order lockers from deadlocking
        stmt = (
            select(OrderModel)
            .where(OrderModel.id.in_(sorted(set(order_ids))))
            .order_by(OrderModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [OrderMapper.to_domain(model) for model in result.scalars().all()]

    async def find_by_checkout_session(self, checkout_session_id: str) -> List[Order]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.checkout_session_id == checkout_session_id)
            .order_by(OrderModel.seller_id)
        )
        result = await self._session.execute(stmt)
        return [OrderMapper.to_domain(model) for model in result.scalars().all()]

    async def find_by_payment_reference(self, payment_reference: str) -> List[Order]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.payment_reference == payment_reference)
            .order_by(OrderModel.id)
        )
        result = await self._session.execute(stmt)
        return [OrderMapper.to_domain(model) for model in result.scalars().all()]

    async def append_history(self, entry: StatusHistoryEntry) -> None:
        self._session.add(StatusHistoryMapper.to_model(entry))
        await self._session.flush()

    async def list_history(self, order_id: str) -> List[StatusHistoryEntry]:
        stmt = (
            select(OrderStatusHistoryModel)
            .where(OrderStatusHistoryModel.order_id == order_id)
            .order_by(OrderStatusHistoryModel.id)
        )
        result = await self._session.execute(stmt)
        return [StatusHistoryMapper.to_domain(model) for model in result.scalars().all()]
