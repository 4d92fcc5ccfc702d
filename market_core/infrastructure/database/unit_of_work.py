"""Unit of Work pattern for atomic transactions."""

from inspect import isawaitable
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar, Union
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from market_core.domain.entities import Order
from market_core.domain.errors import NotFoundError
from market_core.domain.value_objects import DEFAULT_CURRENCY, ExecutionID

from .repositories import (
    SqlAlchemyCatalogRepository,
    SqlAlchemyCommissionRepository,
    SqlAlchemyOrderRepository,
    SqlAlchemyPayoutRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemyUserRepository,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")
OrderMutation = Callable[[Order], Union[T, Awaitable[T]]]

_NOT_INITIALIZED = "UnitOfWork not initialized. Use async context manager."


class UnitOfWork:
    """
    Unit of Work pattern for atomic transactions.

    Responsibilities:
    1. Manage SQLAlchemy session lifecycle
    2. Propagate ExecutionID across all operations
    3. Atomic commit/rollback of all repository operations
    4. Lazy initialization of repositories
    5. Locked read-validate-write of orders (``with_locked_order``)

    Usage:
        async with create_uow(session_factory) as uow:
            await uow.with_locked_order(order_id, mutate)
            await uow.commit()
    """

    def __init__(self, session_factory: async_sessionmaker, currency: str = DEFAULT_CURRENCY) -> None:
        """Initialize Unit of Work.

        Args:
            session_factory: SQLAlchemy async session factory
            currency: Currency used for collaborator amounts (zones, coupons)
        """
        self._session_factory = session_factory
        self._currency = currency
        self._session: Optional[AsyncSession] = None
        self._execution_id: Optional[ExecutionID] = None

        # Lazy-loaded repositories
        self._orders: Optional[SqlAlchemyOrderRepository] = None
        self._transactions: Optional[SqlAlchemyTransactionRepository] = None
        self._commissions: Optional[SqlAlchemyCommissionRepository] = None
        self._payouts: Optional[SqlAlchemyPayoutRepository] = None
        self._catalog: Optional[SqlAlchemyCatalogRepository] = None
        self._users: Optional[SqlAlchemyUserRepository] = None

    async def __aenter__(self) -> "UnitOfWork":
        """Start transaction scope."""
        self._session = self._session_factory()
        self._execution_id = ExecutionID.generate()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Rollback on exception, then release the connection."""
        try:
            if exc_type is not None:
                logger.debug(f"[{self._execution_id}] Rolling back: {exc_type.__name__}")
                await self._session.rollback()
        finally:
            await self._session.close()

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError(_NOT_INITIALIZED)
        return self._session

    @property
    def execution_id(self) -> ExecutionID:
        """Get current execution ID for tracing.

        Returns:
            ExecutionID value object
        """
        if self._execution_id is None:
            raise RuntimeError(_NOT_INITIALIZED)
        return self._execution_id

    # =========================================================================
    # REPOSITORIES
    # =========================================================================

    @property
    def orders(self) -> SqlAlchemyOrderRepository:
        if self._orders is None:
            self._orders = SqlAlchemyOrderRepository(self.session)
        return self._orders

    @property
    def transactions(self) -> SqlAlchemyTransactionRepository:
        if self._transactions is None:
            self._transactions = SqlAlchemyTransactionRepository(self.session)
        return self._transactions

    @property
    def commissions(self) -> SqlAlchemyCommissionRepository:
        if self._commissions is None:
            self._commissions = SqlAlchemyCommissionRepository(self.session)
        return self._commissions

    @property
    def payouts(self) -> SqlAlchemyPayoutRepository:
        if self._payouts is None:
            self._payouts = SqlAlchemyPayoutRepository(self.session)
        return self._payouts

    @property
    def catalog(self) -> SqlAlchemyCatalogRepository:
        if self._catalog is None:
            self._catalog = SqlAlchemyCatalogRepository(self.session, self._currency)
        return self._catalog

    @property
    def users(self) -> SqlAlchemyUserRepository:
        if self._users is None:
            self._users = SqlAlchemyUserRepository(self.session)
        return self._users

    # =========================================================================
    # LOCKED MUTATIONS
    # =========================================================================

    async def with_locked_order(self, order_id: str, mutate: OrderMutation) -> T:
        """
        Lock one order, run ``mutate`` on the locked state, write it back.

        ``mutate`` receives the order as read under the lock and may raise
        to reject; nothing is written in that case. The lock is held until
        the unit of work commits or rolls back.

        Raises:
            NotFoundError: no such order
        """
        order = await self.orders.get_for_update(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)

        result = mutate(order)
        if isawaitable(result):
            result = await result

        await self.orders.save(order)
        return result

    async def lock_orders(self, order_ids: Sequence[str]) -> List[Order]:
        """
        Lock several orders at once.

        Raises:
            NotFoundError: any id is missing
        """
        orders = await self.orders.get_many_for_update(order_ids)
        found = {order.id for order in orders}
        missing = [order_id for order_id in order_ids if order_id not in found]
        if missing:
            raise NotFoundError("Order", missing[0], details={"missing": missing})
        return orders

    async def commit(self) -> None:
        """Commit all pending changes."""
        await self.session.commit()
        logger.debug(f"[{self._execution_id}] ✅ Transaction committed")

    async def rollback(self) -> None:
        """Rollback all pending changes."""
        await self.session.rollback()
        logger.debug(f"[{self._execution_id}] Transaction rolled back")


def create_uow(session_factory: async_sessionmaker, currency: str = DEFAULT_CURRENCY) -> UnitOfWork:
    """Create a new Unit of Work instance.

    Args:
        session_factory: SQLAlchemy async session factory
        currency: Currency for collaborator amounts

    Returns:
        UnitOfWork instance
    """
    return UnitOfWork(session_factory, currency)
