"""Application service for commissions and seller balances."""

from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from market_core.application.dtos import (
    CommissionDTO,
    PlatformEarningsDTO,
    SellerBalanceDTO,
)
from market_core.domain.entities import Commission, Order, PlatformEarning
from market_core.domain.enums import CommissionStatus, PaymentStatus
from market_core.domain.errors import CalculationError, PaymentNotCompletedError
from market_core.domain.event_bus import EventBus
from market_core.domain.events import CommissionRecordedEvent
from market_core.domain.services import split_commission
from market_core.domain.value_objects import new_id
from market_core.infrastructure.database.unit_of_work import UnitOfWork, create_uow
from market_core.settings.modules.marketplace_settings import MarketplaceSettings


logger = logging.getLogger(__name__)


class CommissionService:
    """
    Computes the platform/seller split of paid orders, exactly once per order.

    ``record_commission`` runs inside a caller's unit of work so payment
    reconciliation can record commissions atomically with the payment.
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

    async def record_commission(
        self,
        uow: UnitOfWork,
        order: Order,
        commission_rate_percent: Optional[Decimal] = None,
    ) -> Tuple[Commission, Optional[CommissionRecordedEvent]]:
        """
        Insert the commission and platform earning for ``order`` if absent.

        The order must already be locked by ``uow``. An existing row is
        returned as-is (duplicate deliveries are a no-op).

        Returns:
            (commission, event) - event is None when nothing was inserted

        Raises:
            PaymentNotCompletedError: order is not paid
            CalculationError: split does not add up (never caught here)
        """
        existing = await uow.commissions.get_by_order_id(order.id)
        if existing is not None:
            logger.info(f"[{uow.execution_id}] Commission for order {order.order_number} already recorded")
            return existing, None

        if order.payment_status != PaymentStatus.COMPLETED:
            raise PaymentNotCompletedError(
                f"Order {order.order_number} payment is {order.payment_status.value}",
                details={"order_id": order.id, "payment_status": order.payment_status.value},
            )

        rate = (
            commission_rate_percent
            if commission_rate_percent is not None
            else self._settings.default_commission_rate_percent
        )

        try:
            split = split_commission(order.total, rate)
            commission = Commission(
                id=new_id(),
                order_id=order.id,
                seller_id=order.seller_id,
                order_amount=split.order_amount,
                commission_rate=split.commission_rate,
                commission_amount=split.commission_amount,
                seller_amount=split.seller_amount,
            )
        except CalculationError as e:
            logger.error(
                f"[{uow.execution_id}] Commission calculation failed for order {order.id}: "
                f"{e.message} details={e.details}"
            )
            raise

        earning = PlatformEarning(
            id=new_id(),
            commission_id=commission.id,
            order_id=order.id,
            amount=commission.platform_amount,
            description=f"Commission from order {order.order_number}",
        )
        await uow.commissions.add(commission, earning)

        logger.info(
            f"[{uow.execution_id}] Commission recorded for order {order.order_number}: "
            f"platform {commission.commission_amount}, seller {commission.seller_amount}"
        )

        event = CommissionRecordedEvent(
            commission_id=commission.id,
            order_id=order.id,
            seller_id=order.seller_id,
            order_amount=str(commission.order_amount.amount),
            commission_amount=str(commission.commission_amount.amount),
            seller_amount=str(commission.seller_amount.amount),
            commission_rate=str(commission.commission_rate),
            execution_id=str(uow.execution_id),
        )
        return commission, event

    async def calculate_commission(
        self,
        order_id: str,
        commission_rate_percent: Optional[Decimal] = None,
    ) -> CommissionDTO:
        """
        Compute the commission of one paid order in its own transaction.

        Idempotent: a second call returns the recorded commission.
        """
        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            async def record(order: Order):
                return await self.record_commission(uow, order, commission_rate_percent)

            commission, event = await uow.with_locked_order(order_id, record)
            await uow.commit()

        if event is not None and self._event_bus is not None:
            await self._event_bus.publish(event)
        return CommissionDTO.from_entity(commission)

    async def get_seller_balance(self, seller_id: str) -> SellerBalanceDTO:
        """Available balance: sum of pending seller amounts (unlocked read)."""
        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            balance, count = await uow.commissions.pending_balance(seller_id, self._settings.currency)

        return SellerBalanceDTO(
            seller_id=seller_id,
            available_balance=balance.amount,
            pending_commissions=count,
            minimum_payout=self._settings.minimum_payout_amount,
            currency=balance.currency,
        )

    async def list_seller_commissions(
        self,
        seller_id: str,
        status: Optional[CommissionStatus] = None,
    ) -> List[CommissionDTO]:
        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            commissions = await uow.commissions.list_by_seller(seller_id, status)
        return [CommissionDTO.from_entity(commission) for commission in commissions]

    async def get_platform_earnings(self) -> PlatformEarningsDTO:
        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            total = await uow.commissions.platform_earnings_total(self._settings.currency)
        return PlatformEarningsDTO(total=total.amount, currency=total.currency)
