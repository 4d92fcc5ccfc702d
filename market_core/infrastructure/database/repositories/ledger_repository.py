"""SQLAlchemy implementations of the settlement ledger repositories."""
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from market_core.domain.entities import (
    Commission,
    PaymentTransaction,
    PlatformEarning,
    SellerPayout,
)
from market_core.domain.enums import CommissionStatus, PayoutStatus
from market_core.domain.errors import NotFoundError
from market_core.domain.repositories import (
    CommissionRepository,
    PaymentTransactionRepository,
    PayoutRepository,
)
from market_core.domain.value_objects import Money
from market_core.infrastructure.database.mappers import (
    CommissionMapper,
    PayoutMapper,
    TransactionMapper,
)
from market_core.infrastructure.database.models import (
    CommissionModel,
    PlatformEarningModel,
    SellerPayoutModel,
    TransactionModel,
)


class SqlAlchemyTransactionRepository(PaymentTransactionRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_reference(self, payment_reference: str) -> Optional[PaymentTransaction]:
        stmt = select(TransactionModel).where(TransactionModel.payment_reference == payment_reference)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return TransactionMapper.to_domain(model) if model else None

    async def add(self, transaction: PaymentTransaction) -> None:
        self._session.add(TransactionMapper.to_model(transaction))
        await self._session.flush()


class SqlAlchemyCommissionRepository(CommissionRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_order_id(self, order_id: str) -> Optional[Commission]:
        stmt = select(CommissionModel).where(CommissionModel.order_id == order_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return CommissionMapper.to_domain(model) if model else None

    async def add(self, commission: Commission, earning: PlatformEarning) -> None:
        self._session.add(CommissionMapper.to_model(commission))
        # Commission row must exist before its earning references it
        await self._session.flush()
        self._session.add(CommissionMapper.earning_to_model(earning))
        await self._session.flush()

    async def list_pending_for_update(self, seller_id: str, limit: int) -> List[Commission]:
        stmt = (
            select(CommissionModel)
            .where(
                CommissionModel.seller_id == seller_id,
                CommissionModel.status == CommissionStatus.PENDING.value,
            )
            .order_by(CommissionModel.created_at, CommissionModel.id)
            .limit(limit)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [CommissionMapper.to_domain(model) for model in result.scalars().all()]

    async def get_many_for_update(self, commission_ids: Sequence[str]) -> List[Commission]:
        if not commission_ids:
            return []
        stmt = (
            select(CommissionModel)
            .where(CommissionModel.id.in_(sorted(set(commission_ids))))
            .order_by(CommissionModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [CommissionMapper.to_domain(model) for model in result.scalars().all()]

    async def set_status(
        self,
        commission_ids: Sequence[str],
        status: CommissionStatus,
        processed_at: Optional[datetime] = None,
    ) -> None:
        if not commission_ids:
            return
        stmt = (
            update(CommissionModel)
            .where(CommissionModel.id.in_(list(commission_ids)))
            .values(status=status.value, processed_at=processed_at)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.execute(stmt)
        await self._session.flush()

    async def pending_balance(self, seller_id: str, currency: str) -> Tuple[Money, int]:
        pending = await self.list_by_seller(seller_id, CommissionStatus.PENDING)
        balance = sum((commission.seller_amount for commission in pending), Money.zero(currency))
        return balance, len(pending)

    async def list_by_seller(
        self,
        seller_id: str,
        status: Optional[CommissionStatus] = None,
    ) -> List[Commission]:
        stmt = select(CommissionModel).where(CommissionModel.seller_id == seller_id)
        if status is not None:
            stmt = stmt.where(CommissionModel.status == status.value)
        stmt = stmt.order_by(CommissionModel.created_at, CommissionModel.id)
        result = await self._session.execute(stmt)
        return [CommissionMapper.to_domain(model) for model in result.scalars().all()]

    async def platform_earnings_total(self, currency: str) -> Money:
        stmt = select(PlatformEarningModel.amount).where(PlatformEarningModel.currency == currency)
        result = await self._session.execute(stmt)
        return sum(
            (Money.of(amount, currency) for amount in result.scalars().all()),
            Money.zero(currency),
        )


class SqlAlchemyPayoutRepository(PayoutRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, payout: SellerPayout) -> None:
        self._session.add(PayoutMapper.to_model(payout))
        await self._session.flush()

    async def get_for_update(self, payout_id: str) -> Optional[SellerPayout]:
        stmt = (
            select(SellerPayoutModel)
            .where(SellerPayoutModel.id == payout_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return PayoutMapper.to_domain(model) if model else None

    async def save(self, payout: SellerPayout) -> None:
        model = await self._session.get(SellerPayoutModel, payout.id)
        if model is None:
            raise NotFoundError("Payout", payout.id)
        PayoutMapper.update_model(model, payout)
        await self._session.flush()

    async def list_payouts(
        self,
        status: Optional[PayoutStatus] = None,
        seller_id: Optional[str] = None,
    ) -> List[SellerPayout]:
        stmt = select(SellerPayoutModel)
        if status is not None:
            stmt = stmt.where(SellerPayoutModel.status == status.value)
        if seller_id is not None:
            stmt = stmt.where(SellerPayoutModel.seller_id == seller_id)
        stmt = stmt.order_by(SellerPayoutModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [PayoutMapper.to_domain(model) for model in result.scalars().all()]
