"""SQLAlchemy access to catalog, user, rider and cart tables."""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from market_core.domain.entities import Coupon, Product, RiderLoad
from market_core.domain.enums import ActorRole, DeliveryMethod
from market_core.domain.repositories import (
    RIDER_LOAD_STATUSES,
    CatalogRepository,
    UserRepository,
)
from market_core.domain.value_objects import Money
from market_core.infrastructure.database.mappers import CatalogMapper
from market_core.infrastructure.database.models import (
    CartItemModel,
    CouponModel,
    DeliveryZoneModel,
    OrderModel,
    ProductModel,
    UserModel,
)


class SqlAlchemyCatalogRepository(CatalogRepository):

    def __init__(self, session: AsyncSession, currency: str = "GHS"):
        self._session = session
        self._currency = currency

    async def get_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        result = await self._session.execute(select(ProductModel).where(ProductModel.id.in_(ids)))
        return {
            model.id: CatalogMapper.product_to_domain(model)
            for model in result.scalars().all()
        }

    async def get_coupon_by_code(self, code: str, for_update: bool = False) -> Optional[Coupon]:
        stmt = select(CouponModel).where(func.upper(CouponModel.code) == code.strip().upper())
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return CatalogMapper.coupon_to_domain(model, self._currency) if model else None

    async def increment_coupon_usage(self, coupon_id: str) -> None:
        stmt = (
            update(CouponModel)
            .where(CouponModel.id == coupon_id)
            .values(used_count=CouponModel.used_count + 1)
        )
        await self._session.execute(stmt)

    async def get_delivery_fee(
        self,
        method: DeliveryMethod,
        zone_id: Optional[str],
        currency: str,
    ) -> Optional[Money]:
        if method == DeliveryMethod.PICKUP:
            return Money.zero(currency)
        if not zone_id:
            return None

        stmt = select(DeliveryZoneModel).where(
            DeliveryZoneModel.id == zone_id,
            DeliveryZoneModel.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        zone = result.scalar_one_or_none()
        return Money.of(zone.fee, currency) if zone else None


class SqlAlchemyUserRepository(UserRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_email(self, user_id: str) -> Optional[str]:
        result = await self._session.execute(select(UserModel.email).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def is_seller(self, user_id: str) -> bool:
        stmt = select(UserModel.id).where(
            UserModel.id == user_id,
            UserModel.role == ActorRole.SELLER.value,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    def _rider_load_query(self):
        active = (
            select(
                OrderModel.rider_id.label("rider_id"),
                func.count(OrderModel.id).label("active_orders"),
            )
            .where(
                OrderModel.rider_id.is_not(None),
                OrderModel.status.in_([status.value for status in RIDER_LOAD_STATUSES]),
            )
            .group_by(OrderModel.rider_id)
            .subquery()
        )
        active_orders = func.coalesce(active.c.active_orders, 0)
        return (
            select(UserModel.id, UserModel.name, active_orders.label("active_orders"))
            .outerjoin(active, active.c.rider_id == UserModel.id)
            .where(
                UserModel.role == ActorRole.RIDER.value,
                UserModel.is_approved.is_(True),
                UserModel.is_active.is_(True),
            )
            .order_by(active_orders, UserModel.id)
        )

    async def list_rider_loads(self) -> List[RiderLoad]:
        result = await self._session.execute(self._rider_load_query())
        return [
            RiderLoad(rider_id=row.id, name=row.name, active_orders=int(row.active_orders))
            for row in result.all()
        ]

    async def get_rider_load(self, rider_id: str) -> Optional[RiderLoad]:
        stmt = self._rider_load_query().where(UserModel.id == rider_id)
        row = (await self._session.execute(stmt)).first()
        if row is None:
            return None
        return RiderLoad(rider_id=row.id, name=row.name, active_orders=int(row.active_orders))

    async def clear_cart(self, user_id: str) -> None:
        await self._session.execute(delete(CartItemModel).where(CartItemModel.user_id == user_id))
