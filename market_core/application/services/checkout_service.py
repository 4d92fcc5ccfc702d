"""
Checkout service.

Re-prices the cart, splits it per seller and persists every resulting
order in one transaction together with coupon usage and cart clearing.
"""

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from market_core.application.dtos import CheckoutRequest, CheckoutResult, OrderDTO
from market_core.domain.clock import utcnow
from market_core.domain.entities import Coupon, Order, OrderItem
from market_core.domain.enums import DeliveryMethod
from market_core.domain.errors import (
    InvalidCouponError,
    MarketplaceError,
    NotFoundError,
    TamperDetectedError,
    ValidationFailedError,
)
from market_core.domain.event_bus import EventBus
from market_core.domain.events import CheckoutCompletedEvent, DomainEvent, OrderCreatedEvent
from market_core.domain.services import CartLine, CheckoutPlan, price_lines, split_checkout
from market_core.domain.value_objects import (
    Money,
    generate_checkout_session_id,
    generate_order_number,
    new_id,
    to_cents,
)
from market_core.infrastructure.database.unit_of_work import UnitOfWork, create_uow
from market_core.settings.modules.marketplace_settings import MarketplaceSettings

from .dispatch_service import DispatchService


logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Turns a cart into one order per seller.

    Flow:
    1. Load authoritative products, delivery fee and coupon
    2. Price and split (pure domain code, tamper checks included)
    3. Persist orders + items, count coupon usage, clear cart, commit
    4. Publish events, then best-effort rider auto-assignment
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: MarketplaceSettings,
        event_bus: Optional[EventBus] = None,
        dispatch_service: Optional[DispatchService] = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings
        self._event_bus = event_bus
        self._dispatch = dispatch_service

    async def checkout(self, buyer_id: str, request: CheckoutRequest) -> CheckoutResult:
        """
        Create the orders for a buyer's cart.

        Args:
            buyer_id: Authenticated buyer
            request: Cart lines, coupon, delivery choice and declared totals

        Returns:
            CheckoutResult with every created order

        Raises:
            ValidationFailedError family: bad cart, tampering, coupon or platform mode
            NotFoundError: unknown product or delivery zone
        """
        currency = self._settings.currency
        now = utcnow()
        cart_lines = [
            CartLine(
                product_id=line.product_id,
                quantity=line.quantity,
                declared_unit_price=(
                    Money.of(line.unit_price, currency) if line.unit_price is not None else None
                ),
            )
            for line in request.items
        ]

        uow = create_uow(self._session_factory, currency)
        async with uow:
            products = await uow.catalog.get_products(line.product_id for line in cart_lines)
            delivery_fee = await self._delivery_fee(uow, request)
            coupon = await self._coupon(uow, request.coupon_code)

            try:
                priced = price_lines(
                    cart_lines,
                    products,
                    price_tolerance_cents=to_cents(self._settings.price_tolerance),
                )
                plan = split_checkout(
                    priced,
                    delivery_fee=delivery_fee,
                    processing_fee_percent=self._settings.processing_fee_percent,
                    multi_vendor_enabled=self._settings.multi_vendor_enabled,
                    declared_subtotal=Money.of(request.subtotal, currency),
                    declared_total=Money.of(request.total, currency),
                    now=now,
                    coupon=coupon,
                    price_tolerance_cents=to_cents(self._settings.price_tolerance),
                    total_tolerance_cents=to_cents(self._settings.total_tolerance),
                )
            except TamperDetectedError as e:
                logger.warning(f"[{uow.execution_id}] Checkout tampering detected for buyer {buyer_id}: {e.details}")
                raise

            session_id = generate_checkout_session_id(now) if plan.is_multi_vendor else None
            orders = self._build_orders(buyer_id, plan, request, session_id, now)
            for order in orders:
                await uow.orders.add(order)

            if coupon is not None and plan.coupon_discount.is_positive():
                await uow.catalog.increment_coupon_usage(coupon.id)

            await uow.users.clear_cart(buyer_id)
            await uow.commit()
            execution_id = str(uow.execution_id)

        logger.info(
            f"[{execution_id}] ✅ Checkout for buyer {buyer_id}: {len(orders)} order(s), "
            f"grand total {plan.grand_total}"
        )

        await self._publish(self._checkout_events(buyer_id, orders, plan, session_id, execution_id))

        dtos = [OrderDTO.from_entity(order) for order in orders]
        if self._dispatch is not None and self._settings.auto_assign_riders:
            dtos = await self._auto_assign(dtos, request.delivery_method)

        return CheckoutResult(
            checkout_session_id=session_id,
            is_multi_vendor=plan.is_multi_vendor,
            orders=dtos,
            subtotal=plan.subtotal.amount,
            product_savings=plan.product_savings.amount,
            delivery_fee=plan.delivery_fee.amount,
            coupon_discount=plan.coupon_discount.amount,
            processing_fee=plan.processing_fee.amount,
            grand_total=plan.grand_total.amount,
            currency=currency,
        )

    async def _delivery_fee(self, uow: UnitOfWork, request: CheckoutRequest) -> Money:
        method = request.delivery_method
        if method != DeliveryMethod.PICKUP and not request.delivery_zone_id:
            raise ValidationFailedError(
                f"Delivery zone required for {method.value} delivery",
                user_message="Please choose a delivery zone.",
            )
        fee = await uow.catalog.get_delivery_fee(method, request.delivery_zone_id, self._settings.currency)
        if fee is None:
            raise NotFoundError("DeliveryZone", request.delivery_zone_id)
        return fee

    async def _coupon(self, uow: UnitOfWork, code: Optional[str]) -> Optional[Coupon]:
        if not code or not code.strip():
            return None
        coupon = await uow.catalog.get_coupon_by_code(code, for_update=True)
        if coupon is None:
            raise InvalidCouponError(
                f"Coupon {code} does not exist",
                user_message="Invalid coupon code.",
                details={"code": code.strip().upper()},
            )
        return coupon

    def _build_orders(
        self,
        buyer_id: str,
        plan: CheckoutPlan,
        request: CheckoutRequest,
        session_id: Optional[str],
        now: datetime,
    ) -> List[Order]:
        orders = []
        for seller_plan in plan.seller_orders:
            orders.append(
                Order(
                    id=new_id(),
                    order_number=generate_order_number(seller_plan.seller_id, now),
                    buyer_id=buyer_id,
                    seller_id=seller_plan.seller_id,
                    store_id=seller_plan.store_id,
                    checkout_session_id=session_id,
                    subtotal=seller_plan.subtotal,
                    delivery_fee=seller_plan.delivery_fee,
                    processing_fee=seller_plan.processing_fee,
                    coupon_discount=seller_plan.coupon_discount,
                    coupon_code=seller_plan.coupon_code,
                    total=seller_plan.total,
                    delivery_method=request.delivery_method,
                    delivery_zone_id=request.delivery_zone_id,
                    items=[
                        OrderItem(
                            id=new_id(),
                            product_id=line.product.id,
                            product_name=line.product.name,
                            quantity=line.quantity,
                            unit_price=line.unit_price,
                            original_price=line.product.price,
                            discount_percent=line.product.discount,
                            total=line.line_total,
                        )
                        for line in seller_plan.lines
                    ],
                    created_at=now,
                    updated_at=now,
                )
            )
        return orders

    def _checkout_events(
        self,
        buyer_id: str,
        orders: List[Order],
        plan: CheckoutPlan,
        session_id: Optional[str],
        execution_id: str,
    ) -> List[DomainEvent]:
        events: List[DomainEvent] = [
            OrderCreatedEvent(
                order_id=order.id,
                order_number=order.order_number,
                buyer_id=buyer_id,
                seller_id=order.seller_id,
                checkout_session_id=session_id,
                total=str(order.total.amount),
                currency=order.currency,
                user_id=buyer_id,
                execution_id=execution_id,
            )
            for order in orders
        ]
        events.append(
            CheckoutCompletedEvent(
                checkout_session_id=session_id,
                buyer_id=buyer_id,
                order_ids=[order.id for order in orders],
                grand_total=str(plan.grand_total.amount),
                user_id=buyer_id,
                execution_id=execution_id,
            )
        )
        return events

    async def _auto_assign(self, orders: List[OrderDTO], method: DeliveryMethod) -> List[OrderDTO]:
        if method != DeliveryMethod.RIDER:
            return orders

        assigned = []
        for order in orders:
            try:
                updated = await self._dispatch.auto_assign(order.id)
            except MarketplaceError as e:
                # Orders are committed; dispatch can be retried manually
                logger.warning(f"Rider auto-assignment failed for order {order.order_number}: {e.message}")
                updated = None
            assigned.append(updated or order)
        return assigned

    async def _publish(self, events: List[DomainEvent]) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish_all(events)
