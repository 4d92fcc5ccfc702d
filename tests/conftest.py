"""Shared fixtures: file-backed SQLite database, seed helpers, fake gateway."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional
import hashlib
import hmac
import json

import pytest
import pytest_asyncio

from market_core.application.interfaces import (
    ChargeInitialization,
    ChargeRequest,
    ChargeVerification,
    IPaymentGateway,
)
from market_core.domain.entities import Commission, Order, OrderItem, PlatformEarning
from market_core.domain.enums import (
    ActorRole,
    CommissionStatus,
    DeliveryMethod,
    OrderStatus,
    PaymentStatus,
)
from market_core.domain.events import DomainEvent
from market_core.domain.value_objects import Money, new_id
from market_core.infrastructure.database import (
    DatabaseSettings,
    create_engine,
    create_session_factory,
    create_uow,
    init_database,
)
from market_core.infrastructure.database.models import (
    CartItemModel,
    CouponModel,
    DeliveryZoneModel,
    ProductModel,
    UserModel,
)
from market_core.infrastructure.event_bus import InMemoryEventBus
from market_core.settings import MarketplaceSettings, PaymentSettings

WEBHOOK_SECRET = "sk_test_webhook_secret"


# =============================================================================
# DATABASE
# =============================================================================

@pytest_asyncio.fixture
async def engine(tmp_path):
    """File database so concurrent sessions really contend for the write lock."""
    engine = create_engine(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'market.db'}"))
    await init_database(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


# =============================================================================
# SETTINGS / BUS
# =============================================================================

@pytest.fixture
def marketplace_settings() -> MarketplaceSettings:
    return MarketplaceSettings(
        multi_vendor_enabled=True,
        currency="GHS",
        processing_fee_percent=Decimal("1.95"),
        default_commission_rate_percent=Decimal("10.00"),
        minimum_payout_amount=Decimal("10.00"),
        rider_max_active_orders=2,
        auto_assign_riders=True,
    )


@pytest.fixture
def payment_settings() -> PaymentSettings:
    return PaymentSettings(
        secret_key=WEBHOOK_SECRET,
        base_url="https://gateway.test",
        callback_url="http://localhost/payment/verify",
        timeout_seconds=5.0,
    )


class RecordingEventBus(InMemoryEventBus):
    """In-memory bus that also keeps every published event."""

    def __init__(self):
        super().__init__()
        self.published: List[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.published.append(event)
        await super().publish(event)

    def types(self) -> List[str]:
        return [event.event_type for event in self.published]


@pytest.fixture
def event_bus() -> RecordingEventBus:
    return RecordingEventBus()


# =============================================================================
# FAKE GATEWAY
# =============================================================================

class FakeGateway(IPaymentGateway):
    """
    Scriptable payment gateway.

    ``initialize_charge`` issues sequential references; ``verify_charge``
    reports whatever was scripted with ``set_result`` (default: success
    for the initialized amount).
    """

    def __init__(self, secret: str = WEBHOOK_SECRET):
        self.secret = secret
        self.charges: Dict[str, ChargeRequest] = {}
        self.results: Dict[str, ChargeVerification] = {}
        self.verify_calls: List[str] = []
        self._counter = 0

    async def initialize_charge(self, request: ChargeRequest) -> ChargeInitialization:
        self._counter += 1
        reference = f"ref-{self._counter:04d}"
        self.charges[reference] = request
        return ChargeInitialization(
            reference=reference,
            authorization_url=f"https://gateway.test/pay/{reference}",
            access_code=f"access-{self._counter}",
        )

    def set_result(
        self,
        reference: str,
        status: str = "success",
        amount_minor: Optional[int] = None,
        currency: Optional[str] = None,
    ) -> None:
        charge = self.charges.get(reference)
        if amount_minor is None:
            amount_minor = charge.amount_minor if charge else 0
        self.results[reference] = ChargeVerification(
            reference=reference,
            status=status,
            amount_minor=amount_minor,
            currency=currency or (charge.currency if charge else "GHS"),
            metadata=dict(charge.metadata) if charge else {},
            gateway_response="Approved" if status == "success" else "Declined",
        )

    async def verify_charge(self, reference: str) -> ChargeVerification:
        self.verify_calls.append(reference)
        if reference not in self.results:
            self.set_result(reference)
        return self.results[reference]

    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        if not signature:
            return False
        return hmac.compare_digest(sign(raw_body, self.secret), signature)


def sign(raw_body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def webhook_body(event: str, reference: str, user_id: str, **data) -> bytes:
    payload = {
        "event": event,
        "data": {"reference": reference, "metadata": {"user_id": user_id}, **data},
    }
    return json.dumps(payload).encode("utf-8")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


# =============================================================================
# SEEDING
# =============================================================================

class Seeder:
    """Inserts collaborator rows and ready-made orders/commissions."""

    def __init__(self, session_factory, currency: str = "GHS"):
        self._session_factory = session_factory
        self._currency = currency

    async def _add(self, model) -> str:
        async with self._session_factory() as session:
            session.add(model)
            await session.commit()
            return model.id

    async def user(
        self,
        role: ActorRole,
        user_id: Optional[str] = None,
        name: str = "",
        is_approved: bool = True,
        is_active: bool = True,
    ) -> str:
        user_id = user_id or new_id()
        return await self._add(
            UserModel(
                id=user_id,
                email=f"{user_id}@example.com",
                name=name or user_id,
                role=role.value,
                is_approved=is_approved,
                is_active=is_active,
            )
        )

    async def product(
        self,
        seller_id: str,
        price: str,
        discount: str = "0",
        product_id: Optional[str] = None,
        is_active: bool = True,
    ) -> str:
        product_id = product_id or new_id()
        return await self._add(
            ProductModel(
                id=product_id,
                name=f"Product {product_id[:8]}",
                seller_id=seller_id,
                price=Decimal(price),
                discount=Decimal(discount),
                currency=self._currency,
                is_active=is_active,
            )
        )

    async def zone(self, fee: str, is_active: bool = True) -> str:
        return await self._add(DeliveryZoneModel(id=new_id(), name="Zone", fee=Decimal(fee), is_active=is_active))

    async def coupon(
        self,
        code: str,
        seller_id: str,
        discount_type: str = "percentage",
        value: str = "10",
        minimum_purchase: Optional[str] = None,
        usage_limit: Optional[int] = None,
        used_count: int = 0,
        is_active: bool = True,
        expires_at: Optional[datetime] = None,
    ) -> str:
        return await self._add(
            CouponModel(
                id=new_id(),
                code=code,
                seller_id=seller_id,
                discount_type=discount_type,
                discount_value=Decimal(value),
                minimum_purchase=Decimal(minimum_purchase) if minimum_purchase else None,
                usage_limit=usage_limit,
                used_count=used_count,
                is_active=is_active,
                expires_at=expires_at,
            )
        )

    async def cart_item(self, user_id: str, product_id: str, quantity: int = 1) -> str:
        return await self._add(CartItemModel(id=new_id(), user_id=user_id, product_id=product_id, quantity=quantity))

    async def order(
        self,
        buyer_id: str,
        seller_id: str,
        subtotal: str = "100.00",
        delivery_fee: str = "0.00",
        status: OrderStatus = OrderStatus.PENDING,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        rider_id: Optional[str] = None,
        payment_reference: Optional[str] = None,
        checkout_session_id: Optional[str] = None,
        delivery_method: DeliveryMethod = DeliveryMethod.RIDER,
    ) -> Order:
        """Order with one line and no fees beyond ``delivery_fee``; total = subtotal + delivery."""
        currency = self._currency
        sub = Money.of(subtotal, currency)
        delivery = Money.of(delivery_fee, currency)
        zero = Money.zero(currency)
        order_id = new_id()
        order = Order(
            id=order_id,
            order_number=f"ORD-TEST-{order_id[:8]}",
            buyer_id=buyer_id,
            seller_id=seller_id,
            subtotal=sub,
            delivery_fee=delivery,
            processing_fee=zero,
            coupon_discount=zero,
            total=sub + delivery,
            items=[
                OrderItem(
                    id=new_id(),
                    product_id=new_id(),
                    product_name="Seeded item",
                    quantity=1,
                    unit_price=sub,
                    original_price=sub,
                    discount_percent=Decimal("0"),
                    total=sub,
                )
            ],
            status=status,
            payment_status=payment_status,
            rider_id=rider_id,
            payment_reference=payment_reference,
            checkout_session_id=checkout_session_id,
            delivery_method=delivery_method,
        )
        async with create_uow(self._session_factory, currency) as uow:
            await uow.orders.add(order)
            await uow.commit()
        return order

    async def commission(
        self,
        seller_id: str,
        seller_amount: str,
        created_at: datetime,
        status: CommissionStatus = CommissionStatus.PENDING,
    ) -> str:
        """Pending commission on a fresh paid order; platform share fixed at 1.00."""
        currency = self._currency
        seller = Money.of(seller_amount, currency)
        platform = Money.of("1.00", currency)
        order = await self.order(
            buyer_id=new_id(),
            seller_id=seller_id,
            subtotal=str((seller + platform).amount),
            status=OrderStatus.PROCESSING,
            payment_status=PaymentStatus.COMPLETED,
        )
        commission = Commission(
            id=new_id(),
            order_id=order.id,
            seller_id=seller_id,
            order_amount=seller + platform,
            commission_rate=Decimal("10.00"),
            commission_amount=platform,
            seller_amount=seller,
            status=status,
            created_at=created_at,
        )
        earning = PlatformEarning(
            id=new_id(),
            commission_id=commission.id,
            order_id=order.id,
            amount=platform,
            description=f"Commission from order {order.order_number}",
        )
        async with create_uow(self._session_factory, currency) as uow:
            await uow.commissions.add(commission, earning)
            await uow.commit()
        return commission.id


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


def minutes_ago(minutes: int) -> datetime:
    return datetime(2026, 1, 1, 12, 0, 0) - timedelta(minutes=minutes)
