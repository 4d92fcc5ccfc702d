"""
SQLAlchemy ORM Models.

Maps domain entities to database tables. Money columns are
``Numeric(10, 2)``; the mappers convert them to integer-cent ``Money``.
"""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from market_core.domain.clock import utcnow
from market_core.domain.value_objects import new_id


Base = declarative_base()


# =============================================================================
# COLLABORATOR TABLES (users, catalog, cart)
# =============================================================================

class UserModel(Base):
    """Marketplace account. Only the fields the settlement core reads."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, index=True)
    is_approved = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<UserModel(id={self.id}, role={self.role})>"


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(500), nullable=False)
    seller_id = Column(String(36), nullable=False, index=True)
    store_id = Column(String(36), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(5, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="GHS")
    is_active = Column(Boolean, nullable=False, default=True)


class CouponModel(Base):
    __tablename__ = "coupons"

    id = Column(String(36), primary_key=True, default=new_id)
    code = Column(String(50), nullable=False, unique=True)
    seller_id = Column(String(36), nullable=False, index=True)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    minimum_purchase = Column(Numeric(10, 2), nullable=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime, nullable=True)


class DeliveryZoneModel(Base):
    __tablename__ = "delivery_zones"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    fee = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)


# =============================================================================
# ORDER MODELS
# =============================================================================

class OrderModel(Base):
    """
    Seller-scoped order.

    ``total`` always equals subtotal - coupon_discount + delivery_fee + processing_fee.
    """

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    order_number = Column(String(64), nullable=False, index=True)
    checkout_session_id = Column(String(64), nullable=True, index=True)

    # Parties
    buyer_id = Column(String(36), nullable=False, index=True)
    seller_id = Column(String(36), nullable=False, index=True)
    store_id = Column(String(36), nullable=True)
    rider_id = Column(String(36), nullable=True, index=True)

    # Status
    status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_reference = Column(String(255), nullable=True, index=True)

    # Delivery
    delivery_method = Column(String(20), nullable=False, default="rider")
    delivery_zone_id = Column(String(36), nullable=True)

    # Money
    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    processing_fee = Column(Numeric(10, 2), nullable=False, default=0)
    coupon_code = Column(String(50), nullable=True)
    coupon_discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="GHS")

    # Timestamps
    delivered_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_orders_seller_status", "seller_id", "status"),
        Index("ix_orders_rider_status", "rider_id", "status"),
    )

    def __repr__(self):
        return f"<OrderModel(id={self.id}, number={self.order_number}, status={self.status})>"


class OrderItemModel(Base):
    """Purchase-time snapshot of a cart line."""

    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(String(36), nullable=False)
    product_name = Column(String(500), nullable=False)
    quantity = Column(Integer, nullable=False)
    original_price = Column(Numeric(10, 2), nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")


class OrderStatusHistoryModel(Base):
    """
    Append-only audit log of accepted transitions.

    Never updated or deleted.
    """

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    changed_by = Column(String(36), nullable=False)
    changed_by_role = Column(String(20), nullable=False)
    reason = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


# =============================================================================
# SETTLEMENT LEDGER
# =============================================================================

class TransactionModel(Base):
    """
    Recorded gateway outcome.

    ``payment_reference`` is unique: the idempotency anchor.
    """

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=new_id)
    payment_reference = Column(String(255), nullable=False)
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    order_ids = Column(JSON, nullable=False)
    checkout_session_id = Column(String(64), nullable=True)
    gateway_status = Column(String(50), nullable=True)
    gateway_response = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("payment_reference", name="uq_transactions_payment_reference"),
    )


class CommissionModel(Base):
    """One commission per order (``order_id`` unique)."""

    __tablename__ = "commissions"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False)
    seller_id = Column(String(36), nullable=False, index=True)
    order_amount = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    commission_amount = Column(Numeric(10, 2), nullable=False)
    seller_amount = Column(Numeric(10, 2), nullable=False)
    platform_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("order_id", name="uq_commissions_order_id"),
        Index("ix_commissions_seller_status", "seller_id", "status"),
    )


class PlatformEarningModel(Base):
    __tablename__ = "platform_earnings"

    id = Column(String(36), primary_key=True, default=new_id)
    commission_id = Column(String(36), ForeignKey("commissions.id"), nullable=False)
    order_id = Column(String(36), nullable=False)
    earning_type = Column(String(20), nullable=False, default="commission")
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("commission_id", name="uq_platform_earnings_commission_id"),
    )


class SellerPayoutModel(Base):
    __tablename__ = "seller_payouts"

    id = Column(String(36), primary_key=True, default=new_id)
    seller_id = Column(String(36), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    method = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    reference = Column(String(255), nullable=True)
    details = Column(JSON, nullable=False)
    commission_ids = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)
    processed_by = Column(String(36), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<SellerPayoutModel(id={self.id}, seller={self.seller_id}, status={self.status})>"
