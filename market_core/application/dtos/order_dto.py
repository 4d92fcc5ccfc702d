"""Application DTOs for Order operations."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from market_core.domain.entities import Order, OrderItem, StatusHistoryEntry
from market_core.domain.enums import ActorRole, OrderStatus


class OrderItemDTO(BaseModel):
    """DTO for order item (purchase-time snapshot)."""

    product_id: str = Field(..., description="Product ID")
    product_name: str = Field(..., description="Product name at purchase time")
    quantity: int = Field(..., gt=0, description="Quantity ordered")
    original_price: Decimal = Field(..., ge=0, description="Catalog price before discount")
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, description="Product discount (%)")
    unit_price: Decimal = Field(..., ge=0, description="Charged unit price")
    total: Decimal = Field(..., ge=0, description="Line total")

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, item: OrderItem) -> "OrderItemDTO":
        return cls(
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            original_price=item.original_price.amount,
            discount_percent=item.discount_percent,
            unit_price=item.unit_price.amount,
            total=item.total.amount,
        )


class OrderDTO(BaseModel):
    """Response DTO for order details."""

    id: str = Field(..., description="Order ID")
    order_number: str = Field(..., description="Human-readable order number")
    checkout_session_id: Optional[str] = Field(None, description="Shared id of sibling orders")
    buyer_id: str
    seller_id: str
    store_id: Optional[str] = None
    rider_id: Optional[str] = None
    status: str = Field(..., description="Fulfillment status")
    payment_status: str = Field(..., description="Payment status")
    payment_reference: Optional[str] = None
    delivery_method: str
    delivery_zone_id: Optional[str] = None
    coupon_code: Optional[str] = None
    subtotal: Decimal
    delivery_fee: Decimal
    processing_fee: Decimal
    coupon_discount: Decimal
    total: Decimal
    currency: str
    items: List[OrderItemDTO] = Field(default_factory=list, description="Order items")
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            order_number=order.order_number,
            checkout_session_id=order.checkout_session_id,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            store_id=order.store_id,
            rider_id=order.rider_id,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_reference=order.payment_reference,
            delivery_method=order.delivery_method.value,
            delivery_zone_id=order.delivery_zone_id,
            coupon_code=order.coupon_code,
            subtotal=order.subtotal.amount,
            delivery_fee=order.delivery_fee.amount,
            processing_fee=order.processing_fee.amount,
            coupon_discount=order.coupon_discount.amount,
            total=order.total.amount,
            currency=order.currency,
            items=[OrderItemDTO.from_entity(item) for item in order.items],
            delivered_at=order.delivered_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class TransitionOrderRequest(BaseModel):
    """Request DTO for an order status change."""

    status: OrderStatus = Field(..., description="Target status")
    reason: Optional[str] = Field(None, max_length=1000, description="Human reason (required to resolve disputes)")

    model_config = {"frozen": True}


class StatusHistoryDTO(BaseModel):
    """One audit-log row."""

    order_id: str
    from_status: str
    to_status: str
    changed_by: str
    changed_by_role: str
    reason: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Side effects applied")
    created_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, entry: StatusHistoryEntry) -> "StatusHistoryDTO":
        return cls(
            order_id=entry.order_id,
            from_status=entry.from_status.value,
            to_status=entry.to_status.value,
            changed_by=entry.changed_by,
            changed_by_role=entry.changed_by_role.value,
            reason=entry.reason,
            metadata=dict(entry.metadata or {}),
            created_at=entry.created_at,
        )


class AllowedTransitionsDTO(BaseModel):
    """Statuses a role may request from an order's current status."""

    order_id: str
    current_status: str
    role: ActorRole
    allowed: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class AssignRiderRequest(BaseModel):
    rider_id: str = Field(..., min_length=1, description="Approved, active rider")

    model_config = {"frozen": True}
