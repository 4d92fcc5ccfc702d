"""Application DTOs for checkout."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from market_core.domain.enums import DeliveryMethod

from .order_dto import OrderDTO


class CartLineDTO(BaseModel):
    """Cart line as submitted by the client."""

    product_id: str = Field(..., description="Product ID")
    quantity: int = Field(..., gt=0, description="Quantity")
    unit_price: Optional[Decimal] = Field(
        None, ge=0, description="Client-side unit price, compared for tamper detection only"
    )

    model_config = {"frozen": True}


class CheckoutRequest(BaseModel):
    """
    Request DTO for checkout.

    ``subtotal`` and ``total`` are what the client displayed; they are
    compared against server-side figures and never used for pricing.
    """

    items: List[CartLineDTO] = Field(default_factory=list, description="Cart lines")
    coupon_code: Optional[str] = Field(None, max_length=50, description="Seller-issued coupon code")
    delivery_method: DeliveryMethod = Field(default=DeliveryMethod.RIDER, description="Delivery method")
    delivery_zone_id: Optional[str] = Field(None, description="Delivery zone (rider/bus)")
    subtotal: Decimal = Field(..., ge=0, description="Client-declared subtotal")
    total: Decimal = Field(..., ge=0, description="Client-declared total")

    model_config = {"frozen": True}


class CheckoutResult(BaseModel):
    """Response DTO for checkout: the created orders and the grand totals."""

    checkout_session_id: Optional[str] = Field(None, description="Set for multi-vendor checkouts")
    is_multi_vendor: bool = False
    orders: List[OrderDTO] = Field(default_factory=list)
    subtotal: Decimal
    product_savings: Decimal
    delivery_fee: Decimal
    coupon_discount: Decimal
    processing_fee: Decimal
    grand_total: Decimal
    currency: str

    model_config = {"frozen": True}

    @property
    def order_ids(self) -> List[str]:
        return [order.id for order in self.orders]
