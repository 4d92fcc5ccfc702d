"""
Mappers between ORM models and domain entities.

Decimal columns become integer-cent ``Money`` on the way in and 2-place
Decimals on the way out.
"""
from decimal import Decimal

from market_core.domain.entities import (
    Commission,
    Coupon,
    Order,
    OrderItem,
    PaymentTransaction,
    PayoutDetails,
    PlatformEarning,
    Product,
    SellerPayout,
    StatusHistoryEntry,
)
from market_core.domain.enums import (
    ActorRole,
    CommissionStatus,
    DeliveryMethod,
    DiscountType,
    OrderStatus,
    PaymentStatus,
    PayoutMethod,
    PayoutStatus,
    TransactionStatus,
)
from market_core.domain.value_objects import Money

from .models import (
    CommissionModel,
    CouponModel,
    OrderItemModel,
    OrderModel,
    OrderStatusHistoryModel,
    PlatformEarningModel,
    ProductModel,
    SellerPayoutModel,
    TransactionModel,
)


def _money(value, currency: str) -> Money:
    return Money.of(Decimal(value if value is not None else 0), currency)


class OrderMapper:
    """Order aggregate <-> orders/order_items rows."""

    @staticmethod
    def to_domain(model: OrderModel) -> Order:
        currency = model.currency
        items = [
            OrderItem(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=_money(item.unit_price, currency),
                original_price=_money(item.original_price, currency),
                discount_percent=Decimal(item.discount_percent or 0),
                total=_money(item.total, currency),
            )
            for item in model.items
        ]
        return Order(
            id=model.id,
            order_number=model.order_number,
            buyer_id=model.buyer_id,
            seller_id=model.seller_id,
            store_id=model.store_id,
            rider_id=model.rider_id,
            checkout_session_id=model.checkout_session_id,
            subtotal=_money(model.subtotal, currency),
            delivery_fee=_money(model.delivery_fee, currency),
            processing_fee=_money(model.processing_fee, currency),
            coupon_discount=_money(model.coupon_discount, currency),
            total=_money(model.total, currency),
            items=items,
            status=OrderStatus(model.status),
            payment_status=PaymentStatus(model.payment_status),
            payment_reference=model.payment_reference,
            coupon_code=model.coupon_code,
            delivery_method=DeliveryMethod(model.delivery_method),
            delivery_zone_id=model.delivery_zone_id,
            delivered_at=model.delivered_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def to_model(order: Order) -> OrderModel:
        model = OrderModel(
            id=order.id,
            order_number=order.order_number,
            checkout_session_id=order.checkout_session_id,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            store_id=order.store_id,
            delivery_method=order.delivery_method.value,
            delivery_zone_id=order.delivery_zone_id,
            subtotal=order.subtotal.amount,
            delivery_fee=order.delivery_fee.amount,
            processing_fee=order.processing_fee.amount,
            coupon_code=order.coupon_code,
            coupon_discount=order.coupon_discount.amount,
            total=order.total.amount,
            currency=order.currency,
            created_at=order.created_at,
        )
        OrderMapper.update_model(model, order)
        model.items = [
            OrderItemModel(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                original_price=item.original_price.amount,
                discount_percent=item.discount_percent,
                unit_price=item.unit_price.amount,
                total=item.total.amount,
            )
            for item in order.items
        ]
        return model

    @staticmethod
    def update_model(model: OrderModel, order: Order) -> None:
        """Copy the fields that may change after creation."""
        model.status = order.status.value
        model.payment_status = order.payment_status.value
        model.payment_reference = order.payment_reference
        model.rider_id = order.rider_id
        model.delivered_at = order.delivered_at
        model.updated_at = order.updated_at


class StatusHistoryMapper:

    @staticmethod
    def to_domain(model: OrderStatusHistoryModel) -> StatusHistoryEntry:
        return StatusHistoryEntry(
            order_id=model.order_id,
            from_status=OrderStatus(model.from_status),
            to_status=OrderStatus(model.to_status),
            changed_by=model.changed_by,
            changed_by_role=ActorRole(model.changed_by_role),
            reason=model.reason,
            metadata=dict(model.metadata_json or {}),
            created_at=model.created_at,
        )

    @staticmethod
    def to_model(entry: StatusHistoryEntry) -> OrderStatusHistoryModel:
        return OrderStatusHistoryModel(
            order_id=entry.order_id,
            from_status=entry.from_status.value,
            to_status=entry.to_status.value,
            changed_by=entry.changed_by,
            changed_by_role=entry.changed_by_role.value,
            reason=entry.reason,
            metadata_json=entry.metadata,
            created_at=entry.created_at,
        )


class TransactionMapper:

    @staticmethod
    def to_domain(model: TransactionModel) -> PaymentTransaction:
        return PaymentTransaction(
            id=model.id,
            payment_reference=model.payment_reference,
            user_id=model.user_id,
            status=TransactionStatus(model.status),
            amount=_money(model.amount, model.currency),
            order_ids=list(model.order_ids or []),
            checkout_session_id=model.checkout_session_id,
            gateway_status=model.gateway_status,
            gateway_response=dict(model.gateway_response or {}),
            created_at=model.created_at,
        )

    @staticmethod
    def to_model(transaction: PaymentTransaction) -> TransactionModel:
        return TransactionModel(
            id=transaction.id,
            payment_reference=transaction.payment_reference,
            user_id=transaction.user_id,
            status=transaction.status.value,
            amount=transaction.amount.amount,
            currency=transaction.amount.currency,
            order_ids=list(transaction.order_ids),
            checkout_session_id=transaction.checkout_session_id,
            gateway_status=transaction.gateway_status,
            gateway_response=transaction.gateway_response,
            created_at=transaction.created_at,
        )


class CommissionMapper:

    @staticmethod
    def to_domain(model: CommissionModel) -> Commission:
        currency = model.currency
        return Commission(
            id=model.id,
            order_id=model.order_id,
            seller_id=model.seller_id,
            order_amount=_money(model.order_amount, currency),
            commission_rate=Decimal(model.commission_rate),
            commission_amount=_money(model.commission_amount, currency),
            seller_amount=_money(model.seller_amount, currency),
            status=CommissionStatus(model.status),
            processed_at=model.processed_at,
            created_at=model.created_at,
        )

    @staticmethod
    def to_model(commission: Commission) -> CommissionModel:
        return CommissionModel(
            id=commission.id,
            order_id=commission.order_id,
            seller_id=commission.seller_id,
            order_amount=commission.order_amount.amount,
            commission_rate=commission.commission_rate,
            commission_amount=commission.commission_amount.amount,
            seller_amount=commission.seller_amount.amount,
            platform_amount=commission.platform_amount.amount,
            currency=commission.order_amount.currency,
            status=commission.status.value,
            processed_at=commission.processed_at,
            created_at=commission.created_at,
        )

    @staticmethod
    def earning_to_model(earning: PlatformEarning) -> PlatformEarningModel:
        return PlatformEarningModel(
            id=earning.id,
            commission_id=earning.commission_id,
            order_id=earning.order_id,
            earning_type=earning.earning_type,
            amount=earning.amount.amount,
            currency=earning.amount.currency,
            description=earning.description,
            created_at=earning.created_at,
        )


class PayoutMapper:

    @staticmethod
    def to_domain(model: SellerPayoutModel) -> SellerPayout:
        return SellerPayout(
            id=model.id,
            seller_id=model.seller_id,
            amount=_money(model.amount, model.currency),
            method=PayoutMethod(model.method),
            details=PayoutDetails(**(model.details or {})),
            commission_ids=list(model.commission_ids or []),
            status=PayoutStatus(model.status),
            reference=model.reference,
            notes=model.notes,
            processed_by=model.processed_by,
            processed_at=model.processed_at,
            created_at=model.created_at,
        )

    @staticmethod
    def to_model(payout: SellerPayout) -> SellerPayoutModel:
        model = SellerPayoutModel(
            id=payout.id,
            seller_id=payout.seller_id,
            amount=payout.amount.amount,
            currency=payout.amount.currency,
            method=payout.method.value,
            details=payout.details.to_dict(),
            commission_ids=list(payout.commission_ids),
            created_at=payout.created_at,
        )
        PayoutMapper.update_model(model, payout)
        return model

    @staticmethod
    def update_model(model: SellerPayoutModel, payout: SellerPayout) -> None:
        model.status = payout.status.value
        model.reference = payout.reference
        model.notes = payout.notes
        model.processed_by = payout.processed_by
        model.processed_at = payout.processed_at


class CatalogMapper:

    @staticmethod
    def product_to_domain(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            name=model.name,
            seller_id=model.seller_id,
            store_id=model.store_id,
            price=_money(model.price, model.currency),
            discount=Decimal(model.discount or 0),
            is_active=bool(model.is_active),
        )

    @staticmethod
    def coupon_to_domain(model: CouponModel, currency: str) -> Coupon:
        return Coupon(
            id=model.id,
            code=model.code,
            seller_id=model.seller_id,
            discount_type=DiscountType(model.discount_type),
            discount_value=Decimal(model.discount_value),
            is_active=bool(model.is_active),
            minimum_purchase=(
                _money(model.minimum_purchase, currency)
                if model.minimum_purchase is not None
                else None
            ),
            usage_limit=model.usage_limit,
            used_count=model.used_count or 0,
            expires_at=model.expires_at,
        )
