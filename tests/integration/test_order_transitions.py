"""Integration tests for order status transitions against a real database."""

import asyncio

import pytest

from market_core.application.dtos import TransitionOrderRequest
from market_core.domain.enums import ActorRole, OrderStatus, PaymentStatus
from market_core.domain.errors import (
    InvalidTransitionError,
    NotFoundError,
    PaymentRequiredError,
    PreconditionFailedError,
    TransitionRoleViolationError,
)


@pytest.mark.asyncio
async def test_buyer_cancels_pending_order(seed, order_service, event_bus):
    order = await seed.order("buyer-1", "seller-1")

    result = await order_service.transition_order(
        order.id,
        TransitionOrderRequest(status=OrderStatus.CANCELLED, reason="Changed my mind"),
        "buyer-1",
        ActorRole.BUYER,
    )

    assert result.status == "cancelled"
    history = await order_service.get_status_history(order.id)
    assert len(history) == 1
    assert history[0].from_status == "pending"
    assert history[0].to_status == "cancelled"
    assert history[0].changed_by == "buyer-1"
    assert history[0].reason == "Changed my mind"
    assert event_bus.types() == ["OrderStatusChangedEvent"]


@pytest.mark.asyncio
async def test_role_violation_writes_nothing(seed, order_service, event_bus):
    order = await seed.order("buyer-1", "seller-1")

    with pytest.raises(TransitionRoleViolationError):
        await order_service.transition_order(
            order.id,
            TransitionOrderRequest(status=OrderStatus.CANCELLED),
            "seller-1",
            ActorRole.SELLER,
        )

    reloaded = await order_service.get_order(order.id)
    assert reloaded.status == "pending"
    assert await order_service.get_status_history(order.id) == []
    assert event_bus.published == []


@pytest.mark.asyncio
async def test_buyer_cannot_cancel_someone_elses_order(seed, order_service):
    order = await seed.order("buyer-1", "seller-1")

    with pytest.raises(TransitionRoleViolationError):
        await order_service.transition_order(
            order.id,
            TransitionOrderRequest(status=OrderStatus.CANCELLED),
            "buyer-2",
            ActorRole.BUYER,
        )


@pytest.mark.asyncio
async def test_unpaid_order_cannot_be_processed(seed, order_service):
    order = await seed.order("buyer-1", "seller-1")

    with pytest.raises(PaymentRequiredError) as exc:
        await order_service.transition_order(
            order.id,
            TransitionOrderRequest(status=OrderStatus.PROCESSING),
            "system",
            ActorRole.SYSTEM,
        )
    assert exc.value.current_status == "pending"
    assert exc.value.requested_status == "processing"


@pytest.mark.asyncio
async def test_delivery_needs_an_assigned_rider(seed, order_service):
    order = await seed.order(
        "buyer-1",
        "seller-1",
        status=OrderStatus.PROCESSING,
        payment_status=PaymentStatus.COMPLETED,
    )

    with pytest.raises(PreconditionFailedError):
        await order_service.transition_order(
            order.id,
            TransitionOrderRequest(status=OrderStatus.DELIVERING),
            "admin-1",
            ActorRole.ADMIN,
        )


@pytest.mark.asyncio
async def test_rider_delivers_order(seed, order_service, event_bus):
    order = await seed.order(
        "buyer-1",
        "seller-1",
        status=OrderStatus.PROCESSING,
        payment_status=PaymentStatus.COMPLETED,
        rider_id="rider-1",
    )

    await order_service.transition_order(
        order.id, TransitionOrderRequest(status=OrderStatus.DELIVERING), "rider-1", ActorRole.RIDER
    )
    delivered = await order_service.transition_order(
        order.id, TransitionOrderRequest(status=OrderStatus.DELIVERED), "rider-1", ActorRole.RIDER
    )

    assert delivered.status == "delivered"
    assert delivered.delivered_at is not None
    history = await order_service.get_status_history(order.id)
    assert [(h.from_status, h.to_status) for h in history] == [
        ("processing", "delivering"),
        ("delivering", "delivered"),
    ]
    assert "delivered_at" in history[1].metadata
    assert event_bus.types() == ["OrderStatusChangedEvent", "OrderStatusChangedEvent"]


@pytest.mark.asyncio
async def test_other_rider_cannot_deliver(seed, order_service):
    order = await seed.order(
        "buyer-1",
        "seller-1",
        status=OrderStatus.DELIVERING,
        payment_status=PaymentStatus.COMPLETED,
        rider_id="rider-1",
    )

    with pytest.raises(TransitionRoleViolationError):
        await order_service.transition_order(
            order.id, TransitionOrderRequest(status=OrderStatus.DELIVERED), "rider-2", ActorRole.RIDER
        )


@pytest.mark.asyncio
async def test_seller_cancel_clears_rider(seed, order_service):
    order = await seed.order(
        "buyer-1",
        "seller-1",
        status=OrderStatus.PROCESSING,
        payment_status=PaymentStatus.COMPLETED,
        rider_id="rider-1",
    )

    result = await order_service.transition_order(
        order.id, TransitionOrderRequest(status=OrderStatus.CANCELLED), "seller-1", ActorRole.SELLER
    )

    assert result.status == "cancelled"
    assert result.rider_id is None
    (entry,) = await order_service.get_status_history(order.id)
    assert entry.metadata == {"rider_id": None}


@pytest.mark.asyncio
async def test_dispute_resolution_requires_reason(seed, order_service):
    order = await seed.order(
        "buyer-1",
        "seller-1",
        status=OrderStatus.DISPUTED,
        payment_status=PaymentStatus.COMPLETED,
    )

    with pytest.raises(PreconditionFailedError):
        await order_service.transition_order(
            order.id, TransitionOrderRequest(status=OrderStatus.DELIVERED, reason="  "), "admin-1", ActorRole.ADMIN
        )

    result = await order_service.transition_order(
        order.id,
        TransitionOrderRequest(status=OrderStatus.DELIVERED, reason="Proof of delivery provided"),
        "admin-1",
        ActorRole.ADMIN,
    )
    assert result.status == "delivered"


@pytest.mark.asyncio
async def test_cancelled_is_terminal(seed, order_service):
    order = await seed.order("buyer-1", "seller-1", status=OrderStatus.CANCELLED)

    with pytest.raises(InvalidTransitionError):
        await order_service.transition_order(
            order.id, TransitionOrderRequest(status=OrderStatus.PENDING), "admin-1", ActorRole.SUPER_ADMIN
        )


@pytest.mark.asyncio
async def test_concurrent_transitions_apply_exactly_once(seed, order_service):
    order = await seed.order("buyer-1", "seller-1")

    results = await asyncio.gather(
        order_service.transition_order(
            order.id, TransitionOrderRequest(status=OrderStatus.CANCELLED), "buyer-1", ActorRole.BUYER
        ),
        order_service.transition_order(
            order.id, TransitionOrderRequest(status=OrderStatus.CANCELLED), "admin-1", ActorRole.ADMIN
        ),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    successes = [r for r in results if not isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InvalidTransitionError)
    assert len(await order_service.get_status_history(order.id)) == 1


@pytest.mark.asyncio
async def test_allowed_transitions_for_role(seed, order_service):
    order = await seed.order(
        "buyer-1",
        "seller-1",
        status=OrderStatus.PROCESSING,
        payment_status=PaymentStatus.COMPLETED,
    )

    buyer = await order_service.get_allowed_transitions(order.id, ActorRole.BUYER)
    seller = await order_service.get_allowed_transitions(order.id, ActorRole.SELLER)

    assert buyer.current_status == "processing"
    assert buyer.allowed == ["disputed"]
    assert seller.allowed == ["cancelled"]


@pytest.mark.asyncio
async def test_unknown_order(order_service):
    with pytest.raises(NotFoundError):
        await order_service.transition_order(
            "missing", TransitionOrderRequest(status=OrderStatus.CANCELLED), "admin-1", ActorRole.ADMIN
        )
