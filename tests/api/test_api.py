"""HTTP API tests: error mapping, identity headers and the checkout-to-payment flow."""

from decimal import Decimal

import pytest

from market_core.domain.enums import ActorRole, OrderStatus, PaymentStatus

from tests.api.conftest import headers
from tests.conftest import minutes_ago, sign, webhook_body


def money(value) -> Decimal:
    return Decimal(str(value))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_missing_identity_headers(client):
    response = client.get("/api/v1/orders/some-order")

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "role_violation"


def test_unknown_role_is_validation_error(client):
    response = client.get("/api/v1/orders/some-order", headers=headers("u-1", "wizard"))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation"


def test_system_role_cannot_be_claimed(client):
    response = client.get("/api/v1/orders/some-order", headers=headers("u-1", "system"))
    assert response.status_code == 403


def test_admin_sees_error_details(client):
    response = client.get("/api/v1/orders/missing", headers=headers("admin-1", "admin"))

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "not_found"
    assert error["details"]["id"] == "missing"
    assert "internal_message" in error


def test_other_roles_get_user_message_only(client):
    response = client.get("/api/v1/orders/missing", headers=headers("buyer-1", "buyer"))

    assert response.status_code == 404
    error = response.json()["error"]
    assert error == {"code": "not_found", "message": "Order not found."}


def test_malformed_body_is_400(client):
    response = client.post(
        "/api/v1/checkout",
        json={"items": [{"product_id": "p-1", "quantity": 0}], "subtotal": "1.00", "total": "1.00"},
        headers=headers("buyer-1", "buyer"),
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "validation"
    assert error["details"]["errors"]


def test_webhook_without_signature_is_401(client):
    body = webhook_body("charge.success", "ref-0001", "buyer-1")

    response = client.post("/api/v1/payments/webhook", content=body)

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "invalid_signature"


def test_webhook_for_other_events_is_acknowledged(client):
    body = webhook_body("transfer.success", "TRF-1", "seller-1")

    response = client.post(
        "/api/v1/payments/webhook",
        content=body,
        headers={"X-Paystack-Signature": sign(body)},
    )

    assert response.status_code == 200
    assert response.json()["received"] is True


@pytest.mark.asyncio
async def test_non_party_cannot_read_order(client, seed):
    order = await seed.order("buyer-1", "seller-1")

    assert client.get(f"/api/v1/orders/{order.id}", headers=headers("buyer-2", "buyer")).status_code == 403
    assert client.get(f"/api/v1/orders/{order.id}", headers=headers("seller-1", "seller")).status_code == 200
    assert client.get(f"/api/v1/orders/{order.id}", headers=headers("admin-1", "super_admin")).status_code == 200


@pytest.mark.asyncio
async def test_invalid_transition_is_409(client, seed):
    order = await seed.order("buyer-1", "seller-1", status=OrderStatus.CANCELLED)

    response = client.post(
        f"/api/v1/orders/{order.id}/status",
        json={"status": "pending"},
        headers=headers("admin-1", "admin"),
    )

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "invalid_transition"
    assert error["details"]["current_status"] == "cancelled"


@pytest.mark.asyncio
async def test_unmet_guard_is_422(client, seed):
    order = await seed.order(
        "buyer-1", "seller-1", status=OrderStatus.PROCESSING, payment_status=PaymentStatus.COMPLETED
    )

    response = client.post(
        f"/api/v1/orders/{order.id}/status",
        json={"status": "delivering"},
        headers=headers("admin-1", "admin"),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "precondition_failed"


@pytest.mark.asyncio
async def test_transition_and_history(client, seed):
    order = await seed.order("buyer-1", "seller-1")

    response = client.post(
        f"/api/v1/orders/{order.id}/status",
        json={"status": "cancelled", "reason": "Ordered twice"},
        headers=headers("buyer-1", "buyer"),
    )
    history = client.get(f"/api/v1/orders/{order.id}/history", headers=headers("buyer-1", "buyer"))

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert [(h["from_status"], h["to_status"]) for h in history.json()] == [("pending", "cancelled")]


@pytest.mark.asyncio
async def test_allowed_transitions(client, seed):
    order = await seed.order("buyer-1", "seller-1")

    response = client.get(f"/api/v1/orders/{order.id}/allowed-transitions", headers=headers("buyer-1", "buyer"))

    assert response.status_code == 200
    assert response.json()["allowed"] == ["cancelled"]


@pytest.mark.asyncio
async def test_uncomposable_payout_hides_details_from_seller(client, seed):
    await seed.user(ActorRole.SELLER, "seller-1")
    await seed.commission("seller-1", "12.00", minutes_ago(20))
    await seed.commission("seller-1", "8.00", minutes_ago(10))

    response = client.post(
        "/api/v1/payouts",
        json={"amount": "15.00", "method": "mobile_money", "details": {"mobile_number": "0241234567"}},
        headers=headers("seller-1", "seller"),
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "amount_not_composable"
    assert "details" not in error


@pytest.mark.asyncio
async def test_payout_lifecycle(client, seed):
    await seed.user(ActorRole.SELLER, "seller-1")
    await seed.commission("seller-1", "12.00", minutes_ago(20))
    await seed.commission("seller-1", "8.00", minutes_ago(10))
    seller = headers("seller-1", "seller")
    admin = headers("admin-1", "admin")

    created = client.post(
        "/api/v1/payouts",
        json={"amount": "12.00", "method": "mobile_money", "details": {"mobile_number": "0241234567"}},
        headers=seller,
    )
    assert created.status_code == 201
    payout_id = created.json()["id"]

    balance = client.get("/api/v1/commissions/balance", headers=seller)
    assert money(balance.json()["available_balance"]) == Decimal("8.00")

    forbidden = client.patch(f"/api/v1/payouts/{payout_id}/status", json={"status": "completed"}, headers=seller)
    assert forbidden.status_code == 403

    client.patch(f"/api/v1/payouts/{payout_id}/status", json={"status": "processing"}, headers=admin)
    done = client.patch(f"/api/v1/payouts/{payout_id}/status", json={"status": "completed"}, headers=admin)
    assert done.status_code == 200
    assert done.json()["status"] == "completed"

    earnings = client.get("/api/v1/commissions/platform-earnings", headers=admin)
    assert money(earnings.json()["total"]) == Decimal("2.00")
    assert client.get("/api/v1/commissions/platform-earnings", headers=seller).status_code == 403


@pytest.mark.asyncio
async def test_checkout_then_pay(client, seed, gateway):
    await seed.user(ActorRole.BUYER, "buyer-1")
    await seed.user(ActorRole.SELLER, "seller-x")
    await seed.user(ActorRole.SELLER, "seller-y")
    product_x = await seed.product("seller-x", "50.00")
    product_y = await seed.product("seller-y", "30.00")
    zone = await seed.zone("10.00")
    await seed.coupon("SAVE10", "seller-x")
    buyer = headers("buyer-1", "buyer")

    checkout = client.post(
        "/api/v1/checkout",
        json={
            "items": [{"product_id": product_x, "quantity": 1}, {"product_id": product_y, "quantity": 1}],
            "coupon_code": "SAVE10",
            "delivery_method": "rider",
            "delivery_zone_id": zone,
            "subtotal": "80.00",
            "total": "86.66",
        },
        headers=buyer,
    )
    assert checkout.status_code == 201
    result = checkout.json()
    assert money(result["grand_total"]) == Decimal("86.66")
    session_id = result["checkout_session_id"]

    siblings = client.get(f"/api/v1/orders/sessions/{session_id}", headers=buyer)
    assert len(siblings.json()) == 2

    init = client.post("/api/v1/payments/initialize", json={"checkout_session_id": session_id}, headers=buyer)
    assert init.status_code == 201
    charge = init.json()
    assert gateway.charges[charge["reference"]].amount_minor == 8666

    verify_body = {"reference": charge["reference"], "verification_token": charge["verification_token"]}
    verified = client.post("/api/v1/payments/verify", json=verify_body, headers=buyer)
    again = client.post("/api/v1/payments/verify", json=verify_body, headers=buyer)

    assert verified.status_code == 200
    assert verified.json()["status"] == "completed"
    assert again.json() == verified.json()
    assert gateway.verify_calls == [charge["reference"]]

    seller_view = client.get(
        f"/api/v1/orders/{result['orders'][0]['id']}", headers=headers("seller-x", "seller")
    )
    assert seller_view.json()["status"] == "processing"
    assert seller_view.json()["payment_status"] == "completed"

    commissions = client.get("/api/v1/commissions", headers=headers("seller-x", "seller"))
    assert len(commissions.json()) == 1


def test_sellers_cannot_checkout(client):
    response = client.post(
        "/api/v1/checkout",
        json={"items": [], "subtotal": "0", "total": "0"},
        headers=headers("seller-1", "seller"),
    )
    assert response.status_code == 403
