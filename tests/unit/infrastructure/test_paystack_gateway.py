"""Tests for the Paystack gateway adapter against a local aiohttp server."""

import asyncio
import hashlib
import hmac
import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from market_core.application.interfaces import ChargeRequest
from market_core.domain.errors import GatewayError, GatewayTimeoutError
from market_core.infrastructure.adapters.payments import PaystackGateway
from market_core.settings import PaymentSettings

SECRET = "sk_test_paystack"


async def initialize(request: web.Request) -> web.Response:
    body = await request.json()
    assert request.headers["Authorization"] == f"Bearer {SECRET}"
    return web.json_response(
        {
            "status": True,
            "data": {
                "reference": "ref-abc",
                "authorization_url": "https://checkout.paystack.test/ref-abc",
                "access_code": "acc-1",
                "echo_amount": body["amount"],
            },
        }
    )


async def verify(request: web.Request) -> web.Response:
    reference = request.match_info["reference"]
    if reference == "missing":
        return web.json_response({"status": False, "message": "Transaction reference not found"}, status=400)
    if reference == "slow":
        await asyncio.sleep(2)
    return web.json_response(
        {
            "status": True,
            "data": {
                "reference": reference,
                "status": "success",
                "amount": 8666,
                "currency": "GHS",
                "gateway_response": "Approved",
                "metadata": json.dumps({"user_id": "buyer-1"}),
            },
        }
    )


@pytest_asyncio.fixture
async def paystack_server():
    app = web.Application()
    app.router.add_post("/transaction/initialize", initialize)
    app.router.add_get("/transaction/verify/{reference}", verify)
    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()


def make_gateway(server: TestServer, timeout: float = 5.0) -> PaystackGateway:
    return PaystackGateway(
        PaymentSettings(secret_key=SECRET, base_url=str(server.make_url("/")), timeout_seconds=timeout)
    )


@pytest.mark.asyncio
async def test_initialize_charge(paystack_server):
    gateway = make_gateway(paystack_server)
    charge = await gateway.initialize_charge(
        ChargeRequest(email="buyer@example.com", amount_minor=8666, currency="GHS", metadata={"user_id": "buyer-1"})
    )
    assert charge.reference == "ref-abc"
    assert charge.authorization_url.endswith("/ref-abc")
    assert charge.access_code == "acc-1"


@pytest.mark.asyncio
async def test_verify_charge_parses_string_metadata(paystack_server):
    gateway = make_gateway(paystack_server)
    verification = await gateway.verify_charge("ref-abc")
    assert verification.is_success
    assert verification.amount_minor == 8666
    assert verification.currency == "GHS"
    assert verification.metadata == {"user_id": "buyer-1"}


@pytest.mark.asyncio
async def test_rejected_call_is_gateway_error(paystack_server):
    gateway = make_gateway(paystack_server)
    with pytest.raises(GatewayError) as exc:
        await gateway.verify_charge("missing")
    assert not isinstance(exc.value, GatewayTimeoutError)
    assert exc.value.details["http_status"] == 400


@pytest.mark.asyncio
async def test_slow_gateway_is_timeout(paystack_server):
    gateway = make_gateway(paystack_server, timeout=0.2)
    with pytest.raises(GatewayTimeoutError):
        await gateway.verify_charge("slow")


@pytest.mark.asyncio
async def test_unreachable_gateway_is_gateway_error():
    gateway = PaystackGateway(PaymentSettings(secret_key=SECRET, base_url="http://127.0.0.1:1", timeout_seconds=2))
    with pytest.raises(GatewayError):
        await gateway.verify_charge("ref-abc")


def test_webhook_signature():
    gateway = PaystackGateway(PaymentSettings(secret_key=SECRET))
    body = b'{"event":"charge.success","data":{"reference":"ref-abc"}}'
    signature = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()

    assert gateway.verify_webhook_signature(body, signature)
    assert not gateway.verify_webhook_signature(body + b" ", signature)
    assert not gateway.verify_webhook_signature(body, None)
    assert not PaystackGateway(PaymentSettings(secret_key="")).verify_webhook_signature(body, signature)
