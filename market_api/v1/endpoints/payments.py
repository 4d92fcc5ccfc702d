"""Payment endpoints: charge initialization, client verification and gateway webhook."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from market_core.application.dtos import (
    InitializePaymentRequest,
    PaymentInitializationDTO,
    PaymentOutcomeDTO,
    VerifyPaymentRequest,
    WebhookAckDTO,
)
from market_core.application.services import PaymentService
from market_core.domain.enums import ActorRole

from market_api.deps import Actor, get_actor, get_payment_service, require_role

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/initialize",
    response_model=PaymentInitializationDTO,
    status_code=201,
    summary="Open a gateway charge",
    description="Covers one order, or every order of a multi-vendor checkout session with a single charge.",
)
async def initialize_payment(
    request: InitializePaymentRequest,
    actor: Actor = Depends(get_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentInitializationDTO:
    require_role(actor, ActorRole.BUYER)
    logger.info(f"API: Initialize payment by {actor.actor_id}")
    return await service.initialize_payment(actor.actor_id, request)


@router.post(
    "/verify",
    response_model=PaymentOutcomeDTO,
    summary="Verify a payment after the gateway redirect",
    description=(
        "Requires the one-time verification token issued at initialization. "
        "Repeating the call returns the recorded outcome without contacting the gateway."
    ),
)
async def verify_payment(
    request: VerifyPaymentRequest,
    actor: Actor = Depends(get_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentOutcomeDTO:
    logger.info(f"API: Verify payment {request.reference} by {actor.actor_id}")
    return await service.verify_payment(actor.actor_id, request.reference, request.verification_token)


@router.post("/webhook", response_model=WebhookAckDTO, summary="Gateway webhook")
async def payment_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(None),
    service: PaymentService = Depends(get_payment_service),
) -> WebhookAckDTO:
    """Signed gateway callback. The signature covers the raw body, so it is read unparsed."""
    raw_body = await request.body()
    return await service.handle_webhook(raw_body, x_paystack_signature)
