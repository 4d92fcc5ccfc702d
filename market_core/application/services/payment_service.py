"""
Payment reconciliation service.

Initializes gateway charges and records their outcome exactly once.
Client verification and the gateway webhook share one path:

1. per-reference lock (loser gets ``VerificationInProgressError``)
2. recorded Transaction -> return it, no gateway call
3. gateway verify, outside any database transaction
4. lock every order of the reference, validate owner, amount and
   currency, then mark orders, advance them, record commissions and
   insert the Transaction, all in one unit of work
5. release the lock in ``finally``
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import json
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from market_core.application.dtos import (
    InitializePaymentRequest,
    PaymentInitializationDTO,
    PaymentOutcomeDTO,
    WebhookAckDTO,
)
from market_core.application.interfaces import (
    ChargeRequest,
    ChargeVerification,
    IPaymentGateway,
    IPaymentLockStore,
    IVerificationTokenStore,
    VerificationToken,
)
from market_core.domain.clock import utcnow
from market_core.domain.entities import Order, PaymentTransaction
from market_core.domain.enums import ActorRole, OrderStatus, PaymentStatus, TransactionStatus
from market_core.domain.errors import (
    InvalidSignatureError,
    NotFoundError,
    RoleViolationError,
    TamperDetectedError,
    TransitionError,
    ValidationFailedError,
    VerificationInProgressError,
)
from market_core.domain.event_bus import EventBus
from market_core.domain.events import DomainEvent, PaymentCompletedEvent, PaymentFailedEvent
from market_core.domain.state_machine import TransitionRequest
from market_core.domain.value_objects import Money, generate_verification_token, new_id
from market_core.infrastructure.database.unit_of_work import UnitOfWork, create_uow
from market_core.settings.modules.marketplace_settings import MarketplaceSettings
from market_core.settings.modules.payment_settings import PaymentSettings

from .commission_service import CommissionService
from .order_service import transition_locked_order


logger = logging.getLogger(__name__)

WEBHOOK_CHARGE_EVENTS = frozenset({"charge.success", "charge.failed"})

# Order payment states that may open a new charge
_PAYABLE_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED})


class PaymentService:
    """Payment initialization and exactly-once reconciliation."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        gateway: IPaymentGateway,
        lock_store: IPaymentLockStore,
        token_store: IVerificationTokenStore,
        commission_service: CommissionService,
        payment_settings: PaymentSettings,
        marketplace_settings: MarketplaceSettings,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._session_factory = session_factory
        self._gateway = gateway
        self._locks = lock_store
        self._tokens = token_store
        self._commissions = commission_service
        self._payment_settings = payment_settings
        self._settings = marketplace_settings
        self._event_bus = event_bus

    def _uow(self) -> UnitOfWork:
        return create_uow(self._session_factory, self._settings.currency)

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    async def initialize_payment(
        self,
        user_id: str,
        request: InitializePaymentRequest,
    ) -> PaymentInitializationDTO:
        """
        Open one gateway charge covering an order or a whole checkout session.

        Raises:
            ValidationFailedError: bad target, order not payable, non-positive amount
            NotFoundError: order, session or buyer missing
            RoleViolationError: orders belong to another buyer
            GatewayError / GatewayTimeoutError: charge could not be opened
        """
        if bool(request.order_id) == bool(request.checkout_session_id):
            raise ValidationFailedError(
                "Exactly one of order_id or checkout_session_id is required",
                user_message="Choose the order or checkout session to pay.",
            )

        async with self._uow() as uow:
            orders = await self._payable_orders(uow, request)
            for order in orders:
                self._ensure_payable(order, user_id)
            email = await uow.users.get_email(user_id)
            if not email:
                raise NotFoundError("User", user_id)

        amount = self._sum_totals(orders)
        if not amount.is_positive():
            raise ValidationFailedError(
                f"Payment amount must be positive, got {amount}",
                user_message="Invalid payment amount.",
                details={"amount": str(amount.amount)},
            )

        order_ids = [order.id for order in orders]
        session_id = orders[0].checkout_session_id
        charge = await self._gateway.initialize_charge(
            ChargeRequest(
                email=email,
                amount_minor=amount.cents,
                currency=amount.currency,
                callback_url=self._payment_settings.callback_url or None,
                metadata={
                    "user_id": user_id,
                    "order_ids": order_ids,
                    "checkout_session_id": session_id,
                    "is_multi_vendor": len(orders) > 1,
                },
            )
        )

        # Bind the reference under lock; the orders may have changed during the gateway call
        async with self._uow() as uow:
            locked = await uow.lock_orders(order_ids)
            for order in locked:
                self._ensure_payable(order, user_id)
                order.start_payment(charge.reference)
                await uow.orders.save(order)
            await uow.commit()

        token = VerificationToken(
            token=generate_verification_token(),
            user_id=user_id,
            order_id=order_ids[0],
            payment_reference=charge.reference,
        )
        await self._tokens.put(token, self._payment_settings.verification_token_ttl_seconds)

        logger.info(
            f"Payment initialized: {charge.reference} for {len(order_ids)} order(s), {amount}"
        )
        return PaymentInitializationDTO(
            authorization_url=charge.authorization_url,
            reference=charge.reference,
            access_code=charge.access_code,
            verification_token=token.token,
            amount=amount.amount,
            currency=amount.currency,
            order_ids=order_ids,
        )

    async def _payable_orders(self, uow: UnitOfWork, request: InitializePaymentRequest) -> List[Order]:
        if request.checkout_session_id:
            orders = await uow.orders.find_by_checkout_session(request.checkout_session_id)
            if not orders:
                raise NotFoundError("CheckoutSession", request.checkout_session_id)
            return orders

        order = await uow.orders.get(request.order_id)
        if order is None:
            raise NotFoundError("Order", request.order_id)
        return [order]

    def _ensure_payable(self, order: Order, user_id: str) -> None:
        if order.buyer_id != user_id:
            raise RoleViolationError(
                f"User {user_id} does not own order {order.id}",
                user_message="You can only pay for your own orders.",
                details={"order_id": order.id},
            )
        if order.payment_status not in _PAYABLE_STATUSES:
            raise ValidationFailedError(
                f"Order {order.order_number} payment is {order.payment_status.value}",
                user_message=(
                    "This order has already been paid."
                    if order.payment_status == PaymentStatus.COMPLETED
                    else "A payment for this order is already in progress."
                ),
                details={"order_id": order.id, "payment_status": order.payment_status.value},
            )
        if order.status != OrderStatus.PENDING:
            raise ValidationFailedError(
                f"Order {order.order_number} is {order.status.value}",
                user_message=f"This order is {order.status.value} and cannot be paid.",
                details={"order_id": order.id, "status": order.status.value},
            )

    # =========================================================================
    # VERIFICATION
    # =========================================================================

    async def verify_payment(
        self,
        user_id: str,
        reference: str,
        verification_token: str,
    ) -> PaymentOutcomeDTO:
        """
        Client-driven verification after the gateway redirect.

        The one-time token must match (user, reference). It is deleted
        once a definitive outcome is returned; afterwards the recorded
        outcome is still returned to the paying user.

        Raises:
            RoleViolationError: token missing, expired or bound to someone else
            VerificationInProgressError: another verification holds the lock
        """
        token = await self._tokens.get(verification_token)
        if token is None or token.user_id != user_id or token.payment_reference != reference:
            recorded = await self._recorded_transaction(reference)
            if recorded is not None and recorded.user_id == user_id:
                return PaymentOutcomeDTO.from_transaction(recorded)
            logger.warning(f"Rejected verification of {reference} by {user_id}: invalid or expired token")
            raise RoleViolationError(
                f"Invalid verification token for {reference}",
                user_message="Invalid or expired verification token. Please contact support.",
                details={"reference": reference},
            )

        outcome = await self._reconcile(reference, user_id)
        if outcome.recorded:
            await self._tokens.delete(token.token)
        return outcome

    async def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> WebhookAckDTO:
        """
        Signed gateway callback.

        The signature is checked against the raw body before anything
        else; an invalid one has no side effects at all.

        Raises:
            InvalidSignatureError: HMAC mismatch or missing header
            ValidationFailedError: unreadable payload
        """
        if not self._gateway.verify_webhook_signature(raw_body, signature):
            logger.warning("Rejected payment webhook: invalid signature")
            raise InvalidSignatureError("Webhook signature mismatch")

        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            raise ValidationFailedError(f"Webhook body is not JSON: {e}") from e

        event = payload.get("event")
        if event not in WEBHOOK_CHARGE_EVENTS:
            logger.info(f"Ignoring payment webhook event {event}")
            return WebhookAckDTO(event=event)

        data = payload.get("data") or {}
        reference = data.get("reference")
        user_id = _metadata(data).get("user_id")
        if not reference or not user_id:
            raise ValidationFailedError(
                "Webhook payload lacks reference or user metadata",
                details={"event": event, "reference": reference},
            )

        outcome = await self._reconcile(reference, str(user_id))
        return WebhookAckDTO(event=event, outcome=outcome)

    async def _reconcile(self, reference: str, user_id: str) -> PaymentOutcomeDTO:
        owner = await self._locks.acquire(reference, self._payment_settings.verification_lock_ttl_seconds)
        if owner is None:
            logger.warning(f"Verification of {reference} already in progress")
            raise VerificationInProgressError(
                f"Verification lock for {reference} is held",
                details={"reference": reference},
            )

        try:
            recorded = await self._recorded_outcome(reference)
            if recorded is not None:
                return recorded

            verification = await self._gateway.verify_charge(reference)
            if not (verification.is_success or verification.is_failure):
                logger.info(f"Payment {reference} not final at gateway: {verification.status}")
                return PaymentOutcomeDTO(
                    reference=reference,
                    status=PaymentStatus.PENDING.value,
                    recorded=False,
                    gateway_status=verification.status,
                )

            try:
                outcome, events = await self._record_outcome(reference, user_id, verification)
            except IntegrityError:
                # Another instance inserted the Transaction first
                logger.warning(f"Transaction for {reference} recorded concurrently; returning recorded outcome")
                recorded = await self._recorded_outcome(reference)
                if recorded is None:
                    raise
                return recorded

            if self._event_bus is not None:
                await self._event_bus.publish_all(events)
            return outcome
        finally:
            await self._locks.release(reference, owner)

    async def _record_outcome(
        self,
        reference: str,
        user_id: str,
        verification: ChargeVerification,
    ) -> Tuple[PaymentOutcomeDTO, List[DomainEvent]]:
        async with self._uow() as uow:
            bound = await uow.orders.find_by_payment_reference(reference)
            if not bound:
                raise NotFoundError("Payment", reference, user_message="No orders found for this payment.")
            orders = await uow.lock_orders([order.id for order in bound])

            existing = await uow.transactions.get_by_reference(reference)
            if existing is not None:
                return PaymentOutcomeDTO.from_transaction(existing), []

            self._validate_against_orders(reference, user_id, orders, verification)

            now = utcnow()
            events: List[DomainEvent] = []
            expected = self._sum_totals(orders)

            if verification.is_success:
                for order in orders:
                    order.mark_payment_completed()
                    await self._advance_paid_order(uow, order, now)
                    await uow.orders.save(order)
                    events.extend(order.get_domain_events())
                    order.clear_domain_events()

                    _, commission_event = await self._commissions.record_commission(uow, order)
                    if commission_event is not None:
                        events.append(commission_event)
                status = TransactionStatus.COMPLETED
            else:
                for order in orders:
                    order.mark_payment_failed()
                    await uow.orders.save(order)
                status = TransactionStatus.FAILED

            transaction = PaymentTransaction(
                id=new_id(),
                payment_reference=reference,
                user_id=user_id,
                status=status,
                amount=expected,
                order_ids=[order.id for order in orders],
                checkout_session_id=orders[0].checkout_session_id,
                gateway_status=verification.status,
                gateway_response=_gateway_summary(verification),
                created_at=now,
            )
            await uow.transactions.add(transaction)
            await uow.commit()
            execution_id = str(uow.execution_id)

        if transaction.succeeded:
            logger.info(f"[{execution_id}] ✅ Payment {reference} completed for {len(orders)} order(s), {expected}")
            events.insert(0, PaymentCompletedEvent(
                payment_reference=reference,
                order_ids=transaction.order_ids,
                amount=str(expected.amount),
                currency=expected.currency,
                user_id=user_id,
                execution_id=execution_id,
            ))
        else:
            logger.info(f"[{execution_id}] Payment {reference} failed at gateway: {verification.status}")
            events.insert(0, PaymentFailedEvent(
                payment_reference=reference,
                order_ids=transaction.order_ids,
                gateway_status=verification.status,
                reason=verification.gateway_response,
                user_id=user_id,
                execution_id=execution_id,
            ))

        return PaymentOutcomeDTO.from_transaction(transaction), events

    async def _advance_paid_order(self, uow: UnitOfWork, order: Order, now: datetime) -> None:
        request = TransitionRequest(
            target_status=OrderStatus.PROCESSING,
            actor_id=ActorRole.SYSTEM.value,
            actor_role=ActorRole.SYSTEM,
            reason="Payment verified",
        )
        try:
            await transition_locked_order(uow, order, request, now)
        except TransitionError as e:
            # Payment is recorded regardless; the order keeps its current status
            logger.warning(
                f"[{uow.execution_id}] Paid order {order.order_number} not advanced: {e.reason}"
            )

    def _validate_against_orders(
        self,
        reference: str,
        user_id: str,
        orders: List[Order],
        verification: ChargeVerification,
    ) -> None:
        for order in orders:
            if order.buyer_id != user_id:
                logger.warning(f"Payment {reference} verified by {user_id} but order {order.id} belongs to {order.buyer_id}")
                raise RoleViolationError(
                    f"Order {order.id} does not belong to {user_id}",
                    details={"reference": reference, "order_id": order.id},
                )

        expected = self._sum_totals(orders)
        currency = (verification.currency or "").upper()
        if verification.amount_minor != expected.cents or currency != expected.currency:
            logger.error(
                f"Payment {reference} mismatch: gateway {verification.amount_minor} {currency}, "
                f"orders {expected.cents} {expected.currency}"
            )
            raise TamperDetectedError(
                f"Gateway amount/currency for {reference} does not match the orders",
                user_message="Payment amount does not match your order. Please contact support.",
                details={
                    "reference": reference,
                    "gateway_amount_minor": verification.amount_minor,
                    "gateway_currency": currency,
                    "expected_amount_minor": expected.cents,
                    "expected_currency": expected.currency,
                },
            )

    async def _recorded_transaction(self, reference: str) -> Optional[PaymentTransaction]:
        async with self._uow() as uow:
            return await uow.transactions.get_by_reference(reference)

    async def _recorded_outcome(self, reference: str) -> Optional[PaymentOutcomeDTO]:
        transaction = await self._recorded_transaction(reference)
        return PaymentOutcomeDTO.from_transaction(transaction) if transaction else None

    def _sum_totals(self, orders: List[Order]) -> Money:
        return sum((order.total for order in orders), Money.zero(self._settings.currency))


def _metadata(data: Dict[str, Any]) -> Dict[str, Any]:
    metadata = data.get("metadata") or {}
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except ValueError:
            return {}
    return metadata if isinstance(metadata, dict) else {}


def _gateway_summary(verification: ChargeVerification) -> Dict[str, Any]:
    return {
        "status": verification.status,
        "amount": verification.amount_minor,
        "currency": verification.currency,
        "gateway_response": verification.gateway_response,
    }
