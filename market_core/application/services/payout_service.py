"""Application service for seller payouts."""

from typing import List, Optional
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from market_core.application.dtos import PayoutDTO, PayoutRequest, UpdatePayoutStatusRequest
from market_core.domain.clock import utcnow
from market_core.domain.entities import SellerPayout
from market_core.domain.enums import ActorRole, CommissionStatus, PayoutStatus
from market_core.domain.errors import (
    AmountNotComposableError,
    InsufficientBalanceError,
    NotFoundError,
    RoleViolationError,
    ValidationFailedError,
)
from market_core.domain.event_bus import EventBus
from market_core.domain.events import PayoutProcessedEvent, PayoutRequestedEvent
from market_core.domain.services import PayoutCandidate, compose_payout
from market_core.domain.value_objects import Money, new_id
from market_core.infrastructure.database.unit_of_work import create_uow
from market_core.settings.modules.marketplace_settings import MarketplaceSettings


logger = logging.getLogger(__name__)


class PayoutService:
    """
    Seller withdrawals backed by exact sets of pending commissions.

    Requesting a payout locks the seller's pending commissions, picks an
    exact subset (greedy, oldest first) and moves it to ``processing`` in
    the same transaction as the payout insert.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: MarketplaceSettings,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings
        self._event_bus = event_bus

    async def request_payout(
        self,
        seller_id: str,
        actor_role: ActorRole,
        request: PayoutRequest,
    ) -> PayoutDTO:
        """
        Create a payout for exactly ``request.amount``.

        Raises:
            RoleViolationError: actor is not a seller account
            ValidationFailedError: non-positive or below the platform minimum
            InsufficientBalanceError: more than the available balance
            AmountNotComposableError: no exact subset; details list the available amounts
        """
        if actor_role != ActorRole.SELLER:
            raise RoleViolationError(
                f"Role {actor_role.value} cannot request payouts",
                user_message="Only sellers can request payouts.",
                details={"actor_role": actor_role.value},
            )

        currency = self._settings.currency
        amount = Money.of(request.amount, currency)
        minimum = Money.of(self._settings.minimum_payout_amount, currency)
        if not amount.is_positive():
            raise ValidationFailedError(
                f"Payout amount must be positive, got {amount}",
                user_message="Invalid payout amount.",
                details={"amount": str(amount.amount)},
            )
        if amount.cents < minimum.cents:
            raise ValidationFailedError(
                f"Payout {amount} below minimum {minimum}",
                user_message=f"Minimum payout amount is {minimum}.",
                details={"amount": str(amount.amount), "minimum": str(minimum.amount)},
            )

        uow = create_uow(self._session_factory, currency)
        async with uow:
            if not await uow.users.is_seller(seller_id):
                raise RoleViolationError(
                    f"User {seller_id} is not a seller",
                    user_message="Only sellers can request payouts.",
                )

            pending = await uow.commissions.list_pending_for_update(
                seller_id, self._settings.payout_max_commissions_scanned
            )
            balance, _ = await uow.commissions.pending_balance(seller_id, currency)
            if amount.cents > balance.cents:
                raise InsufficientBalanceError(
                    f"Payout {amount} exceeds balance {balance}",
                    user_message=f"Insufficient balance. Available: {balance}.",
                    details={"amount": str(amount.amount), "available_balance": str(balance.amount)},
                )

            selection = compose_payout(
                amount.cents,
                [PayoutCandidate(c.id, c.seller_amount.cents) for c in pending],
                self._settings.payout_max_commissions_scanned,
            )
            if selection is None:
                logger.info(f"[{uow.execution_id}] Payout {amount} for seller {seller_id} not composable")
                raise AmountNotComposableError(
                    f"No exact subset of pending commissions sums to {amount}",
                    details={
                        "requested": str(amount.amount),
                        "available_balance": str(balance.amount),
                        "available_amounts": [str(c.seller_amount.amount) for c in pending],
                    },
                )

            commission_ids = [candidate.commission_id for candidate in selection]
            payout = SellerPayout(
                id=new_id(),
                seller_id=seller_id,
                amount=amount,
                method=request.method,
                details=request.details.to_entity(),
                commission_ids=commission_ids,
                notes=request.notes,
            )
            await uow.payouts.add(payout)
            await uow.commissions.set_status(commission_ids, CommissionStatus.PROCESSING)
            await uow.commit()
            execution_id = str(uow.execution_id)

        logger.info(
            f"[{execution_id}] ✅ Payout {payout.id} requested by seller {seller_id}: "
            f"{amount} from {len(commission_ids)} commission(s)"
        )
        await self._publish(
            PayoutRequestedEvent(
                payout_id=payout.id,
                seller_id=seller_id,
                amount=str(amount.amount),
                method=payout.method.value,
                commission_ids=commission_ids,
                user_id=seller_id,
                execution_id=execution_id,
            )
        )
        return PayoutDTO.from_entity(payout)

    async def update_payout_status(
        self,
        payout_id: str,
        request: UpdatePayoutStatusRequest,
        actor_id: str,
        actor_role: ActorRole,
    ) -> PayoutDTO:
        """
        Advance a payout. Admin only.

        ``completed`` marks its commissions processed; ``failed`` returns
        them to pending. Repeating the current status changes nothing.

        Raises:
            RoleViolationError: actor is not an administrator
            NotFoundError: unknown payout
            InvalidTransitionError: no such payout status edge
        """
        if not actor_role.is_admin:
            raise RoleViolationError(
                f"Role {actor_role.value} cannot process payouts",
                details={"actor_role": actor_role.value},
            )

        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            payout = await uow.payouts.get_for_update(payout_id)
            if payout is None:
                raise NotFoundError("Payout", payout_id)

            previous = payout.status
            now = utcnow()
            if not payout.advance(request.status, processed_by=actor_id, now=now):
                return PayoutDTO.from_entity(payout)

            if request.reference:
                payout.reference = request.reference
            if request.notes:
                payout.notes = request.notes

            await uow.commissions.get_many_for_update(payout.commission_ids)
            if payout.status == PayoutStatus.COMPLETED:
                await uow.commissions.set_status(payout.commission_ids, CommissionStatus.PROCESSED, now)
            elif payout.status == PayoutStatus.FAILED:
                await uow.commissions.set_status(payout.commission_ids, CommissionStatus.PENDING)

            await uow.payouts.save(payout)
            await uow.commit()
            execution_id = str(uow.execution_id)

        logger.info(
            f"[{execution_id}] Payout {payout.id} {previous.value} -> {payout.status.value} by {actor_id}"
        )
        await self._publish(
            PayoutProcessedEvent(
                payout_id=payout.id,
                seller_id=payout.seller_id,
                amount=str(payout.amount.amount),
                previous_status=previous.value,
                new_status=payout.status.value,
                processed_by=actor_id,
                user_id=actor_id,
                execution_id=execution_id,
            )
        )
        return PayoutDTO.from_entity(payout)

    async def list_payouts(
        self,
        actor_id: str,
        actor_role: ActorRole,
        status: Optional[PayoutStatus] = None,
        seller_id: Optional[str] = None,
    ) -> List[PayoutDTO]:
        """Admins see every payout; sellers only their own."""
        if actor_role == ActorRole.SELLER:
            seller_id = actor_id
        elif not actor_role.is_admin:
            raise RoleViolationError(
                f"Role {actor_role.value} cannot list payouts",
                details={"actor_role": actor_role.value},
            )

        uow = create_uow(self._session_factory, self._settings.currency)
        async with uow:
            payouts = await uow.payouts.list_payouts(status=status, seller_id=seller_id)
        return [PayoutDTO.from_entity(payout) for payout in payouts]

    async def _publish(self, event) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
