"""Integration tests for seller payouts backed by exact commission subsets."""

from decimal import Decimal

import pytest
import pytest_asyncio

from market_core.application.dtos import PayoutDetailsDTO, PayoutRequest, UpdatePayoutStatusRequest
from market_core.domain.enums import ActorRole, CommissionStatus, PayoutMethod, PayoutStatus
from market_core.domain.errors import (
    AmountNotComposableError,
    InsufficientBalanceError,
    InvalidTransitionError,
    RoleViolationError,
    ValidationFailedError,
)
from market_core.infrastructure.database import create_uow

from tests.conftest import minutes_ago

SELLER = "seller-1"


def mobile_money(amount: str) -> PayoutRequest:
    return PayoutRequest(
        amount=Decimal(amount),
        method=PayoutMethod.MOBILE_MONEY,
        details=PayoutDetailsDTO(mobile_number="0241234567", provider="MTN"),
    )


@pytest_asyncio.fixture
async def commissions(seed):
    """Pending earnings of 12, 8, 5 and 5, oldest first."""
    await seed.user(ActorRole.SELLER, SELLER)
    return [
        await seed.commission(SELLER, "12.00", minutes_ago(40)),
        await seed.commission(SELLER, "8.00", minutes_ago(30)),
        await seed.commission(SELLER, "5.00", minutes_ago(20)),
        await seed.commission(SELLER, "5.00", minutes_ago(10)),
    ]


async def statuses(session_factory, commission_ids):
    async with create_uow(session_factory) as uow:
        found = await uow.commissions.get_many_for_update(commission_ids)
    by_id = {commission.id: commission.status for commission in found}
    return [by_id[commission_id] for commission_id in commission_ids]


@pytest.mark.asyncio
async def test_payout_selects_exact_subset(commissions, payout_service, session_factory, event_bus):
    payout = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("17.00"))

    assert payout.amount == Decimal("17.00")
    assert payout.status == "pending"
    assert payout.commission_ids == [commissions[0], commissions[2]]
    assert await statuses(session_factory, commissions) == [
        CommissionStatus.PROCESSING,
        CommissionStatus.PENDING,
        CommissionStatus.PROCESSING,
        CommissionStatus.PENDING,
    ]
    assert event_bus.types() == ["PayoutRequestedEvent"]


@pytest.mark.asyncio
async def test_full_balance_payout(commissions, payout_service, commission_service):
    payout = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("30.00"))

    assert sorted(payout.commission_ids) == sorted(commissions)
    balance = await commission_service.get_seller_balance(SELLER)
    assert balance.available_balance == Decimal("0.00")
    assert balance.pending_commissions == 0


@pytest.mark.asyncio
async def test_uncomposable_amount_changes_nothing(commissions, payout_service, session_factory):
    with pytest.raises(AmountNotComposableError) as exc:
        await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("17.01"))

    assert exc.value.details["available_amounts"] == ["12.00", "8.00", "5.00", "5.00"]
    assert exc.value.details["available_balance"] == "30.00"
    assert await statuses(session_factory, commissions) == [CommissionStatus.PENDING] * 4
    assert await payout_service.list_payouts(SELLER, ActorRole.SELLER) == []


@pytest.mark.asyncio
async def test_amount_above_balance(commissions, payout_service):
    with pytest.raises(InsufficientBalanceError) as exc:
        await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("30.01"))
    assert exc.value.details["available_balance"] == "30.00"


@pytest.mark.asyncio
async def test_amount_below_minimum(commissions, payout_service):
    with pytest.raises(ValidationFailedError):
        await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("5.00"))


@pytest.mark.asyncio
async def test_only_sellers_request_payouts(commissions, payout_service, seed):
    await seed.user(ActorRole.BUYER, "buyer-1")

    with pytest.raises(RoleViolationError):
        await payout_service.request_payout(SELLER, ActorRole.BUYER, mobile_money("12.00"))
    # A seller-role claim is still checked against the account
    with pytest.raises(RoleViolationError):
        await payout_service.request_payout("buyer-1", ActorRole.SELLER, mobile_money("12.00"))


def test_bank_payout_needs_account_details():
    with pytest.raises(ValueError):
        PayoutRequest(amount=Decimal("12.00"), method=PayoutMethod.BANK_ACCOUNT)


@pytest.mark.asyncio
async def test_completed_payout_processes_commissions(commissions, payout_service, session_factory):
    payout = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("20.00"))

    await payout_service.update_payout_status(
        payout.id, UpdatePayoutStatusRequest(status=PayoutStatus.PROCESSING), "admin-1", ActorRole.ADMIN
    )
    done = await payout_service.update_payout_status(
        payout.id,
        UpdatePayoutStatusRequest(status=PayoutStatus.COMPLETED, reference="TRF-001"),
        "admin-1",
        ActorRole.ADMIN,
    )

    assert done.status == "completed"
    assert done.reference == "TRF-001"
    assert done.processed_by == "admin-1"
    assert done.processed_at is not None
    assert await statuses(session_factory, payout.commission_ids) == [CommissionStatus.PROCESSED] * 2


@pytest.mark.asyncio
async def test_failed_payout_releases_commissions(commissions, payout_service, session_factory, commission_service):
    payout = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("17.00"))

    failed = await payout_service.update_payout_status(
        payout.id,
        UpdatePayoutStatusRequest(status=PayoutStatus.FAILED, notes="Wallet rejected transfer"),
        "admin-1",
        ActorRole.ADMIN,
    )

    assert failed.status == "failed"
    assert await statuses(session_factory, commissions) == [CommissionStatus.PENDING] * 4
    balance = await commission_service.get_seller_balance(SELLER)
    assert balance.available_balance == Decimal("30.00")


@pytest.mark.asyncio
async def test_repeating_status_is_a_no_op(commissions, payout_service, event_bus):
    payout = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("12.00"))

    same = await payout_service.update_payout_status(
        payout.id, UpdatePayoutStatusRequest(status=PayoutStatus.PENDING), "admin-1", ActorRole.ADMIN
    )

    assert same.status == "pending"
    assert event_bus.types() == ["PayoutRequestedEvent"]


@pytest.mark.asyncio
async def test_failed_payout_is_final(commissions, payout_service):
    payout = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("12.00"))
    await payout_service.update_payout_status(
        payout.id, UpdatePayoutStatusRequest(status=PayoutStatus.FAILED), "admin-1", ActorRole.ADMIN
    )

    with pytest.raises(InvalidTransitionError):
        await payout_service.update_payout_status(
            payout.id, UpdatePayoutStatusRequest(status=PayoutStatus.COMPLETED), "admin-1", ActorRole.ADMIN
        )


@pytest.mark.asyncio
async def test_sellers_cannot_process_payouts(commissions, payout_service):
    payout = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("12.00"))

    with pytest.raises(RoleViolationError):
        await payout_service.update_payout_status(
            payout.id, UpdatePayoutStatusRequest(status=PayoutStatus.COMPLETED), SELLER, ActorRole.SELLER
        )


@pytest.mark.asyncio
async def test_list_payouts_is_scoped(commissions, seed, payout_service):
    await seed.user(ActorRole.SELLER, "seller-2")
    await seed.commission("seller-2", "15.00", minutes_ago(5))
    mine = await payout_service.request_payout(SELLER, ActorRole.SELLER, mobile_money("12.00"))
    theirs = await payout_service.request_payout("seller-2", ActorRole.SELLER, mobile_money("15.00"))

    seller_view = await payout_service.list_payouts(SELLER, ActorRole.SELLER, seller_id="seller-2")
    admin_view = await payout_service.list_payouts("admin-1", ActorRole.ADMIN)
    filtered = await payout_service.list_payouts("admin-1", ActorRole.ADMIN, seller_id="seller-2")

    assert [p.id for p in seller_view] == [mine.id]
    assert {p.id for p in admin_view} == {mine.id, theirs.id}
    assert [p.id for p in filtered] == [theirs.id]
    with pytest.raises(RoleViolationError):
        await payout_service.list_payouts("buyer-1", ActorRole.BUYER)
