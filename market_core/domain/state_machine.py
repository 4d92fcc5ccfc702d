"""
Order status state machine.

The transition table is data: each edge lists the roles allowed to
request it, per-order actor checks, guards and side effects. Evaluation
order is fixed: edge exists -> role allowed -> actor owns the order ->
guards hold. Evaluation never mutates; it returns a ``TransitionPlan``
that ``Order.apply_transition`` applies inside the caller's locked
unit of work.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from market_core.domain.entities.order import Order
from market_core.domain.enums import ActorRole, OrderStatus, PaymentStatus
from market_core.domain.errors import (
    InvalidTransitionError,
    PaymentRequiredError,
    PreconditionFailedError,
    TransitionRoleViolationError,
)


@dataclass(frozen=True)
class TransitionRequest:
    """Who wants to move an order where, and why."""

    target_status: OrderStatus
    actor_id: str
    actor_role: ActorRole
    reason: Optional[str] = None


@dataclass(frozen=True)
class TransitionPlan:
    from_status: OrderStatus
    to_status: OrderStatus
    changes: Dict[str, Any] = field(default_factory=dict)


# Checks return a rejection message, or None when satisfied.
ActorCheck = Callable[[Order, TransitionRequest], Optional[str]]
Guard = Callable[[Order, TransitionRequest], None]
SideEffect = Callable[[Order, datetime], Dict[str, Any]]


@dataclass(frozen=True)
class TransitionRule:
    allowed_roles: FrozenSet[ActorRole]
    actor_checks: Tuple[ActorCheck, ...] = ()
    guards: Tuple[Guard, ...] = ()
    side_effects: Tuple[SideEffect, ...] = ()


# =============================================================================
# ACTOR CHECKS
# =============================================================================

def _buyer_owns_order(order: Order, request: TransitionRequest) -> Optional[str]:
    if request.actor_role == ActorRole.BUYER and request.actor_id != order.buyer_id:
        return "Buyers can only act on their own orders"
    return None


def _seller_owns_order(order: Order, request: TransitionRequest) -> Optional[str]:
    if request.actor_role == ActorRole.SELLER and request.actor_id != order.seller_id:
        return "Sellers can only act on their own orders"
    return None


def _rider_is_assigned(order: Order, request: TransitionRequest) -> Optional[str]:
    if request.actor_role == ActorRole.RIDER and request.actor_id != order.rider_id:
        return "Only the assigned rider can update this order"
    return None


# =============================================================================
# GUARDS
# =============================================================================

def _require_payment_completed(order: Order, request: TransitionRequest) -> None:
    if order.payment_status != PaymentStatus.COMPLETED:
        raise PaymentRequiredError(
            order.status,
            request.target_status,
            "Payment must be completed first",
            details={"payment_status": order.payment_status.value},
        )


def _require_rider_assigned(order: Order, request: TransitionRequest) -> None:
    if not order.rider_id:
        raise PreconditionFailedError(
            order.status,
            request.target_status,
            "A rider must be assigned before the order can go out for delivery",
        )


def _require_reason(order: Order, request: TransitionRequest) -> None:
    if not (request.reason and request.reason.strip()):
        raise PreconditionFailedError(
            order.status,
            request.target_status,
            "A reason is required to resolve a dispute",
        )


# =============================================================================
# SIDE EFFECTS
# =============================================================================

def _set_delivered_at(order: Order, now: datetime) -> Dict[str, Any]:
    return {"delivered_at": now}


def _clear_rider(order: Order, now: datetime) -> Dict[str, Any]:
    return {"rider_id": None}


# =============================================================================
# TRANSITION TABLE
# =============================================================================

_ADMINS = frozenset({ActorRole.ADMIN, ActorRole.SUPER_ADMIN})

TRANSITION_TABLE: Mapping[OrderStatus, Mapping[OrderStatus, TransitionRule]] = {
    OrderStatus.PENDING: {
        # Payment-driven only: reconciliation acts as the SYSTEM actor.
        OrderStatus.PROCESSING: TransitionRule(
            allowed_roles=frozenset({ActorRole.SYSTEM}),
            guards=(_require_payment_completed,),
        ),
        OrderStatus.CANCELLED: TransitionRule(
            allowed_roles=_ADMINS | {ActorRole.BUYER},
            actor_checks=(_buyer_owns_order,),
        ),
    },
    OrderStatus.PROCESSING: {
        OrderStatus.DELIVERING: TransitionRule(
            allowed_roles=_ADMINS | {ActorRole.RIDER},
            actor_checks=(_rider_is_assigned,),
            guards=(_require_rider_assigned, _require_payment_completed),
        ),
        OrderStatus.CANCELLED: TransitionRule(
            allowed_roles=_ADMINS | {ActorRole.SELLER},
            actor_checks=(_seller_owns_order,),
            side_effects=(_clear_rider,),
        ),
        OrderStatus.DISPUTED: TransitionRule(
            allowed_roles=_ADMINS | {ActorRole.BUYER},
            actor_checks=(_buyer_owns_order,),
        ),
    },
    OrderStatus.DELIVERING: {
        OrderStatus.DELIVERED: TransitionRule(
            allowed_roles=_ADMINS | {ActorRole.RIDER},
            actor_checks=(_rider_is_assigned,),
            side_effects=(_set_delivered_at,),
        ),
        OrderStatus.CANCELLED: TransitionRule(
            allowed_roles=_ADMINS,
            side_effects=(_clear_rider,),
        ),
        OrderStatus.DISPUTED: TransitionRule(
            allowed_roles=_ADMINS | {ActorRole.BUYER},
            actor_checks=(_buyer_owns_order,),
        ),
    },
    OrderStatus.DELIVERED: {
        OrderStatus.DISPUTED: TransitionRule(
            allowed_roles=_ADMINS | {ActorRole.BUYER},
            actor_checks=(_buyer_owns_order,),
        ),
    },
    OrderStatus.DISPUTED: {
        OrderStatus.DELIVERED: TransitionRule(
            allowed_roles=_ADMINS,
            guards=(_require_reason,),
        ),
        OrderStatus.CANCELLED: TransitionRule(
            allowed_roles=_ADMINS,
            guards=(_require_reason,),
        ),
    },
    OrderStatus.CANCELLED: {},
}


def evaluate_transition(
    order: Order,
    request: TransitionRequest,
    now: datetime,
    table: Mapping[OrderStatus, Mapping[OrderStatus, TransitionRule]] = TRANSITION_TABLE,
) -> TransitionPlan:
    """
    Validate a transition against the order's current (locked) state.

    Raises:
        InvalidTransitionError: no edge from the current status
        TransitionRoleViolationError: role or actor not permitted on this edge
        PreconditionFailedError / PaymentRequiredError: guard unmet
    """
    rule = table.get(order.status, {}).get(request.target_status)
    if rule is None:
        raise InvalidTransitionError(
            order.status,
            request.target_status,
            f"Cannot transition from {order.status.value} to {request.target_status.value}",
        )

    if request.actor_role not in rule.allowed_roles:
        raise TransitionRoleViolationError(
            order.status,
            request.target_status,
            f"Role {request.actor_role.value} cannot transition orders "
            f"from {order.status.value} to {request.target_status.value}",
            details={"actor_role": request.actor_role.value},
        )

    for check in rule.actor_checks:
        rejection = check(order, request)
        if rejection:
            raise TransitionRoleViolationError(
                order.status,
                request.target_status,
                rejection,
                details={"actor_role": request.actor_role.value},
            )

    for guard in rule.guards:
        guard(order, request)

    changes: Dict[str, Any] = {}
    for effect in rule.side_effects:
        changes.update(effect(order, now))

    return TransitionPlan(
        from_status=order.status,
        to_status=request.target_status,
        changes=changes,
    )


def get_allowed_transitions(
    status: OrderStatus,
    role: ActorRole,
    table: Mapping[OrderStatus, Mapping[OrderStatus, TransitionRule]] = TRANSITION_TABLE,
) -> List[OrderStatus]:
    """Target statuses ``role`` may request from ``status`` (guards not evaluated)."""
    return [
        target
        for target, rule in table.get(status, {}).items()
        if role in rule.allowed_roles
    ]
