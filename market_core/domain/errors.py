"""
Marketplace error taxonomy.

Every expected failure carries a closed ``ErrorCode`` plus structured
details, so the boundary layer can map it to a transport status without
string matching. ``CalculationError`` is the only integrity error: it
must propagate and is never handled by services.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    # validation family (client-correctable)
    VALIDATION = "validation"
    TAMPER_DETECTED = "tamper_detected"
    INVALID_COUPON = "invalid_coupon"
    PLATFORM_MODE = "platform_mode"
    # authorization
    ROLE_VIOLATION = "role_violation"
    INVALID_SIGNATURE = "invalid_signature"
    # lookup
    NOT_FOUND = "not_found"
    # conflict
    INVALID_TRANSITION = "invalid_transition"
    VERIFICATION_IN_PROGRESS = "verification_in_progress"
    # precondition
    PRECONDITION_FAILED = "precondition_failed"
    PAYMENT_REQUIRED = "payment_required"
    AMOUNT_NOT_COMPOSABLE = "amount_not_composable"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    # integrity
    CALCULATION = "calculation"
    # external dependency
    GATEWAY = "gateway"
    GATEWAY_TIMEOUT = "gateway_timeout"


class MarketplaceError(Exception):
    """
    Base class for all structured marketplace errors.

    Attributes:
        code: Discriminant from ``ErrorCode``
        message: Internal diagnostic message (logged, shown to admins)
        user_message: Human-readable reason for buyers and sellers
        details: Structured payload (statuses, amounts, ids)
    """

    code: ErrorCode = ErrorCode.VALIDATION
    default_user_message = "The request could not be processed."

    def __init__(
        self,
        message: str,
        *,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or self.default_user_message
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self, include_details: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.user_message,
        }
        if include_details:
            payload["internal_message"] = self.message
            payload["details"] = self.details
        return payload


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationFailedError(MarketplaceError):
    code = ErrorCode.VALIDATION
    default_user_message = "Some of the submitted information is invalid."


class TamperDetectedError(ValidationFailedError):
    code = ErrorCode.TAMPER_DETECTED
    default_user_message = "Prices have changed or were modified. Please refresh your cart and try again."


class InvalidCouponError(ValidationFailedError):
    code = ErrorCode.INVALID_COUPON
    default_user_message = "This coupon cannot be applied to your cart."


class PlatformModeError(ValidationFailedError):
    code = ErrorCode.PLATFORM_MODE
    default_user_message = (
        "Your cart contains products from multiple sellers. "
        "Please checkout items from one seller at a time."
    )


class AmountNotComposableError(MarketplaceError):
    """No exact subset of pending commissions sums to the requested payout."""

    code = ErrorCode.AMOUNT_NOT_COMPOSABLE
    default_user_message = (
        "The requested amount cannot be matched exactly by your pending earnings. "
        "Please choose one of the available amounts or your full balance."
    )


class InsufficientBalanceError(MarketplaceError):
    code = ErrorCode.INSUFFICIENT_BALANCE
    default_user_message = "Your available balance is lower than the requested amount."


# =============================================================================
# AUTHORIZATION / LOOKUP
# =============================================================================

class RoleViolationError(MarketplaceError):
    code = ErrorCode.ROLE_VIOLATION
    default_user_message = "You are not allowed to perform this action."


class InvalidSignatureError(MarketplaceError):
    code = ErrorCode.INVALID_SIGNATURE
    default_user_message = "Invalid signature."


class NotFoundError(MarketplaceError):
    code = ErrorCode.NOT_FOUND
    default_user_message = "The requested resource was not found."

    def __init__(self, entity: str, entity_id: Any, **kwargs):
        kwargs.setdefault("user_message", f"{entity} not found.")
        details = {"entity": entity, "id": str(entity_id)}
        details.update(kwargs.pop("details", None) or {})
        super().__init__(f"{entity} {entity_id} not found", details=details, **kwargs)


# =============================================================================
# TRANSITIONS
# =============================================================================

class TransitionError(MarketplaceError):
    """Base for rejected order status transitions."""

    def __init__(
        self,
        current_status: Any,
        requested_status: Any,
        reason: str,
        *,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.current_status = _value(current_status)
        self.requested_status = _value(requested_status)
        self.reason = reason
        payload = {
            "current_status": self.current_status,
            "requested_status": self.requested_status,
            "reason": reason,
        }
        payload.update(details or {})
        super().__init__(
            f"Transition {self.current_status} -> {self.requested_status} rejected: {reason}",
            user_message=user_message or reason,
            details=payload,
        )


class InvalidTransitionError(TransitionError):
    code = ErrorCode.INVALID_TRANSITION


class TransitionRoleViolationError(TransitionError, RoleViolationError):
    code = ErrorCode.ROLE_VIOLATION


class PreconditionFailedError(TransitionError):
    code = ErrorCode.PRECONDITION_FAILED


class PaymentRequiredError(PreconditionFailedError):
    code = ErrorCode.PAYMENT_REQUIRED


class PaymentNotCompletedError(MarketplaceError):
    """Commission requested for an order whose payment is not completed."""

    code = ErrorCode.PAYMENT_REQUIRED
    default_user_message = "Order payment has not been completed."


# =============================================================================
# PAYMENTS / INTEGRITY / EXTERNAL
# =============================================================================

class VerificationInProgressError(MarketplaceError):
    code = ErrorCode.VERIFICATION_IN_PROGRESS
    default_user_message = "Payment verification already in progress. Please wait."


class CalculationError(MarketplaceError):
    """Internal arithmetic invariant violated. Always fatal."""

    code = ErrorCode.CALCULATION
    default_user_message = "An internal calculation error occurred."


class GatewayError(MarketplaceError):
    code = ErrorCode.GATEWAY
    default_user_message = "The payment provider could not process the request."


class GatewayTimeoutError(GatewayError):
    code = ErrorCode.GATEWAY_TIMEOUT
    default_user_message = "The payment provider did not respond in time. Please try again."


def _value(status: Any) -> Any:
    return getattr(status, "value", status)
