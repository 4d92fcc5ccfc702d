"""Mapping from marketplace error codes to HTTP statuses."""

from typing import Dict

from market_core.domain.errors import ErrorCode


ERROR_STATUS: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION: 400,
    ErrorCode.TAMPER_DETECTED: 400,
    ErrorCode.INVALID_COUPON: 400,
    ErrorCode.PLATFORM_MODE: 400,
    ErrorCode.INVALID_SIGNATURE: 401,
    ErrorCode.ROLE_VIOLATION: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.VERIFICATION_IN_PROGRESS: 409,
    ErrorCode.PRECONDITION_FAILED: 422,
    ErrorCode.PAYMENT_REQUIRED: 422,
    ErrorCode.AMOUNT_NOT_COMPOSABLE: 422,
    ErrorCode.INSUFFICIENT_BALANCE: 422,
    ErrorCode.CALCULATION: 500,
    ErrorCode.GATEWAY: 502,
    ErrorCode.GATEWAY_TIMEOUT: 504,
}

# Every code must map; a new ErrorCode without a status fails at import
_unmapped = set(ErrorCode) - set(ERROR_STATUS)
if _unmapped:
    raise RuntimeError(f"ErrorCode values without an HTTP status: {sorted(c.value for c in _unmapped)}")


def http_status_for(code: ErrorCode) -> int:
    return ERROR_STATUS[code]
