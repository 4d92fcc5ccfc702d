"""Domain value objects - pure Python immutable types."""

from .identifiers import (
    ExecutionID,
    generate_checkout_session_id,
    generate_order_number,
    generate_verification_token,
    new_id,
)
from .money import (
    CENT,
    DEFAULT_CURRENCY,
    Money,
    allocate_proportionally,
    from_cents,
    percent_of,
    to_cents,
)

__all__ = [
    "CENT",
    "DEFAULT_CURRENCY",
    "ExecutionID",
    "Money",
    "allocate_proportionally",
    "from_cents",
    "generate_checkout_session_id",
    "generate_order_number",
    "generate_verification_token",
    "new_id",
    "percent_of",
    "to_cents",
]
