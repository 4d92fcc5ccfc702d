"""Identifier value objects and generators."""

import secrets
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ExecutionID:
    """Unique identifier for tracing one unit of work across log lines."""

    value: UUID

    @classmethod
    def generate(cls) -> "ExecutionID":
        """Generate a new ExecutionID."""
        return cls(value=uuid4())

    def __str__(self) -> str:
        return str(self.value)


def new_id() -> str:
    """New primary key (UUID4 string)."""
    return str(uuid4())


def _timestamp_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def generate_order_number(seller_id: str, now: datetime) -> str:
    """Human order number: ``ORD-<epoch ms>-<first 8 chars of seller id>``."""
    return f"ORD-{_timestamp_ms(now)}-{seller_id[:8]}"


def generate_checkout_session_id(now: datetime) -> str:
    """Shared id for sibling orders created from one multi-vendor cart."""
    return f"SESSION-{_timestamp_ms(now)}-{secrets.token_hex(4)}"


def generate_verification_token() -> str:
    """Single-use payment verification token (64 hex chars)."""
    return secrets.token_hex(32)
