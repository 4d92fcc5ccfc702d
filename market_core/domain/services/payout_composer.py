"""
Payout composition.

A payout is backed by whole commissions only. Candidates are walked
oldest-first; a commission is taken when it fits in the remaining
target and skipped when it would overshoot. The walk stops on an exact
match. This is O(n) over at most ``max_candidates`` commissions and is
not guaranteed to find every composable amount (e.g. {5, 4, 4} -> 8 is
missed because 5 is taken first); callers report the available amounts
instead of approximating.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class PayoutCandidate:
    commission_id: str
    amount_cents: int


def compose_payout(
    target_cents: int,
    candidates: Sequence[PayoutCandidate],
    max_candidates: Optional[int] = None,
) -> Optional[List[PayoutCandidate]]:
    """
    Pick commissions whose amounts sum exactly to ``target_cents``.

    Args:
        target_cents: Requested payout in cents (must be positive)
        candidates: Pending commissions, oldest first
        max_candidates: Only the first N candidates are considered

    Returns:
        The selected candidates in input order, or None when no exact
        match was found
    """
    if target_cents <= 0:
        return None

    pool = candidates if max_candidates is None else candidates[:max_candidates]

    selected: List[PayoutCandidate] = []
    remaining = target_cents
    for candidate in pool:
        if candidate.amount_cents <= 0 or candidate.amount_cents > remaining:
            continue
        selected.append(candidate)
        remaining -= candidate.amount_cents
        if remaining == 0:
            return selected

    return None
