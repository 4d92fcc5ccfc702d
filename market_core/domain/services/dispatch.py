"""Least-loaded rider selection."""

from typing import Optional, Sequence

from market_core.domain.entities.catalog import RiderLoad


def select_least_loaded(riders: Sequence[RiderLoad], max_active_orders: int) -> Optional[RiderLoad]:
    """
    Rider with the fewest active orders strictly below the ceiling.

    Ties go to the lowest rider id so repeated runs pick the same rider.
    """
    eligible = [rider for rider in riders if rider.active_orders < max_active_orders]
    if not eligible:
        return None
    return min(eligible, key=lambda rider: (rider.active_orders, rider.rider_id))
