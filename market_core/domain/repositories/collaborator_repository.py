"""
Read access to collaborator-owned data (catalog, users, riders, cart).

The core never writes these tables except where a checkout must be
atomic with them: coupon usage counting and clearing the buyer's cart.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from market_core.domain.entities import Coupon, Product, RiderLoad
from market_core.domain.enums import DeliveryMethod, OrderStatus
from market_core.domain.value_objects import Money

# Open orders holding a rider; checkout assigns while still pending
RIDER_LOAD_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.DELIVERING)


class CatalogRepository(ABC):

    @abstractmethod
    async def get_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Products keyed by id; unknown ids are absent."""

    @abstractmethod
    async def get_coupon_by_code(self, code: str, for_update: bool = False) -> Optional[Coupon]:
        """Case-insensitive lookup; ``for_update`` locks the row for usage counting."""

    @abstractmethod
    async def increment_coupon_usage(self, coupon_id: str) -> None:
        pass

    @abstractmethod
    async def get_delivery_fee(
        self,
        method: DeliveryMethod,
        zone_id: Optional[str],
        currency: str,
    ) -> Optional[Money]:
        """Fee for the method/zone, or None when the zone is unknown."""


class UserRepository(ABC):

    @abstractmethod
    async def get_email(self, user_id: str) -> Optional[str]:
        pass

    @abstractmethod
    async def is_seller(self, user_id: str) -> bool:
        pass

    @abstractmethod
    async def list_rider_loads(self) -> List[RiderLoad]:
        """Approved, active riders with their processing/delivering order counts."""

    @abstractmethod
    async def get_rider_load(self, rider_id: str) -> Optional[RiderLoad]:
        """The rider if approved and active, else None."""

    @abstractmethod
    async def clear_cart(self, user_id: str) -> None:
        pass
