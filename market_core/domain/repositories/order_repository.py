"""
Order Repository Interface.

Pure interface - no implementation details. The ``*_for_update``
methods must take an exclusive row lock held until the surrounding
unit of work ends.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from market_core.domain.entities import Order, StatusHistoryEntry


class OrderRepository(ABC):
    """Repository interface for the Order aggregate."""

    @abstractmethod
    async def add(self, order: Order) -> None:
        """
        Persist a new order with its items.

        Args:
            order: Order entity (status pending)
        """

    @abstractmethod
    async def save(self, order: Order) -> None:
        """
        Write back the mutable fields of an existing order.

        Args:
            order: Order previously loaded in the same unit of work
        """

    @abstractmethod
    async def get(self, order_id: str) -> Optional[Order]:
        """
        Unlocked read.

        Args:
            order_id: Order primary key

        Returns:
            Order if found, None otherwise
        """

    @abstractmethod
    async def get_for_update(self, order_id: str) -> Optional[Order]:
        """
        Read and exclusively lock one order row.

        Args:
            order_id: Order primary key

        Returns:
            Order if found, None otherwise
        """

    @abstractmethod
    async def get_many_for_update(self, order_ids: Sequence[str]) -> List[Order]:
        """
        Read and lock several orders, always in primary-key order.

        Args:
            order_ids: Order primary keys

        Returns:
            Orders found (missing ids are simply absent)
        """

    @abstractmethod
    async def find_by_checkout_session(self, checkout_session_id: str) -> List[Order]:
        """Sibling orders of one multi-vendor checkout, unlocked."""

    @abstractmethod
    async def find_by_payment_reference(self, payment_reference: str) -> List[Order]:
        """Orders bound to one gateway charge, unlocked."""

    @abstractmethod
    async def append_history(self, entry: StatusHistoryEntry) -> None:
        """Append one audit row. History rows are never updated."""

    @abstractmethod
    async def list_history(self, order_id: str) -> List[StatusHistoryEntry]:
        """Audit rows of one order, oldest first."""
