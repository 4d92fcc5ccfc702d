"""Settlement ledger repository interfaces."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from market_core.domain.entities import (
    Commission,
    PaymentTransaction,
    PlatformEarning,
    SellerPayout,
)
from market_core.domain.enums import CommissionStatus, PayoutStatus
from market_core.domain.value_objects import Money


class PaymentTransactionRepository(ABC):

    @abstractmethod
    async def get_by_reference(self, payment_reference: str) -> Optional[PaymentTransaction]:
        """Recorded outcome for a reference, if any."""

    @abstractmethod
    async def add(self, transaction: PaymentTransaction) -> None:
        """Insert the outcome. The reference is unique at the storage level."""


class CommissionRepository(ABC):

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[Commission]:
        pass

    @abstractmethod
    async def add(self, commission: Commission, earning: PlatformEarning) -> None:
        """Insert a commission together with its platform earning."""

    @abstractmethod
    async def list_pending_for_update(self, seller_id: str, limit: int) -> List[Commission]:
        """
        Lock a seller's pending commissions, oldest first.

        Args:
            seller_id: Seller whose ledger is read
            limit: Maximum rows to lock

        Returns:
            Pending commissions ordered by creation time
        """

    @abstractmethod
    async def get_many_for_update(self, commission_ids: Sequence[str]) -> List[Commission]:
        pass

    @abstractmethod
    async def set_status(
        self,
        commission_ids: Sequence[str],
        status: CommissionStatus,
        processed_at: Optional[datetime] = None,
    ) -> None:
        pass

    @abstractmethod
    async def pending_balance(self, seller_id: str, currency: str) -> Tuple[Money, int]:
        """Sum of pending seller amounts and the number of pending commissions."""

    @abstractmethod
    async def list_by_seller(
        self,
        seller_id: str,
        status: Optional[CommissionStatus] = None,
    ) -> List[Commission]:
        pass

    @abstractmethod
    async def platform_earnings_total(self, currency: str) -> Money:
        pass


class PayoutRepository(ABC):

    @abstractmethod
    async def add(self, payout: SellerPayout) -> None:
        pass

    @abstractmethod
    async def get_for_update(self, payout_id: str) -> Optional[SellerPayout]:
        pass

    @abstractmethod
    async def save(self, payout: SellerPayout) -> None:
        pass

    @abstractmethod
    async def list_payouts(
        self,
        status: Optional[PayoutStatus] = None,
        seller_id: Optional[str] = None,
    ) -> List[SellerPayout]:
        pass
