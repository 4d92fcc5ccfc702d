from .collaborator_repository import (
    RIDER_LOAD_STATUSES,
    CatalogRepository,
    UserRepository,
)
from .ledger_repository import (
    CommissionRepository,
    PaymentTransactionRepository,
    PayoutRepository,
)
from .order_repository import OrderRepository

__all__ = [
    "RIDER_LOAD_STATUSES",
    "CatalogRepository",
    "CommissionRepository",
    "OrderRepository",
    "PaymentTransactionRepository",
    "PayoutRepository",
    "UserRepository",
]
