"""Repository implementations."""
from .collaborator_repository import SqlAlchemyCatalogRepository, SqlAlchemyUserRepository
from .ledger_repository import (
    SqlAlchemyCommissionRepository,
    SqlAlchemyPayoutRepository,
    SqlAlchemyTransactionRepository,
)
from .order_repository import SqlAlchemyOrderRepository

__all__ = [
    "SqlAlchemyCatalogRepository",
    "SqlAlchemyCommissionRepository",
    "SqlAlchemyOrderRepository",
    "SqlAlchemyPayoutRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyUserRepository",
]
